from __future__ import annotations

import argparse
import logging
import os
import time
from typing import Optional

from fractalpaint.config import load_config, normalise_config
from fractalpaint.demos.account import STARTING_BALANCE, LockedAccount, UnsafeAccount, run_account_race
from fractalpaint.errors import FractalPaintError
from fractalpaint.fractals import FRACTAL_KINDS
from fractalpaint.output.image_writer import save_image
from fractalpaint.palette import Palette
from fractalpaint.pipeline import STRATEGIES, Scheduler, build_painter
from fractalpaint.util.logging_setup import configure_root_logging, get_logger
from fractalpaint.util.manifest import build_manifest, write_manifest
from fractalpaint.viewport import Camera

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fractalpaint", description="Multi-threaded Mandelbrot/Julia renderer with smooth coloring.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, built-in defaults are used.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG","INFO","WARNING","ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="render.log", help="Log file path (rotating). Set empty to disable file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Render one image.")
    r.add_argument("--fractal", type=str, default=None, choices=list(FRACTAL_KINDS), help="Fractal to draw.")
    r.add_argument("--strategy", type=str, default=None, choices=list(STRATEGIES), help="static: one row band per worker; queue: producer/consumer.")
    r.add_argument("--workers", type=int, default=None, help="Worker thread count.")
    r.add_argument("--queue-capacity", type=int, default=None, help="Task queue size for the queue strategy.")
    r.add_argument("--width", type=int, default=None, help="Image width in pixels.")
    r.add_argument("--height", type=int, default=None, help="Image height in pixels.")
    r.add_argument("--offset-x", type=int, default=None, help="Camera x offset in unzoomed pixels.")
    r.add_argument("--offset-y", type=int, default=None, help="Camera y offset in unzoomed pixels.")
    r.add_argument("--zoom", type=float, default=None, help="Camera zoom (> 0).")
    r.add_argument("--output", type=str, default=None, help="Output image (.jpg, .jpeg or .png).")
    r.add_argument("--manifest", type=str, default=os.path.join("artifacts", "run.json"), help="Run manifest path. Set empty to skip.")
    r.add_argument("--progress", action="store_true", help="Show a progress bar.")

    a = sub.add_parser("account", help="Run the shared bank account race demonstration.")
    a.add_argument("--threads", type=int, default=16, help="Concurrent account users.")
    a.add_argument("--rounds", type=int, default=50, help="Deposit/withdraw rounds per user.")
    a.add_argument("--amount", type=int, default=50, help="Amount moved each time.")
    a.add_argument("--safe", action="store_true", help="Use the locked account.")

    return p

def _apply_overrides(cfg: dict, args: argparse.Namespace) -> dict:
    cfg = dict(cfg)
    for key in ("fractal", "strategy", "workers", "queue_capacity", "width", "height", "output"):
        value = getattr(args, key)
        if value is not None:
            cfg[key] = value
    camera = dict(cfg.get("camera") or {})
    for key in ("offset_x", "offset_y", "zoom"):
        value = getattr(args, key)
        if value is not None:
            camera[key] = value
    if camera:
        cfg["camera"] = camera
    return cfg

def _render(args: argparse.Namespace) -> int:
    logger = get_logger()
    cfg = normalise_config(_apply_overrides(load_config(args.config), args))

    cam = cfg["camera"]
    palette = Palette.from_list(cfg["palette"]) if cfg["palette"] is not None else None
    painter = build_painter(
        cfg["fractal"],
        Camera(cam["offset_x"], cam["offset_y"], cam["zoom"]),
        palette,
        julia_c=tuple(cfg["julia_c"]),
        julia_radius=cfg["julia_radius"],
        max_iter=cfg["max_iter"],
    )
    scheduler = Scheduler(cfg["workers"], cfg["strategy"], queue_capacity=cfg["queue_capacity"], progress=args.progress)

    started = time.time()
    t0 = time.perf_counter()
    buffer = scheduler.run(painter, cfg["width"], cfg["height"])
    save_image(buffer, cfg["output"], quality=cfg["quality"])
    elapsed_ms = (time.perf_counter() - t0) * 1000.0

    if args.manifest:
        manifest = build_manifest(config=cfg, started=started, elapsed_ms=elapsed_ms, output=cfg["output"])
        write_manifest(args.manifest, manifest)
        logger.info("Run manifest written: %s", args.manifest)
    return 0

def _account(args: argparse.Namespace) -> int:
    logger = get_logger()
    account = LockedAccount() if args.safe else UnsafeAccount()
    final = run_account_race(account, threads=args.threads, rounds=args.rounds, amount=args.amount)
    if final != STARTING_BALANCE:
        logger.warning("Balance changed! It is now: %s (started at %s)", final, STARTING_BALANCE)
    else:
        logger.info("Finished. Balance is just fine at: %s", final)
    return 0

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    logger = configure_root_logging(level=log_level, console=True, log_file=log_file)

    try:
        if args.cmd == "render":
            return _render(args)
        if args.cmd == "account":
            return _account(args)
        raise RuntimeError("Unknown command.")
    except FractalPaintError as e:
        logger.error("%s", e)
        return 2
    finally:
        for h in list(logger.handlers):
            h.close()
            logger.removeHandler(h)

if __name__ == "__main__":
    raise SystemExit(main())
