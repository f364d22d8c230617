import json
from typing import Any, Dict, Optional

from fractalpaint.errors import InvalidConfiguration, IOFailure
from fractalpaint.fractals import DEFAULT_JULIA_C, FRACTAL_KINDS
from fractalpaint.palette import Palette
from fractalpaint.pipeline import DEFAULT_WORKERS, STRATEGIES
from fractalpaint.renderers.producer_consumer import DEFAULT_QUEUE_CAPACITY

DEFAULTS: Dict[str, Any] = {
    "width": 4000,
    "height": 3000,
    "fractal": "mandelbrot",
    "strategy": "static",
    "workers": DEFAULT_WORKERS,
    "queue_capacity": DEFAULT_QUEUE_CAPACITY,
    "camera": {"offset_x": 0, "offset_y": 0, "zoom": 1.0},
    "julia_c": list(DEFAULT_JULIA_C),
    "julia_radius": 3.0,
    "max_iter": None,
    "palette": None,
    "output": "output.jpg",
    "quality": 100,
}

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return dict(DEFAULTS)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except OSError as e:
        raise IOFailure(f"Cannot read config {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidConfiguration(f"Config {config_path} is not valid JSON: {e}") from e
    if not isinstance(cfg, dict):
        raise InvalidConfiguration("Config JSON must be an object.")
    return cfg

def _int(cfg: Dict[str, Any], key: str, minimum: Optional[int] = None) -> int:
    raw = cfg[key]
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raise InvalidConfiguration(f"{key} must be an integer, got {raw!r}.")
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"{key} must be an integer, got {cfg[key]!r}.") from e
    if minimum is not None and value < minimum:
        raise InvalidConfiguration(f"{key} must be >= {minimum}, got {value}.")
    return value

def _float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"{key} must be a number, got {value!r}.") from e

def normalise_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(cfg) - set(DEFAULTS)
    if unknown:
        raise InvalidConfiguration(f"Unknown config field(s): {', '.join(sorted(unknown))}")

    out = dict(DEFAULTS)
    out.update(cfg)

    out["width"] = _int(out, "width", 1)
    out["height"] = _int(out, "height", 1)
    out["workers"] = _int(out, "workers", 1)
    out["queue_capacity"] = _int(out, "queue_capacity", 1)
    out["quality"] = _int(out, "quality", 1)
    if out["quality"] > 100:
        raise InvalidConfiguration(f"quality must be <= 100, got {out['quality']}.")
    if out["max_iter"] is not None:
        out["max_iter"] = _int(out, "max_iter", 1)

    if out["fractal"] not in FRACTAL_KINDS:
        raise InvalidConfiguration(f"fractal must be one of {', '.join(FRACTAL_KINDS)}, got {out['fractal']!r}.")
    if out["strategy"] not in STRATEGIES:
        raise InvalidConfiguration(f"strategy must be one of {', '.join(STRATEGIES)}, got {out['strategy']!r}.")

    camera = dict(DEFAULTS["camera"])
    if not isinstance(out["camera"], dict):
        raise InvalidConfiguration("camera must be an object with offset_x, offset_y and zoom.")
    camera.update(out["camera"])
    camera = {
        "offset_x": _int(camera, "offset_x"),
        "offset_y": _int(camera, "offset_y"),
        "zoom": _float(camera["zoom"], "camera.zoom"),
    }
    if camera["zoom"] <= 0:
        raise InvalidConfiguration(f"camera.zoom must be > 0, got {camera['zoom']}.")
    out["camera"] = camera

    julia_c = out["julia_c"]
    if not (isinstance(julia_c, (list, tuple)) and len(julia_c) == 2):
        raise InvalidConfiguration("julia_c must be [re, im].")
    out["julia_c"] = [_float(julia_c[0], "julia_c"), _float(julia_c[1], "julia_c")]
    out["julia_radius"] = _float(out["julia_radius"], "julia_radius")
    if out["julia_radius"] <= 0:
        raise InvalidConfiguration("julia_radius must be > 0.")

    if out["palette"] is not None:
        # Validate now; the CLI rebuilds the Palette from the list.
        Palette.from_list(out["palette"])
        out["palette"] = [list(c) for c in out["palette"]]

    out["output"] = str(out["output"])
    return out
