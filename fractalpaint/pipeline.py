from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Tuple

from tqdm import tqdm

from fractalpaint.buffer import PixelBuffer
from fractalpaint.color import color_for
from fractalpaint.errors import InvalidConfiguration
from fractalpaint.fractals import EscapeEvaluator, make_evaluator
from fractalpaint.palette import Palette, default_palette
from fractalpaint.renderers.producer_consumer import DEFAULT_QUEUE_CAPACITY, render_queued
from fractalpaint.renderers.static_partition import render_static
from fractalpaint.util.logging_setup import get_logger, route_through_queue
from fractalpaint.viewport import Camera, to_plane

STATIC_PARTITION = "static"
PRODUCER_CONSUMER = "queue"
STRATEGIES = (STATIC_PARTITION, PRODUCER_CONSUMER)

DEFAULT_WORKERS = 4


class FractalPainter:
    """Paints single pixels of one fractal with one palette through a camera."""

    def __init__(self, evaluator: EscapeEvaluator, palette: Palette, camera: Optional[Camera] = None):
        self.evaluator = evaluator
        self.palette = palette
        self.camera = camera or Camera()
        self._extents = evaluator.plane_extents()

    def set_camera(self, offset_x: int, offset_y: int, zoom: float) -> None:
        """Change the offset and zoom. Only call between renders."""
        self.camera = Camera(offset_x, offset_y, zoom)

    def draw_pixel(self, buffer: PixelBuffer, x: int, y: int) -> None:
        point = to_plane(x, y, buffer.width, buffer.height, self.camera, self._extents)
        result = self.evaluator.iterate(point)
        buffer.set(x, y, color_for(result, self.palette, self.evaluator.color_scale_divisor))


@contextmanager
def _progress(total: int, enabled: bool, unit: str) -> Iterator[Optional[Callable[[int], None]]]:
    if not enabled:
        yield None
        return
    lock = threading.Lock()
    with tqdm(total=total, unit=unit, desc="render") as bar:
        def advance(n: int) -> None:
            with lock:
                bar.update(n)
        yield advance


class Scheduler:
    """Runs a painter over every pixel of a buffer with a fixed worker pool."""

    def __init__(
        self,
        workers: int = DEFAULT_WORKERS,
        strategy: str = STATIC_PARTITION,
        *,
        queue_capacity: int = DEFAULT_QUEUE_CAPACITY,
        progress: bool = False,
    ):
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise InvalidConfiguration(f"workers must be an integer >= 1, got {workers!r}.")
        if strategy not in STRATEGIES:
            raise InvalidConfiguration(f"Unknown strategy {strategy!r} (expected one of {', '.join(STRATEGIES)}).")
        if queue_capacity < 1:
            raise InvalidConfiguration(f"queue_capacity must be >= 1, got {queue_capacity!r}.")
        self.workers = workers
        self.strategy = strategy
        self.queue_capacity = queue_capacity
        self.progress = progress

    def run(self, painter: FractalPainter, width: int, height: int) -> PixelBuffer:
        logger = get_logger()
        buffer = PixelBuffer(width, height)
        logger.info(
            "Render start %sx%s fractal=%s strategy=%s workers=%s camera=%s",
            width, height, painter.evaluator.kind, self.strategy, self.workers, painter.camera,
        )
        start = time.perf_counter()
        with route_through_queue(logger):
            if self.strategy == STATIC_PARTITION:
                with _progress(height, self.progress, "row") as advance:
                    render_static(painter, buffer, workers=self.workers, advance=advance)
            else:
                with _progress(width * height, self.progress, "px") as advance:
                    render_queued(
                        painter, buffer, workers=self.workers,
                        queue_capacity=self.queue_capacity, advance=advance,
                    )
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.info("Complete in %d ms", elapsed_ms)
        return buffer


def build_painter(
    kind: str,
    camera: Optional[Camera] = None,
    palette: Optional[Palette] = None,
    *,
    julia_c: Optional[Tuple[float, float]] = None,
    julia_radius: Optional[float] = None,
    max_iter: Optional[int] = None,
) -> FractalPainter:
    kwargs = {}
    if max_iter is not None:
        kwargs["max_iter"] = max_iter
    if kind == "julia":
        if julia_c is not None:
            kwargs["c"] = julia_c
        if julia_radius is not None:
            kwargs["radius"] = julia_radius
    evaluator = make_evaluator(kind, **kwargs)
    return FractalPainter(evaluator, palette if palette is not None else default_palette(kind), camera)


def render_image(
    width: int,
    height: int,
    kind: str = "mandelbrot",
    camera: Optional[Camera] = None,
    palette: Optional[Palette] = None,
    workers: int = DEFAULT_WORKERS,
    strategy: str = STATIC_PARTITION,
    **options,
) -> PixelBuffer:
    """Render a whole image and hand back its buffer.

    ``options`` may carry ``queue_capacity`` and ``progress`` for the
    scheduler, and ``julia_c``, ``julia_radius`` and ``max_iter`` for the
    evaluator.
    """
    scheduler = Scheduler(
        workers, strategy,
        queue_capacity=options.pop("queue_capacity", DEFAULT_QUEUE_CAPACITY),
        progress=options.pop("progress", False),
    )
    painter = build_painter(kind, camera, palette, **options)
    return scheduler.run(painter, width, height)
