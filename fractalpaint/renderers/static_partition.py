from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from fractalpaint.buffer import PixelBuffer
from fractalpaint.util.logging_setup import get_logger

def split_rows(height: int, workers: int) -> List[Tuple[int, int]]:
    """Split ``range(height)`` into ``workers`` contiguous [y0, y1) ranges.

    Earlier ranges take the remainder rows; with more workers than rows the
    trailing ranges are empty.
    """
    base, extra = divmod(height, workers)
    bands: List[Tuple[int, int]] = []
    y = 0
    for i in range(workers):
        y1 = y + base + (1 if i < extra else 0)
        bands.append((y, y1))
        y = y1
    return bands

def _fill_rows(painter, buffer: PixelBuffer, y0: int, y1: int, advance: Optional[Callable[[int], None]]) -> int:
    logger = get_logger()
    logger.debug("Band %s..%s start", y0, y1)
    width = buffer.width
    for y in range(y0, y1):
        for x in range(width):
            painter.draw_pixel(buffer, x, y)
        if advance is not None:
            advance(1)
    logger.debug("Band %s..%s done", y0, y1)
    return y1 - y0

def render_static(
    painter,
    buffer: PixelBuffer,
    *,
    workers: int,
    advance: Optional[Callable[[int], None]] = None,
) -> None:
    """One contiguous row band per worker; returns once every band is painted.

    ``advance`` is called with 1 after each finished row.
    """
    bands = split_rows(buffer.height, workers)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="band") as pool:
        futures = [pool.submit(_fill_rows, painter, buffer, y0, y1, advance) for y0, y1 in bands]
    # Leaving the executor joined every worker; surface the first failure.
    for f in futures:
        f.result()
