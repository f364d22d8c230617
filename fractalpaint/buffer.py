from __future__ import annotations

from typing import Sequence

import numpy as np

from fractalpaint.errors import InvalidConfiguration


class PixelBuffer:
    """Height x width grid of RGB cells backed by a ``uint8`` numpy array.

    Rows are ``y`` and columns ``x``. Workers of one render write disjoint
    cells, so the buffer itself carries no lock.
    """

    __slots__ = ("width", "height", "pixels")

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise InvalidConfiguration(f"Image size must be positive, got {width}x{height}.")
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)

    def set(self, x: int, y: int, color: Sequence[int]) -> None:
        self.pixels[y, x] = color

    def get(self, x: int, y: int):
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
