"""Escape-time iteration for the supported fractals.

Each evaluator knows its recurrence, its window on the complex plane and how
strongly its iteration counts are spread over the palette. Everything else
(viewport mapping, coloring, scheduling) is shared.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from fractalpaint.errors import InvalidConfiguration
from fractalpaint.viewport import PlaneExtents, PlanePoint

FRACTAL_KINDS = ("mandelbrot", "julia")

DEFAULT_JULIA_C: Tuple[float, float] = (-0.7, 0.27015)


@dataclass(frozen=True)
class EscapeResult:
    iterations: int
    escaped: bool
    final_re: float
    final_im: float


class EscapeEvaluator:
    """Base for the per-fractal iteration rules."""

    kind = ""
    max_iter = 0
    color_scale_divisor = 1.0

    def iterate(self, point: PlanePoint) -> EscapeResult:
        raise NotImplementedError

    def plane_extents(self) -> PlaneExtents:
        raise NotImplementedError


class MandelbrotEvaluator(EscapeEvaluator):
    """z -> z^2 + c with z0 = 0 and c the pixel's plane point.

    Visible window is re in [-2.5, 1.0], im in [-1.0, 1.0].
    """

    kind = "mandelbrot"

    def __init__(self, max_iter: int = 1000, color_scale_divisor: float = 1.0):
        if max_iter < 1:
            raise InvalidConfiguration("max_iter must be >= 1.")
        self.max_iter = max_iter
        self.color_scale_divisor = color_scale_divisor

    def plane_extents(self) -> PlaneExtents:
        return PlaneExtents(3.5, 2.0, 2.5, 1.0)

    def iterate(self, point: PlanePoint) -> EscapeResult:
        c_re, c_im = point
        x = 0.0
        y = 0.0
        i = 0
        max_iter = self.max_iter
        while (x * x + y * y) <= 4.0 and i < max_iter:
            x_temp = x * x - y * y + c_re
            y = 2 * x * y + c_im
            x = x_temp
            i += 1
        return EscapeResult(i, i < max_iter, x, y)

    def __repr__(self) -> str:
        return f"MandelbrotEvaluator(max_iter={self.max_iter})"


class JuliaEvaluator(EscapeEvaluator):
    """z -> z^2 + c with z0 the pixel's plane point and c fixed.

    The window is a square of side ``radius`` centred on the origin, and the
    same radius is the bailout.
    """

    kind = "julia"

    def __init__(
        self,
        c: Tuple[float, float] = DEFAULT_JULIA_C,
        radius: float = 3.0,
        max_iter: int = 10000,
        color_scale_divisor: float = 10.0,
    ):
        if max_iter < 1:
            raise InvalidConfiguration("max_iter must be >= 1.")
        if radius <= 0:
            raise InvalidConfiguration("julia radius must be > 0.")
        self.c = (float(c[0]), float(c[1]))
        self.radius = float(radius)
        self.max_iter = max_iter
        self.color_scale_divisor = color_scale_divisor

    def plane_extents(self) -> PlaneExtents:
        r = self.radius
        return PlaneExtents(r, r, r / 2.0, r / 2.0)

    def iterate(self, point: PlanePoint) -> EscapeResult:
        x, y = point
        c_re, c_im = self.c
        bound = self.radius * self.radius
        i = 0
        max_iter = self.max_iter
        while (x * x + y * y) < bound and i < max_iter:
            x_temp = x * x - y * y
            y = 2 * x * y + c_im
            x = x_temp + c_re
            i += 1
        return EscapeResult(i, i < max_iter, x, y)

    def __repr__(self) -> str:
        return f"JuliaEvaluator(c={self.c}, radius={self.radius}, max_iter={self.max_iter})"


def make_evaluator(kind: str, **kwargs) -> EscapeEvaluator:
    if kind == "mandelbrot":
        return MandelbrotEvaluator(**kwargs)
    if kind == "julia":
        return JuliaEvaluator(**kwargs)
    raise InvalidConfiguration(f"Unknown fractal kind: {kind!r} (expected one of {', '.join(FRACTAL_KINDS)})")
