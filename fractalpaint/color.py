from __future__ import annotations

import math
from typing import Optional, Sequence

from fractalpaint.fractals import EscapeResult
from fractalpaint.palette import RGB, Palette

BLACK: RGB = (0, 0, 0)

# log() of the orbit magnitude is only safe once the orbit has left the bailout disc.
MIN_SMOOTH_ITERATIONS = 2

_LOG2 = math.log(2)


def blend_colors(c1: Sequence[int], c2: Sequence[int], t: float) -> RGB:
    # int() truncates; results must match the reference renders bit for bit.
    return (
        int(c1[0] * (1.0 - t) + c2[0] * t),
        int(c1[1] * (1.0 - t) + c2[1] * t),
        int(c1[2] * (1.0 - t) + c2[2] * t),
    )


def smooth_index(result: EscapeResult, color_scale_divisor: float = 1.0) -> Optional[float]:
    """Continuous palette position of an escaped orbit, or None for the sentinel color.

    Uses the normalized iteration count mu = n + 1 - log2(log|z| / log 2),
    with n first divided by ``color_scale_divisor`` so each palette entry
    covers more iterations.
    """
    if not result.escaped or result.iterations < MIN_SMOOTH_ITERATIONS:
        return None
    index = result.iterations / color_scale_divisor
    zn = math.log(result.final_re * result.final_re + result.final_im * result.final_im) / 2
    nu = math.log(zn / _LOG2) / _LOG2
    return index + 1 - nu


def color_at(palette: Palette, index: float) -> RGB:
    base = math.floor(index)
    frac = index - base
    return blend_colors(palette[base], palette[base + 1], frac)


def color_for(result: EscapeResult, palette: Palette, color_scale_divisor: float = 1.0) -> RGB:
    index = smooth_index(result, color_scale_divisor)
    if index is None:
        return BLACK
    return color_at(palette, index)
