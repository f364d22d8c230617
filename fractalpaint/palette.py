from __future__ import annotations

import collections.abc
from typing import Iterable, Sequence, Tuple

from fractalpaint.errors import InvalidConfiguration

RGB = Tuple[int, int, int]

# Brown -> deep blue -> pale yellow -> orange ramp for the Mandelbrot set.
MANDELBROT_COLORS: Tuple[RGB, ...] = (
    (66, 30, 15),
    (25, 7, 26),
    (9, 1, 47),
    (4, 4, 73),
    (0, 7, 100),
    (12, 44, 138),
    (24, 82, 177),
    (57, 125, 209),
    (134, 181, 229),
    (211, 236, 248),
    (241, 233, 191),
    (248, 201, 95),
    (255, 170, 0),
    (204, 128, 0),
    (153, 87, 0),
    (106, 52, 3),
)

# Navy -> violet -> amber for the Julia set.
JULIA_COLORS: Tuple[RGB, ...] = (
    (0, 0, 51),
    (0, 0, 77),
    (0, 0, 102),
    (26, 26, 127),
    (51, 26, 153),
    (77, 26, 153),
    (77, 51, 153),
    (102, 51, 127),
    (102, 51, 127),
    (127, 77, 127),
    (153, 77, 127),
    (153, 77, 127),
    (189, 102, 102),
    (204, 102, 102),
    (204, 102, 102),
    (230, 127, 77),
    (230, 127, 51),
    (230, 127, 51),
    (230, 153, 51),
    (230, 153, 51),
    (230, 153, 51),
    (230, 189, 51),
    (230, 189, 77),
)


def _check_channel(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfiguration(f"Palette channel must be an integer, got {value!r}.")
    if not 0 <= value <= 255:
        raise InvalidConfiguration(f"Palette channel out of range 0..255: {value}.")
    return value


class Palette(collections.abc.Sequence):
    """Immutable, cyclic sequence of RGB colors.

    Indexing wraps around, so ``palette[len(palette)]`` is ``palette[0]``.
    At least two colors are required for interpolation to have a neighbour.
    """

    __slots__ = ("_colors",)

    def __init__(self, colors: Iterable[Sequence[int]]):
        checked = []
        for color in colors:
            if len(color) != 3:
                raise InvalidConfiguration(f"Palette entries must be RGB triples, got {color!r}.")
            checked.append(tuple(_check_channel(c) for c in color))
        if len(checked) < 2:
            raise InvalidConfiguration(f"Palette needs at least 2 colors, got {len(checked)}.")
        self._colors: Tuple[RGB, ...] = tuple(checked)

    @classmethod
    def from_list(cls, data) -> "Palette":
        if not isinstance(data, (list, tuple)):
            raise InvalidConfiguration("palette must be a list of [r, g, b] entries.")
        for entry in data:
            if not isinstance(entry, (list, tuple)):
                raise InvalidConfiguration(f"Palette entries must be RGB triples, got {entry!r}.")
        return cls(data)

    def __len__(self) -> int:
        return len(self._colors)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self._colors[index]
        return self._colors[index % len(self._colors)]

    def __iter__(self):
        return iter(self._colors)

    def __eq__(self, other) -> bool:
        if isinstance(other, Palette):
            return self._colors == other._colors
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._colors)

    def __repr__(self) -> str:
        return f"Palette({len(self._colors)} colors)"


MANDELBROT_PALETTE = Palette(MANDELBROT_COLORS)
JULIA_PALETTE = Palette(JULIA_COLORS)


def default_palette(kind: str) -> Palette:
    if kind == "mandelbrot":
        return MANDELBROT_PALETTE
    if kind == "julia":
        return JULIA_PALETTE
    raise InvalidConfiguration(f"Unknown fractal kind: {kind!r}")
