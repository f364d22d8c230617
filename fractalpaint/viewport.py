from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class PlanePoint(NamedTuple):
    re: float
    im: float


class PlaneExtents(NamedTuple):
    """Size of the visible window and how far its origin sits from zero."""

    width: float
    height: float
    center_offset_x: float
    center_offset_y: float


@dataclass(frozen=True)
class Camera:
    """Offset (in unzoomed pixels) and zoom of the visible region. zoom must be > 0."""

    offset_x: int = 0
    offset_y: int = 0
    zoom: float = 1.0


def to_plane(
    pixel_x: int,
    pixel_y: int,
    image_width: int,
    image_height: int,
    camera: Camera,
    extents: PlaneExtents,
) -> PlanePoint:
    full_width = camera.zoom * float(image_width)
    full_height = camera.zoom * float(image_height)
    re = ((float(pixel_x) + float(camera.offset_x) * camera.zoom) * extents.width / full_width) - extents.center_offset_x
    im = ((float(pixel_y) + float(camera.offset_y) * camera.zoom) * extents.height / full_height) - extents.center_offset_y
    return PlanePoint(re, im)
