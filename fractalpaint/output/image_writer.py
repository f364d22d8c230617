from __future__ import annotations

import os

from PIL import Image

from fractalpaint.buffer import PixelBuffer
from fractalpaint.errors import InvalidConfiguration, IOFailure
from fractalpaint.util.logging_setup import get_logger

_FORMATS = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG"}

def to_image(buffer: PixelBuffer) -> Image.Image:
    return Image.fromarray(buffer.pixels)

def save_image(buffer: PixelBuffer, path: str, *, quality: int = 100) -> str:
    logger = get_logger()
    ext = os.path.splitext(path)[1].lower()
    fmt = _FORMATS.get(ext)
    if fmt is None:
        raise InvalidConfiguration(f"Unsupported image extension {ext!r} (use .jpg, .jpeg or .png).")

    img = to_image(buffer)
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        if fmt == "JPEG":
            img.save(path, format=fmt, quality=quality)
        else:
            img.save(path, format=fmt, optimize=True)
    except OSError as e:
        raise IOFailure(f"Failed to write image {path}: {e}") from e
    logger.info("Image created: %s", path)
    return path
