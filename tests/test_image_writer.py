import pytest
from PIL import Image

from fractalpaint.buffer import PixelBuffer
from fractalpaint.errors import InvalidConfiguration, IOFailure
from fractalpaint.output.image_writer import save_image, to_image


def _buffer():
    buf = PixelBuffer(4, 3)
    buf.set(0, 0, (255, 0, 0))
    buf.set(3, 2, (0, 0, 255))
    return buf


def test_png_is_lossless(tmp_path):
    path = tmp_path / "out" / "image.png"
    save_image(_buffer(), str(path))
    with Image.open(path) as img:
        assert img.size == (4, 3)
        assert img.getpixel((0, 0)) == (255, 0, 0)
        assert img.getpixel((3, 2)) == (0, 0, 255)
        assert img.getpixel((1, 1)) == (0, 0, 0)


def test_jpeg_written(tmp_path):
    path = tmp_path / "image.jpg"
    save_image(_buffer(), str(path), quality=90)
    with Image.open(path) as img:
        assert img.format == "JPEG"
        assert img.size == (4, 3)


def test_to_image_shape():
    img = to_image(_buffer())
    assert img.mode == "RGB"
    assert img.size == (4, 3)


def test_unsupported_extension(tmp_path):
    with pytest.raises(InvalidConfiguration):
        save_image(_buffer(), str(tmp_path / "image.gif"))


def test_unwritable_path_is_io_failure(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(IOFailure):
        save_image(_buffer(), str(blocker / "image.png"))


def test_buffer_rejects_empty_size():
    with pytest.raises(InvalidConfiguration):
        PixelBuffer(0, 10)
