import threading

import numpy as np
import pytest

from fractalpaint.buffer import PixelBuffer
from fractalpaint.errors import InvalidConfiguration
from fractalpaint.pipeline import (
    PRODUCER_CONSUMER,
    STATIC_PARTITION,
    FractalPainter,
    Scheduler,
    build_painter,
    render_image,
)
from fractalpaint.fractals import MandelbrotEvaluator
from fractalpaint.palette import MANDELBROT_PALETTE
from fractalpaint.renderers.producer_consumer import Task, TaskChannel, produce, render_queued
from fractalpaint.renderers.static_partition import render_static, split_rows
from fractalpaint.viewport import Camera

WIDTH, HEIGHT = 24, 16


def _serial(painter, width=WIDTH, height=HEIGHT):
    buf = PixelBuffer(width, height)
    for y in range(height):
        for x in range(width):
            painter.draw_pixel(buf, x, y)
    return buf


@pytest.fixture(scope="module")
def mandelbrot_reference():
    return _serial(build_painter("mandelbrot"))


@pytest.mark.parametrize("strategy", [STATIC_PARTITION, PRODUCER_CONSUMER])
@pytest.mark.parametrize("workers", [1, 2, 8])
def test_render_is_identical_for_any_strategy_and_worker_count(mandelbrot_reference, strategy, workers):
    buf = render_image(WIDTH, HEIGHT, "mandelbrot", workers=workers, strategy=strategy)
    assert buf.tobytes() == mandelbrot_reference.tobytes()


@pytest.mark.parametrize("strategy", [STATIC_PARTITION, PRODUCER_CONSUMER])
def test_julia_render_is_deterministic(strategy):
    painter = build_painter("julia", max_iter=300)
    reference = _serial(painter, 12, 10)
    for workers in (1, 3):
        buf = Scheduler(workers, strategy, queue_capacity=2).run(painter, 12, 10)
        assert buf == reference


def test_render_produces_color_and_black(mandelbrot_reference):
    pixels = mandelbrot_reference.pixels
    assert pixels.shape == (HEIGHT, WIDTH, 3)
    assert pixels.dtype == np.uint8
    # Centre (-0.75, 0) is in the set; the left edge (-2.5, ...) escapes.
    assert mandelbrot_reference.get(WIDTH // 2, HEIGHT // 2) == (0, 0, 0)
    assert pixels.any()


def test_zoomed_camera_changes_image(mandelbrot_reference):
    zoomed = render_image(WIDTH, HEIGHT, "mandelbrot", camera=Camera(WIDTH // 3, HEIGHT // 4, 5.0), workers=2)
    assert zoomed != mandelbrot_reference


def test_set_camera_reconfigures_painter():
    painter = FractalPainter(MandelbrotEvaluator(), MANDELBROT_PALETTE)
    assert painter.camera == Camera(0, 0, 1.0)
    painter.set_camera(5, 3, 2.5)
    assert painter.camera == Camera(5, 3, 2.5)


@pytest.mark.parametrize("workers", [0, -1, 1.5, True])
def test_scheduler_rejects_bad_worker_count(workers):
    with pytest.raises(InvalidConfiguration):
        Scheduler(workers)


def test_scheduler_rejects_unknown_strategy_and_capacity():
    with pytest.raises(InvalidConfiguration):
        Scheduler(2, "work-stealing")
    with pytest.raises(InvalidConfiguration):
        Scheduler(2, PRODUCER_CONSUMER, queue_capacity=0)


def test_split_rows_covers_image_without_overlap():
    assert split_rows(10, 4) == [(0, 3), (3, 6), (6, 8), (8, 10)]
    assert split_rows(2, 4) == [(0, 1), (1, 2), (2, 2), (2, 2)]
    bands = split_rows(3000, 7)
    assert bands[0][0] == 0 and bands[-1][1] == 3000
    assert all(a[1] == b[0] for a, b in zip(bands, bands[1:]))


class _RecordingPainter:
    def __init__(self):
        self.lock = threading.Lock()
        self.seen = []
        self.threads = set()

    def draw_pixel(self, buffer, x, y):
        with self.lock:
            self.seen.append((x, y))
            self.threads.add(threading.current_thread().name)
        buffer.set(x, y, (x, y, 1))


@pytest.mark.parametrize("render", [
    lambda p, b: render_static(p, b, workers=3),
    lambda p, b: render_queued(p, b, workers=3, queue_capacity=1),
])
def test_every_pixel_written_exactly_once(render):
    painter = _RecordingPainter()
    buf = PixelBuffer(7, 5)
    render(painter, buf)
    assert sorted(painter.seen) == [(x, y) for x in range(7) for y in range(5)]
    assert buf.get(6, 4) == (6, 4, 1)


def test_static_partition_uses_one_thread_per_band():
    painter = _RecordingPainter()
    render_static(painter, PixelBuffer(4, 6), workers=3)
    assert 1 <= len(painter.threads) <= 3
    assert all(name.startswith("band") for name in painter.threads)


def test_progress_callback_counts_rows_and_columns():
    rows, cols = [], []
    render_static(_RecordingPainter(), PixelBuffer(5, 4), workers=2, advance=rows.append)
    render_queued(_RecordingPainter(), PixelBuffer(5, 4), workers=2, advance=cols.append)
    assert sum(rows) == 4
    # Queue progress is reported per painted pixel.
    assert sum(cols) == 20


def test_channel_delivers_all_tasks_then_closes():
    channel = TaskChannel(capacity=64, consumers=2)
    produce(channel, 3, 2)
    first = list(channel)
    second = list(channel)
    assert first == [Task(x, y) for x in range(3) for y in range(2)]
    assert second == []
    with pytest.raises(RuntimeError):
        channel.put(Task(0, 0))


class _FailingPainter:
    def draw_pixel(self, buffer, x, y):
        if (x, y) == (2, 1):
            raise ZeroDivisionError("boom")
        buffer.set(x, y, (1, 1, 1))


@pytest.mark.parametrize("render", [
    lambda p, b: render_static(p, b, workers=2),
    lambda p, b: render_queued(p, b, workers=2, queue_capacity=1),
])
def test_worker_failure_is_reraised_after_join(render):
    with pytest.raises(ZeroDivisionError):
        render(_FailingPainter(), PixelBuffer(6, 4))


def test_progress_bar_render():
    buf = Scheduler(2, STATIC_PARTITION, progress=True).run(build_painter("mandelbrot"), 6, 4)
    assert buf.width == 6
