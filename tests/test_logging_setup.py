import logging
import logging.handlers
import threading

import pytest

from fractalpaint.pipeline import render_image
from fractalpaint.util.logging_setup import configure_root_logging, get_logger, route_through_queue


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


@pytest.fixture
def capture():
    logger = get_logger()
    saved = list(logger.handlers)
    saved_level, saved_propagate = logger.level, logger.propagate
    for h in saved:
        logger.removeHandler(h)
    handler = _Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    yield handler
    for h in list(logger.handlers):
        logger.removeHandler(h)
    for h in saved:
        logger.addHandler(h)
    logger.setLevel(saved_level)
    logger.propagate = saved_propagate


def _queue_handlers(logger):
    return [h for h in logger.handlers if isinstance(h, logging.handlers.QueueHandler)]


def test_route_restores_handlers_and_delivers_records(capture):
    logger = get_logger()
    with route_through_queue(logger):
        assert len(_queue_handlers(logger)) == 1
        assert capture not in logger.handlers
        logger.info("from inside")
    assert logger.handlers == [capture]
    assert "from inside" in capture.messages


def test_interleaved_routes_leave_no_queue_handler(capture):
    logger = get_logger()
    first = route_through_queue(logger)
    second = route_through_queue(logger)
    first.__enter__()
    second.__enter__()
    assert len(_queue_handlers(logger)) == 1
    first.__exit__(None, None, None)
    logger.info("still routed")
    second.__exit__(None, None, None)
    assert logger.handlers == [capture]
    assert "still routed" in capture.messages


def test_concurrent_renders_leave_no_queue_handler(capture):
    logger = get_logger()
    barrier = threading.Barrier(2)
    errors = []

    def render():
        try:
            barrier.wait()
            render_image(30, 20, "mandelbrot", workers=2)
        except Exception as e:
            errors.append(e)

    for _ in range(5):
        threads = [threading.Thread(target=render) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert not errors
        assert _queue_handlers(logger) == []
        assert logger.handlers == [capture]
    assert sum("Complete in" in m for m in capture.messages) == 10


def test_configure_replaces_handlers(tmp_path):
    log_file = tmp_path / "render.log"
    logger = configure_root_logging(level=logging.DEBUG, console=False, log_file=str(log_file))
    try:
        assert len(logger.handlers) == 1
        logger.debug("hello")
        logger.handlers[0].flush()
        text = log_file.read_text(encoding="utf-8")
        assert "[MainThread] DEBUG" in text
        assert "hello" in text
    finally:
        for h in list(logger.handlers):
            h.close()
            logger.removeHandler(h)
