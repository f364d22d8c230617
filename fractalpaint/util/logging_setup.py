import logging
import logging.handlers
import queue
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

LOGGER_NAME = "fractalpaint"

LOG_FORMAT = "%(asctime)s.%(msecs)03dZ [%(threadName)s] %(levelname)-7s %(name)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Guards the handler swap in route_through_queue; nested and concurrent
# renders share one queue route, installed by the first and removed by the last.
_route_lock = threading.Lock()
_route_depth = 0
_route_saved: List[logging.Handler] = []
_route_handler: Optional[logging.Handler] = None
_route_listener: Optional[logging.handlers.QueueListener] = None

def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)

def _detach_all(logger: logging.Logger) -> List[logging.Handler]:
    detached = list(logger.handlers)
    for h in detached:
        logger.removeHandler(h)
    return detached

def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)

def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = "render.log",
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 5,
) -> logging.Logger:
    """Point the package logger at stderr and/or a rotating file, replacing earlier handlers."""
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    _detach_all(logger)
    if console:
        _attach(logger, logging.StreamHandler(), level)
    if log_file:
        rotating = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        )
        _attach(logger, rotating, level)
    return logger

def create_log_queue() -> "queue.Queue[logging.LogRecord]":
    return queue.Queue(-1)

def start_queue_listener(log_queue: queue.Queue, handlers) -> logging.handlers.QueueListener:
    listener = logging.handlers.QueueListener(log_queue, *handlers, respect_handler_level=True)
    listener.start()
    return listener

def _enter_route(logger: logging.Logger) -> None:
    global _route_depth, _route_handler, _route_listener, _route_saved
    with _route_lock:
        _route_depth += 1
        if _route_depth > 1 or not logger.handlers:
            return
        _route_saved = _detach_all(logger)
        log_queue = create_log_queue()
        _route_listener = start_queue_listener(log_queue, _route_saved)
        _route_handler = logging.handlers.QueueHandler(log_queue)
        logger.addHandler(_route_handler)

def _exit_route(logger: logging.Logger) -> None:
    global _route_depth, _route_handler, _route_listener, _route_saved
    with _route_lock:
        _route_depth -= 1
        if _route_depth > 0 or _route_handler is None:
            return
        logger.removeHandler(_route_handler)
        _route_listener.stop()
        for h in _route_saved:
            logger.addHandler(h)
        _route_handler = None
        _route_listener = None
        _route_saved = []

@contextmanager
def route_through_queue(logger: Optional[logging.Logger] = None) -> Iterator[logging.Logger]:
    """Send the logger's records through a QueueHandler for the duration of the block.

    Worker threads then only enqueue records; the listener thread does the
    console and file writes. Overlapping blocks, from any thread, share the
    route and the original handlers come back when the last one exits.
    """
    logger = logger or get_logger()
    _enter_route(logger)
    try:
        yield logger
    finally:
        _exit_route(logger)
