from __future__ import annotations

import queue
import threading
from typing import Callable, List, NamedTuple, Optional

from fractalpaint.buffer import PixelBuffer
from fractalpaint.util.logging_setup import get_logger

DEFAULT_QUEUE_CAPACITY = 20


class Task(NamedTuple):
    x: int
    y: int


class TaskChannel:
    """Bounded FIFO of Tasks that the single producer closes when done.

    ``close`` enqueues one end marker per consumer behind the last task, so
    every consumer sees every task that was put before it sees the end.
    """

    _CLOSED = object()

    def __init__(self, capacity: int, consumers: int):
        self._queue: "queue.Queue" = queue.Queue(maxsize=capacity)
        self._consumers = consumers
        self._closed = False

    def put(self, task: Task) -> None:
        if self._closed:
            raise RuntimeError("put() on a closed channel")
        self._queue.put(task)

    def close(self) -> None:
        self._closed = True
        for _ in range(self._consumers):
            self._queue.put(self._CLOSED)

    def __iter__(self):
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                return
            yield item


def produce(channel: TaskChannel, width: int, height: int) -> None:
    try:
        for x in range(width):
            for y in range(height):
                channel.put(Task(x, y))
    finally:
        channel.close()


def render_queued(
    painter,
    buffer: PixelBuffer,
    *,
    workers: int,
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY,
    advance: Optional[Callable[[int], None]] = None,
) -> None:
    """Feed every pixel through a bounded channel to a fixed pool of consumers.

    Consumers start before the producer. ``advance`` is called with 1 by a
    consumer after each pixel it has painted.
    """
    logger = get_logger()
    channel = TaskChannel(queue_capacity, workers)
    errors: List[BaseException] = []
    errors_lock = threading.Lock()

    def consume() -> None:
        done = 0
        failed = False
        for task in channel:
            if failed:
                # Keep draining so the producer never blocks on a full queue.
                continue
            try:
                painter.draw_pixel(buffer, task.x, task.y)
                done += 1
                if advance is not None:
                    advance(1)
            except Exception as e:
                failed = True
                logger.exception("Pixel (%s,%s) failed", task.x, task.y)
                with errors_lock:
                    errors.append(e)
        logger.debug("Consumer finished after %s tasks", done)

    consumers = [
        threading.Thread(target=consume, name=f"consumer-{i}", daemon=True)
        for i in range(workers)
    ]
    for t in consumers:
        t.start()

    def run_producer() -> None:
        try:
            produce(channel, buffer.width, buffer.height)
        except Exception as e:
            logger.exception("Producer failed")
            with errors_lock:
                errors.append(e)

    producer = threading.Thread(target=run_producer, name="producer", daemon=True)
    producer.start()

    producer.join()
    for t in consumers:
        t.join()

    if errors:
        raise errors[0]
