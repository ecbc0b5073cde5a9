"""In-memory fan-out publisher.

One bounded asyncio.Queue per connected subscriber. ``publish`` never awaits:
a subscriber whose queue is full loses its oldest pending message, so a slow
or stalled display can never hold up race processing.
"""

from __future__ import annotations

import asyncio

from loguru import logger


class StatePublisher:
    def __init__(self, queue_size: int = 256) -> None:
        self._queue_size = queue_size
        self._subscribers: list[asyncio.Queue[dict]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[dict]:
        queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.append(queue)
        logger.debug(f"[PUBLISH] Subscriber attached ({self.subscriber_count} total)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict]) -> None:
        try:
            self._subscribers.remove(queue)
        except ValueError:
            return
        logger.debug(f"[PUBLISH] Subscriber detached ({self.subscriber_count} total)")

    def publish(self, message: dict) -> int:
        """Push ``message`` to every subscriber without waiting.

        Returns:
            Number of subscribers the message was queued for
        """
        for queue in list(self._subscribers):
            offer(queue, message)
        return len(self._subscribers)


def offer(queue: asyncio.Queue[dict], message: dict) -> None:
    """Queue ``message``, discarding the oldest pending message if the queue is full."""
    while True:
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            try:
                dropped = queue.get_nowait()
            except asyncio.QueueEmpty:
                continue
            logger.warning(f"[PUBLISH] Slow subscriber, dropped pending '{dropped.get('type')}' message")
        else:
            return
