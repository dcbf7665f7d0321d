"""Bounded power event queue that drops the oldest event on overflow."""

from __future__ import annotations

import asyncio
import logging
from collections import deque

from orgbsync.core.errors import EventFeedClosedError
from orgbsync.core.model import PowerEvent

DEFAULT_CAPACITY = 16
LOGGER = logging.getLogger(__name__)


class PowerEventQueue:
    """Single-consumer event queue.

    Methods must be called from the event loop thread; producers on other
    threads hand events over with ``loop.call_soon_threadsafe``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._events: deque[PowerEvent] = deque()
        self._ready = asyncio.Event()
        self._closed = False
        self._skipped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._events)

    def publish(self, event: PowerEvent) -> bool:
        """Enqueue ``event``; returns False if the queue is already closed."""
        if self._closed:
            LOGGER.debug("Dropping %s event published after close", event.value)
            return False
        if len(self._events) >= self.capacity:
            self._events.popleft()
            self._skipped += 1
        self._events.append(event)
        self._ready.set()
        return True

    def close(self) -> None:
        self._closed = True
        self._ready.set()

    async def next_event(self) -> PowerEvent:
        while not self._events:
            if self._closed:
                raise EventFeedClosedError("Power event feed closed")
            self._ready.clear()
            await self._ready.wait()

        if self._skipped:
            LOGGER.warning("Skipped %d power events", self._skipped)
            self._skipped = 0
        return self._events.popleft()
