"""Power event source interface."""

from __future__ import annotations

from typing import Protocol

from orgbsync.core.model import PowerEvent


class PowerEventSource(Protocol):
    async def next_event(self) -> PowerEvent:
        """Wait for the next power event.

        Raises EventFeedClosedError once the feed is gone.
        """
