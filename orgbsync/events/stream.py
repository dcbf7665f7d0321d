"""Line-oriented power event feed read from a text stream."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from collections.abc import Callable
from typing import Any, TextIO

from orgbsync.core.model import PowerEvent
from orgbsync.events.queue import PowerEventQueue

_TOKENS = {
    "wake": PowerEvent.WAKE,
    "resume": PowerEvent.WAKE,
    "display-on": PowerEvent.WAKE,
    "1": PowerEvent.WAKE,
    "sleep": PowerEvent.SLEEP,
    "suspend": PowerEvent.SLEEP,
    "display-off": PowerEvent.SLEEP,
    "0": PowerEvent.SLEEP,
}
LOGGER = logging.getLogger(__name__)


def parse_power_event(line: str) -> PowerEvent | None:
    return _TOKENS.get(line.strip().lower())


def _post(loop: asyncio.AbstractEventLoop, callback: Callable[..., Any], *args: Any) -> bool:
    try:
        loop.call_soon_threadsafe(callback, *args)
    except RuntimeError:
        # loop already closed
        return False
    return True


def start_line_feed(
    queue: PowerEventQueue,
    loop: asyncio.AbstractEventLoop,
    stream: TextIO | None = None,
) -> threading.Thread:
    """Read events from ``stream`` on a daemon thread and publish them to ``queue``.

    End of input closes the queue.
    """
    source = stream or sys.stdin

    def _feed() -> None:
        try:
            for line in source:
                if not line.strip():
                    continue
                event = parse_power_event(line)
                if event is None:
                    LOGGER.warning("Ignoring unrecognised power event line: %r", line.strip())
                    continue
                if not _post(loop, queue.publish, event):
                    return
            LOGGER.info("Power event stream reached end of input")
        finally:
            _post(loop, queue.close)

    thread = threading.Thread(target=_feed, name="orgbsync-events", daemon=True)
    thread.start()
    return thread
