"""Direct-mode lookup over a controller's mode list."""

from __future__ import annotations

from orgbsync.core.model import Controller, DirectMode

DIRECT_MODE_NAME = "Direct"


def find_direct_mode(controller: Controller, mode_name: str = DIRECT_MODE_NAME) -> DirectMode | None:
    """Return the first mode named ``mode_name`` with its position, or None.

    The index is positional and is recomputed on every call, since the daemon
    may reorder modes between connections.
    """
    for index, mode in enumerate(controller.modes):
        if mode.name == mode_name:
            return DirectMode(index=index, mode=mode)
    return None
