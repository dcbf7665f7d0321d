"""Remote client interfaces."""

from __future__ import annotations

from typing import Protocol

from orgbsync.core.model import Controller, Mode


class RemoteConnection(Protocol):
    async def set_client_name(self, name: str) -> None:
        """Announce this client's name to the daemon."""

    async def get_controller_count(self) -> int:
        """Return how many controllers the daemon currently enumerates."""

    async def get_controller(self, controller_id: int) -> Controller:
        """Fetch a fresh snapshot of one controller."""

    async def update_mode(self, controller_id: int, mode_index: int, mode: Mode) -> None:
        """Switch a controller to the mode at ``mode_index``."""

    async def load_profile(self, name: str) -> None:
        """Load a profile stored by the daemon."""

    async def close(self) -> None:
        """Release the underlying transport."""


class RemoteConnector(Protocol):
    async def connect(self) -> RemoteConnection:
        """Open a new connection.

        Raises ConnectionLostError when the daemon is unreachable.
        """
