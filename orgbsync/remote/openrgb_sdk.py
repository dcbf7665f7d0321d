"""OpenRGB SDK server client built on ``openrgb-python``."""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from orgbsync.core.errors import (
    ConnectionLostError,
    RemoteDependencyError,
    RemoteOperationError,
)
from orgbsync.core.model import Controller, Mode

T = TypeVar("T")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6742
DEFAULT_CLIENT_NAME = "ORGB"


def _to_mode(index: int, raw: Any) -> Mode:
    colors = tuple(
        (color.red, color.green, color.blue) for color in (getattr(raw, "colors", None) or ())
    )
    return Mode(index=index, name=str(raw.name), colors=colors, raw=raw)


def _to_controller(controller_id: int, device: Any) -> Controller:
    return Controller(
        id=controller_id,
        name=str(device.name),
        modes=tuple(_to_mode(index, raw) for index, raw in enumerate(device.modes)),
    )


async def _call(description: str, fn: Callable[..., T], *args: Any) -> T:
    try:
        return await asyncio.to_thread(fn, *args)
    except (ConnectionError, OSError) as exc:
        raise ConnectionLostError(f"{description}: {exc}") from exc
    except Exception as exc:
        raise RemoteOperationError(f"{description}: {exc}") from exc


class OpenRGBConnection:
    """One live session with the SDK server.

    ``client`` is an ``openrgb.OpenRGBClient`` instance. The library announces
    ``name`` to the server while connecting.
    """

    def __init__(self, client: Any, name: str = DEFAULT_CLIENT_NAME) -> None:
        self.client = client
        self.name = name

    async def set_client_name(self, name: str) -> None:
        if name != self.name:
            raise RemoteOperationError(
                f"client name is fixed at connect time as {self.name!r}, cannot rename to {name!r}"
            )

    async def get_controller_count(self) -> int:
        def _count() -> int:
            self.client.update()
            return len(self.client.devices)

        return await _call("get controller count", _count)

    async def get_controller(self, controller_id: int) -> Controller:
        def _fetch() -> Controller:
            return _to_controller(controller_id, self.client.devices[controller_id])

        return await _call(f"get controller {controller_id}", _fetch)

    async def update_mode(self, controller_id: int, mode_index: int, mode: Mode) -> None:
        def _update() -> None:
            device = self.client.devices[controller_id]
            device.set_mode(mode.raw if mode.raw is not None else mode_index)

        await _call(f"update mode of controller {controller_id}", _update)

    async def load_profile(self, name: str) -> None:
        await _call(f'load profile "{name}"', self.client.load_profile, name)

    async def close(self) -> None:
        await _call("disconnect", self.client.disconnect)


class OpenRGBConnector:
    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        client_name: str = DEFAULT_CLIENT_NAME,
    ) -> None:
        self.host = host
        self.port = port
        self.client_name = client_name

    async def connect(self) -> OpenRGBConnection:
        try:
            from openrgb import OpenRGBClient  # type: ignore
        except Exception as exc:  # pragma: no cover - import failure path
            raise RemoteDependencyError(
                "OpenRGB support requires 'openrgb-python'. Install dependency and retry."
            ) from exc

        client = await _call(
            f"connect to {self.host}:{self.port}",
            functools.partial(OpenRGBClient, self.host, self.port, name=self.client_name),
        )
        return OpenRGBConnection(client, self.client_name)
