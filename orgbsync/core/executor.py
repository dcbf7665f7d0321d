"""Bounded-retry execution of remote calls with reconnect on connection loss."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from operator import methodcaller
from typing import NoReturn, TypeVar

from orgbsync.core.errors import (
    ConnectionLostError,
    ControllerCountMismatchError,
    RemoteError,
    RetryExhaustedError,
)
from orgbsync.core.model import RetryPolicy
from orgbsync.remote.base import RemoteConnection, RemoteConnector

T = TypeVar("T")
Operation = Callable[[RemoteConnection], Awaitable[T]]
SleepFn = Callable[[float], Awaitable[None]]

DEFAULT_CLIENT_NAME = "ORGB"
LOGGER = logging.getLogger(__name__)


class ExecutorState(str, Enum):
    NO_CONNECTION = "no_connection"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ResilientExecutor:
    """Runs every remote call through one retry/reconnect policy.

    The executor owns at most one connection. It is meant for a single
    logical caller and does no locking of its own.
    """

    def __init__(
        self,
        connector: RemoteConnector,
        *,
        policy: RetryPolicy | None = None,
        client_name: str = DEFAULT_CLIENT_NAME,
        sleep: SleepFn | None = None,
    ) -> None:
        self.connector = connector
        self.policy = policy or RetryPolicy()
        self.client_name = client_name
        self._sleep = sleep or asyncio.sleep
        self._connection: RemoteConnection | None = None
        self._state = ExecutorState.NO_CONNECTION

    @property
    def state(self) -> ExecutorState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> RemoteConnection:
        """Connect, retrying up to ``max_attempts`` times.

        The first try is immediate; later tries wait ``backoff_s``. An
        already-held connection is returned as is.
        """
        if self._connection is not None:
            return self._connection

        max_attempts = self.policy.max_attempts
        last_error: RemoteError | None = None
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                await self._sleep(self.policy.backoff_s)
            try:
                return await self._open()
            except RemoteError as exc:
                last_error = exc
                LOGGER.debug(
                    "Unable to connect to lighting daemon, %d retries left: %s",
                    max_attempts - attempt,
                    exc,
                )
        self._exhausted("connect to the lighting daemon", max_attempts, last_error)

    async def disconnect(self) -> None:
        connection, self._connection = self._connection, None
        self._state = ExecutorState.NO_CONNECTION
        if connection is None:
            return
        try:
            await connection.close()
        except RemoteError as exc:
            LOGGER.debug("Ignoring error while closing connection: %s", exc)

    async def execute(self, operation: Operation[T], *, description: str = "run remote operation") -> T:
        """Run ``operation`` against the held connection, connecting on demand.

        Connection-lost errors discard the connection so the next attempt
        reconnects; other remote errors are retried on the same connection.
        Connect tries and operation tries share the ``max_attempts`` budget.
        """
        max_attempts = self.policy.max_attempts
        last_error: RemoteError | None = None
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                await self._sleep(self.policy.backoff_s)
            try:
                connection = self._connection or await self._open()
                return await operation(connection)
            except ConnectionLostError as exc:
                self._drop(exc)
                last_error = exc
            except RemoteError as exc:
                last_error = exc
            LOGGER.debug(
                "Unable to %s, %d retries left: %s",
                description,
                max_attempts - attempt,
                last_error,
            )
        self._exhausted(description, max_attempts, last_error)

    async def ensure_controller_count(self, expected: int) -> int:
        """Wait until the daemon enumerates exactly ``expected`` controllers."""

        async def _check(connection: RemoteConnection) -> int:
            count = await connection.get_controller_count()
            if count != expected:
                raise ControllerCountMismatchError(expected, count)
            return count

        count = await self.execute(_check, description=f"settle controller count at {expected}")
        LOGGER.info("Controller count: %d", count)
        return count

    async def get_controller_count(self) -> int:
        return await self.execute(
            methodcaller("get_controller_count"),
            description="get controller count",
        )

    async def _open(self) -> RemoteConnection:
        self._state = ExecutorState.CONNECTING
        connection: RemoteConnection | None = None
        try:
            connection = await self.connector.connect()
        finally:
            if connection is None:
                self._state = ExecutorState.NO_CONNECTION

        LOGGER.info("Connected to lighting daemon")
        try:
            await connection.set_client_name(self.client_name)
        except RemoteError as exc:
            LOGGER.warning("Unable to set client name %r: %s", self.client_name, exc)

        self._connection = connection
        self._state = ExecutorState.CONNECTED
        return connection

    def _drop(self, reason: ConnectionLostError) -> None:
        if self._connection is not None:
            LOGGER.info("Connection to lighting daemon lost: %s", reason)
        self._connection = None
        self._state = ExecutorState.NO_CONNECTION

    def _exhausted(self, description: str, attempts: int, last_error: RemoteError | None) -> NoReturn:
        LOGGER.error("Unable to %s after %d attempts: %s", description, attempts, last_error)
        raise RetryExhaustedError(description, attempts, last_error)
