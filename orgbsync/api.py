"""Stable public API for building tooling on top of orgbsync.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from orgbsync.core.config import LoadedSettings, load_settings
from orgbsync.core.errors import (
    ConfigLoadError,
    ConfigValidationError,
    ConnectionLostError,
    ControllerCountMismatchError,
    EventFeedClosedError,
    OrgbsyncError,
    RemoteDependencyError,
    RemoteError,
    RemoteOperationError,
    RetryExhaustedError,
)
from orgbsync.core.executor import ExecutorState, ResilientExecutor, SleepFn
from orgbsync.core.mode_select import find_direct_mode
from orgbsync.core.model import (
    Controller,
    DirectMode,
    ExhaustionPolicy,
    Mode,
    PassReport,
    PowerEvent,
    ProfileBinding,
    RetryPolicy,
    Settings,
)
from orgbsync.core.orchestrator import Orchestrator, OrchestratorState
from orgbsync.events.base import PowerEventSource
from orgbsync.events.queue import PowerEventQueue
from orgbsync.remote.base import RemoteConnection, RemoteConnector
from orgbsync.remote.openrgb_sdk import OpenRGBConnector

__all__ = [
    "OrgbsyncError",
    "ConfigLoadError",
    "ConfigValidationError",
    "RemoteError",
    "ConnectionLostError",
    "RemoteOperationError",
    "ControllerCountMismatchError",
    "RemoteDependencyError",
    "RetryExhaustedError",
    "EventFeedClosedError",
    "Controller",
    "DirectMode",
    "ExhaustionPolicy",
    "Mode",
    "PassReport",
    "PowerEvent",
    "ProfileBinding",
    "RetryPolicy",
    "Settings",
    "LoadedSettings",
    "load_settings",
    "find_direct_mode",
    "ExecutorState",
    "ResilientExecutor",
    "OrchestratorState",
    "Orchestrator",
    "PowerEventSource",
    "PowerEventQueue",
    "RemoteConnection",
    "RemoteConnector",
    "OpenRGBConnector",
    "LightingSync",
]


class LightingSync:
    """Public entry point wiring settings, executor, and orchestrator together.

    By default it talks to the OpenRGB SDK server named in ``settings``; pass
    ``connector`` to use another remote client.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        connector: RemoteConnector | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.executor = ResilientExecutor(
            connector
            or OpenRGBConnector(self.settings.host, self.settings.port, self.settings.client_name),
            policy=self.settings.retry,
            client_name=self.settings.client_name,
            sleep=sleep,
        )
        self.orchestrator = Orchestrator(
            self.executor,
            expected_controllers=self.settings.expected_controllers,
            direct_mode=self.settings.direct_mode,
            default_profile=self.settings.default_profile,
            profiles=self.settings.profiles,
        )

    async def run(self, events: PowerEventSource) -> None:
        await self.orchestrator.run(events)

    async def sync_direct(self) -> PassReport:
        return await self.orchestrator.bring_all_controllers_direct()

    async def apply_event(self, event: PowerEvent) -> PassReport:
        return await self.orchestrator.handle_event(event)

    async def load_profile(self, name: str) -> bool:
        return await self.orchestrator.apply_profile(name)

    async def close(self) -> None:
        await self.executor.disconnect()
