"""Power-event driven control loop."""

from __future__ import annotations

import logging
from enum import Enum
from operator import methodcaller

from orgbsync.core.errors import RetryExhaustedError
from orgbsync.core.executor import ResilientExecutor
from orgbsync.core.mode_select import DIRECT_MODE_NAME, find_direct_mode
from orgbsync.core.model import ExhaustionPolicy, PassReport, PowerEvent, ProfileBinding
from orgbsync.events.base import PowerEventSource

LOGGER = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    BOOTSTRAPPING = "bootstrapping"
    IDLE = "idle"
    APPLYING = "applying"


class Orchestrator:
    def __init__(
        self,
        executor: ResilientExecutor,
        *,
        expected_controllers: int = 4,
        direct_mode: str = DIRECT_MODE_NAME,
        default_profile: str = "Blue",
        profiles: ProfileBinding | None = None,
    ) -> None:
        self.executor = executor
        self.expected_controllers = expected_controllers
        self.direct_mode = direct_mode
        self.default_profile = default_profile
        self.profiles = profiles or ProfileBinding()
        self._state = OrchestratorState.BOOTSTRAPPING

    @property
    def state(self) -> OrchestratorState:
        return self._state

    async def bootstrap(self) -> PassReport:
        """Connect, wait for the controllers to settle, and load the default profile.

        Exhaustion while connecting or settling the controller count is fatal:
        it propagates, or ends the process under ``ExhaustionPolicy.EXIT``.
        """
        self._state = OrchestratorState.BOOTSTRAPPING
        try:
            await self.executor.connect()
            await self.executor.ensure_controller_count(self.expected_controllers)
        except RetryExhaustedError:
            if self.executor.policy.on_exhausted is ExhaustionPolicy.EXIT:
                LOGGER.error("Bootstrap failed, exiting")
                raise SystemExit(1) from None
            raise
        report = await self._direct_pass()
        await self.apply_profile(self.default_profile)
        self._state = OrchestratorState.IDLE
        return report

    async def run(self, events: PowerEventSource) -> None:
        await self.bootstrap()
        while True:
            event = await events.next_event()
            LOGGER.info("Received power event: %s", event.value)
            await self.handle_event(event)

    async def handle_event(self, event: PowerEvent) -> PassReport:
        self._state = OrchestratorState.APPLYING
        try:
            report = await self._direct_pass()
            await self.apply_profile(self.profiles.profile_for(event))
        finally:
            self._state = OrchestratorState.IDLE
        return report

    async def bring_all_controllers_direct(self) -> PassReport:
        """Switch every enumerated controller to its direct mode.

        Controllers that cannot be fetched, have no direct mode, or reject the
        update are skipped; the pass always continues with the next id.
        """
        count = await self.executor.get_controller_count()
        updated: list[int] = []
        skipped: list[tuple[int, str]] = []

        for controller_id in range(count):
            try:
                controller = await self.executor.execute(
                    methodcaller("get_controller", controller_id),
                    description=f"get controller {controller_id}",
                )
            except RetryExhaustedError as exc:
                LOGGER.warning("Skipping controller %d: %s", controller_id, exc)
                skipped.append((controller_id, "unreachable"))
                continue

            LOGGER.debug("Controller %d: %r", controller_id, controller)
            direct = find_direct_mode(controller, self.direct_mode)
            if direct is None:
                LOGGER.warning(
                    'Unable to find "%s" mode for controller %d (%s)',
                    self.direct_mode,
                    controller_id,
                    controller.name,
                )
                skipped.append((controller_id, "mode not found"))
                continue
            LOGGER.debug(
                'Found "%s" mode for controller %d (%s) at index %d',
                self.direct_mode,
                controller_id,
                controller.name,
                direct.index,
            )

            try:
                await self.executor.execute(
                    methodcaller("update_mode", controller_id, direct.index, direct.mode),
                    description=f'set controller {controller_id} to "{self.direct_mode}" mode',
                )
            except RetryExhaustedError as exc:
                LOGGER.warning("Skipping controller %d: %s", controller_id, exc)
                skipped.append((controller_id, "update failed"))
                continue
            updated.append(controller_id)

        return PassReport(updated=tuple(updated), skipped=tuple(skipped))

    async def apply_profile(self, name: str) -> bool:
        try:
            await self.executor.execute(
                methodcaller("load_profile", name),
                description=f'load profile "{name}"',
            )
        except RetryExhaustedError as exc:
            LOGGER.error("Profile %r was not applied: %s", name, exc)
            return False
        LOGGER.info("Loaded profile %r", name)
        return True

    async def _direct_pass(self) -> PassReport:
        try:
            return await self.bring_all_controllers_direct()
        except RetryExhaustedError as exc:
            LOGGER.error("Direct-mode pass aborted: %s", exc)
            return PassReport(updated=(), skipped=())
