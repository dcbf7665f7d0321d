"""Core data models used across executor, orchestrator, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PowerEvent(str, Enum):
    WAKE = "wake"
    SLEEP = "sleep"


class ExhaustionPolicy(str, Enum):
    RAISE = "raise"
    EXIT = "exit"


@dataclass(frozen=True)
class Mode:
    index: int
    name: str
    colors: tuple[Any, ...] = ()
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Controller:
    id: int
    name: str
    modes: tuple[Mode, ...]


@dataclass(frozen=True)
class DirectMode:
    index: int
    mode: Mode


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 100
    backoff_s: float = 3.0
    on_exhausted: ExhaustionPolicy = ExhaustionPolicy.RAISE


@dataclass(frozen=True)
class ProfileBinding:
    wake: str = "Blue"
    sleep: str = "Black"

    def profile_for(self, event: PowerEvent) -> str:
        if event is PowerEvent.WAKE:
            return self.wake
        return self.sleep


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 6742
    client_name: str = "ORGB"
    expected_controllers: int = 4
    direct_mode: str = "Direct"
    default_profile: str = "Blue"
    profiles: ProfileBinding = field(default_factory=ProfileBinding)
    retry: RetryPolicy = field(default_factory=RetryPolicy)


@dataclass(frozen=True)
class PassReport:
    """Outcome of one "all controllers to direct mode" pass."""

    updated: tuple[int, ...]
    skipped: tuple[tuple[int, str], ...]
