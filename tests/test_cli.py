from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from orgbsync import cli
from orgbsync.core.errors import EventFeedClosedError, RetryExhaustedError
from orgbsync.core.model import PassReport, PowerEvent, Settings


class FakeSync:
    instances: list[FakeSync] = []

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.events: list[PowerEvent] = []
        self.profiles: list[str] = []
        self.closed = False
        FakeSync.instances.append(self)

    async def run(self, events) -> None:
        while True:
            self.events.append(await events.next_event())

    async def sync_direct(self) -> PassReport:
        return PassReport(updated=(0, 1, 3), skipped=((2, "mode not found"),))

    async def apply_event(self, event: PowerEvent) -> PassReport:
        self.events.append(event)
        return await self.sync_direct()

    async def load_profile(self, name: str) -> bool:
        self.profiles.append(name)
        return name != "Missing"

    async def close(self) -> None:
        self.closed = True


runner = CliRunner()


def _use_fake(monkeypatch) -> None:
    FakeSync.instances = []
    monkeypatch.setattr(cli, "LightingSync", FakeSync)
    monkeypatch.setenv("XDG_CONFIG_HOME", "/nonexistent-orgbsync-test")


def test_direct_command(monkeypatch):
    _use_fake(monkeypatch)
    result = runner.invoke(cli.app, ["direct"])
    assert result.exit_code == 0
    assert "Direct mode set on controllers: 0, 1, 3" in result.stdout
    assert "Skipped controller 2: mode not found" in result.stdout
    assert FakeSync.instances[0].closed


def test_apply_command(monkeypatch):
    _use_fake(monkeypatch)
    result = runner.invoke(cli.app, ["apply", "sleep"])
    assert result.exit_code == 0
    assert FakeSync.instances[0].events == [PowerEvent.SLEEP]
    assert "Profile for sleep: Black" in result.stdout


def test_profile_command(monkeypatch):
    _use_fake(monkeypatch)
    result = runner.invoke(cli.app, ["profile", "Blue"])
    assert result.exit_code == 0
    assert "Loaded profile Blue" in result.stdout


def test_profile_command_failure(monkeypatch):
    _use_fake(monkeypatch)
    result = runner.invoke(cli.app, ["profile", "Missing"])
    assert result.exit_code == 1
    assert "Error: profile 'Missing' was not loaded" in result.stderr


def test_host_and_port_override(monkeypatch):
    _use_fake(monkeypatch)
    result = runner.invoke(cli.app, ["--host", "10.1.1.1", "--port", "7001", "direct"])
    assert result.exit_code == 0
    settings = FakeSync.instances[0].settings
    assert (settings.host, settings.port) == ("10.1.1.1", 7001)


def test_run_reads_events_from_stdin_until_eof(monkeypatch):
    _use_fake(monkeypatch)
    result = runner.invoke(cli.app, ["run"], input="wake\nsleep\n")
    assert result.exit_code == 1
    assert FakeSync.instances[0].events == [PowerEvent.WAKE, PowerEvent.SLEEP]
    assert "Error: Power event feed closed" in result.stderr
    assert FakeSync.instances[0].closed


def test_bootstrap_failure_exits_cleanly(monkeypatch):
    class FailingSync(FakeSync):
        async def run(self, events) -> None:
            raise RetryExhaustedError("connect to the lighting daemon", 100, None)

    _use_fake(monkeypatch)
    monkeypatch.setattr(cli, "LightingSync", FailingSync)
    result = runner.invoke(cli.app, ["run"], input="")
    assert result.exit_code == 1
    assert "Error: Unable to connect to the lighting daemon after 100 attempts" in result.stderr
    assert "Traceback" not in result.stdout
    assert "Traceback" not in result.stderr
    assert FakeSync.instances[0].closed


def test_feed_loss_during_one_shot_is_reported(monkeypatch):
    class LostSync(FakeSync):
        async def sync_direct(self) -> PassReport:
            raise EventFeedClosedError("gone")

    _use_fake(monkeypatch)
    monkeypatch.setattr(cli, "LightingSync", LostSync)
    result = runner.invoke(cli.app, ["direct"])
    assert result.exit_code == 1
    assert LostSync.instances[0].closed


def test_config_command_shows_file(monkeypatch, tmp_path: Path):
    _use_fake(monkeypatch)
    config = tmp_path / "config.yaml"
    config.write_text("retry:\n  max_attempts: 7\n  on_exhausted: exit\n", encoding="utf-8")
    result = runner.invoke(cli.app, ["--config", str(config), "config"])
    assert result.exit_code == 0
    assert f"Source: {config}" in result.stdout
    assert "retry: 7 attempts every 3.0s, on exhaustion exit" in result.stdout


def test_config_command_rejects_bad_file(monkeypatch, tmp_path: Path):
    _use_fake(monkeypatch)
    config = tmp_path / "config.yaml"
    config.write_text("unknown: 1\n", encoding="utf-8")
    result = runner.invoke(cli.app, ["--config", str(config), "config"])
    assert result.exit_code == 1
    assert "Error: Schema validation failed" in result.stderr
