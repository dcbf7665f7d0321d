"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer

from orgbsync.api import LightingSync
from orgbsync.core.config import load_settings
from orgbsync.core.errors import OrgbsyncError
from orgbsync.core.model import PassReport, PowerEvent, Settings
from orgbsync.events.queue import PowerEventQueue
from orgbsync.events.stream import start_line_feed

T = TypeVar("T")

app = typer.Typer(help="Keep OpenRGB lighting in step with sleep and wake")


@dataclasses.dataclass(frozen=True)
class _Options:
    config: Path | None = None
    host: str | None = None
    port: int | None = None


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    host: str | None = typer.Option(None, "--host", help="OpenRGB SDK server host"),
    port: int | None = typer.Option(None, "--port", help="OpenRGB SDK server port"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every retry"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.obj = _Options(config=config, host=host, port=port)


def _load(ctx: typer.Context) -> tuple[Settings, Path | None]:
    options: _Options = ctx.obj or _Options()
    loaded = load_settings(options.config)
    for warning in loaded.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    settings = loaded.settings
    if options.host is not None:
        settings = dataclasses.replace(settings, host=options.host)
    if options.port is not None:
        settings = dataclasses.replace(settings, port=options.port)
    return settings, loaded.source


def _build_sync(ctx: typer.Context) -> LightingSync:
    settings, _ = _load(ctx)
    return LightingSync(settings)


def _once(sync: LightingSync, step: Callable[[], Awaitable[T]]) -> T:
    async def _run() -> T:
        try:
            return await step()
        finally:
            await sync.close()

    return asyncio.run(_run())


def _echo_report(report: PassReport) -> None:
    if report.updated:
        typer.echo(f"Direct mode set on controllers: {', '.join(str(i) for i in report.updated)}")
    else:
        typer.echo("No controller switched to direct mode")
    for controller_id, reason in report.skipped:
        typer.echo(f"Skipped controller {controller_id}: {reason}")


async def _follow_stdin(sync: LightingSync) -> None:
    queue = PowerEventQueue()
    start_line_feed(queue, asyncio.get_running_loop())
    try:
        await sync.run(queue)
    finally:
        await sync.close()


@app.command("run")
def run_daemon(ctx: typer.Context) -> None:
    """Bootstrap the controllers, then follow power events from stdin.

    Each input line is one event: wake/resume/display-on or sleep/suspend/display-off.
    """
    try:
        sync = _build_sync(ctx)
        asyncio.run(_follow_stdin(sync))
    except OrgbsyncError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("direct")
def set_direct(ctx: typer.Context) -> None:
    """Switch every controller to its direct mode once."""
    try:
        sync = _build_sync(ctx)
        report = _once(sync, sync.sync_direct)
        _echo_report(report)
    except OrgbsyncError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("apply")
def apply_event(
    ctx: typer.Context,
    event: PowerEvent = typer.Argument(..., help="Power event to replay"),
) -> None:
    """Run the steps for one power event: direct mode, then its profile."""
    try:
        sync = _build_sync(ctx)
        report = _once(sync, lambda: sync.apply_event(event))
        _echo_report(report)
        typer.echo(f"Profile for {event.value}: {sync.settings.profiles.profile_for(event)}")
    except OrgbsyncError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("profile")
def load_profile(ctx: typer.Context, name: str) -> None:
    """Load a profile stored by the OpenRGB server."""
    try:
        sync = _build_sync(ctx)
        if not _once(sync, lambda: sync.load_profile(name)):
            typer.echo(f"Error: profile '{name}' was not loaded", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Loaded profile {name}")
    except OrgbsyncError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Print the effective settings."""
    try:
        settings, source = _load(ctx)
    except OrgbsyncError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"Source: {source if source else '<defaults>'}")
    typer.echo(f"server: {settings.host}:{settings.port} as {settings.client_name}")
    typer.echo(f"controllers: {settings.expected_controllers} expected, mode {settings.direct_mode}")
    typer.echo(
        f"profiles: default={settings.default_profile} "
        f"wake={settings.profiles.wake} sleep={settings.profiles.sleep}"
    )
    typer.echo(
        f"retry: {settings.retry.max_attempts} attempts every {settings.retry.backoff_s}s, "
        f"on exhaustion {settings.retry.on_exhausted.value}"
    )


def run() -> None:
    app()


if __name__ == "__main__":
    run()
