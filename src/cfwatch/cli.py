"""CLI interface for the Codeforces dashboard using Typer."""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler

from cfwatch.client import CodeforcesClient
from cfwatch.exceptions import CodeforcesError, ConfigError
from cfwatch.models import DEFAULT_CONFIG, Config
from cfwatch.render import render_dashboard
from cfwatch.scheduler import DashboardSnapshot, RefreshScheduler, RefreshState

app = typer.Typer(help="Watch a Codeforces user's progress from your terminal")
console = Console()

HANDLE_HELP = "Codeforces handle to track"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def _handle_error(e: Exception) -> None:
    """Handle common exceptions with user-friendly messages."""
    if isinstance(e, CodeforcesError):
        console.print(f"[red]{e.message}[/red]")
    else:
        console.print(f"[red]Error: {e}[/red]")
    raise typer.Exit(1)


def _client_for(config: Config) -> CodeforcesClient:
    return CodeforcesClient(base_url=config.api_base_url, timeout=config.timeout)


async def _watch(config: Config) -> None:
    async with _client_for(config) as client:
        scheduler = RefreshScheduler(client, config)
        with Live(render_dashboard(scheduler.snapshot, config), console=console, auto_refresh=False) as live:
            scheduler.subscribe(lambda snapshot: live.update(render_dashboard(snapshot, config), refresh=True))
            async with scheduler:
                # Runs until Ctrl-C cancels the main task.
                await asyncio.Event().wait()


async def _fetch_once(config: Config) -> DashboardSnapshot:
    async with _client_for(config) as client:
        scheduler = RefreshScheduler(client, config)
        try:
            await scheduler.refresh()
        finally:
            await scheduler.stop()
        return scheduler.snapshot


@app.command()
def watch(
    handle: Optional[str] = typer.Option(None, "--handle", "-u", help=HANDLE_HELP),
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", help="Seconds between refreshes (default 60)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """Show a live dashboard that refreshes on a fixed interval."""
    _configure_logging(verbose)
    try:
        config = DEFAULT_CONFIG.with_overrides(handle=handle, refresh_interval=interval)
    except ConfigError as e:
        _handle_error(e)

    try:
        asyncio.run(_watch(config))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")


@app.command()
def show(
    handle: Optional[str] = typer.Option(None, "--handle", "-u", help=HANDLE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """Fetch once and print the dashboard."""
    _configure_logging(verbose)
    try:
        config = DEFAULT_CONFIG.with_overrides(handle=handle)
    except ConfigError as e:
        _handle_error(e)

    snapshot = asyncio.run(_fetch_once(config))

    if snapshot.state is RefreshState.ERROR:
        console.print(f"[red]{snapshot.error}[/red]")
        raise typer.Exit(1)

    console.print(render_dashboard(snapshot, config))


if __name__ == "__main__":
    app()
