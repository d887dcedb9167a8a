"""lovesync CLI - Main application entry point and commands."""

import asyncio
from importlib.metadata import version
from typing import Annotated

from rich.console import Console
from rich.table import Table
import typer

from lovesync.application.use_cases import (
    SyncLovesCommand,
    SyncLovesUseCase,
    run_periodically,
)
from lovesync.config import get_logger, settings, setup_loguru_logger
from lovesync.infrastructure.cli.ui import (
    command_error_handler,
    display_planned_changes,
    display_sync_results,
)
from lovesync.infrastructure.connectors import build_sources, discover_connectors

VERSION = version("lovesync")

console = Console(width=100)
logger = get_logger(__name__)

app = typer.Typer(
    help=f"💞 lovesync v{VERSION} - Keep loved tracks in sync across music services",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)


@app.command(rich_help_panel="🎵 Sync")
@command_error_handler
def sync(
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Service to copy loved tracks from"),
    ] = None,
    destinations: Annotated[
        str | None,
        typer.Option(
            "--destinations", "-d", help="Comma-separated services to sync to"
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would change without changing it"),
    ] = False,
    remove_other: Annotated[
        bool,
        typer.Option(
            "--remove-other", help="Unlove destination tracks the source does not love"
        ),
    ] = False,
    period: Annotated[
        int | None,
        typer.Option(
            "--period", help="Repeat every N seconds (under 60 runs once)"
        ),
    ] = None,
) -> None:
    """Sync loved tracks from a source service to destination services."""
    command = SyncLovesCommand(
        source=source or settings.sync.source,
        destinations=destinations
        if destinations is not None
        else settings.sync.destination_names,
        dry_run=dry_run or settings.sync.dry_run,
        remove_other=remove_other or settings.sync.remove_other,
    )
    period_seconds = period if period is not None else settings.sync.period_seconds

    use_case = SyncLovesUseCase(sources=build_sources(settings))
    results = asyncio.run(run_periodically(use_case, command, period_seconds))

    display_sync_results(results)
    if command.dry_run:
        display_planned_changes(results)

    failed = [result.destination for result in results if not result.success]
    if failed:
        console.print(f"\n[bold red]✗ Failed destinations:[/bold red] {', '.join(failed)}")
        raise typer.Exit(code=1)


@app.command(rich_help_panel="⚙️ System")
def sources() -> None:
    """List supported services and whether each one is configured."""
    table = Table(title="Services")
    table.add_column("Name", style="cyan")
    table.add_column("Service")
    table.add_column("Configured")

    for name, connector in sorted(discover_connectors().items()):
        configured = connector["factory"](settings) is not None
        table.add_row(
            name,
            connector["description"],
            "[green]✓ yes[/green]" if configured else "[dim]no[/dim]",
        )

    console.print(table)


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(f"[bold bright_blue]💞 lovesync[/bold bright_blue] [dim]v{VERSION}[/dim]")


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize lovesync CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_loguru_logger(verbose)


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
