"""UI helpers for CLI interaction.

Keeps presentation logic (rich tables, error reporting) separate from the
sync use case.
"""

from collections.abc import Callable, Sequence
import functools
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.table import Table
import typer

from lovesync.config import get_logger
from lovesync.domain.entities import SyncResult
from lovesync.domain.exceptions import LoveSyncError

P = ParamSpec("P")
R = TypeVar("R")

# Initialize console and logger
console = Console()
logger = get_logger(__name__)


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Known lovesync errors are reported in one line; anything else is logged
    with its traceback. Both end in exit code 1.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except (typer.Exit, typer.Abort):
                raise

            except LoveSyncError as e:
                logger.error(f"{operation} failed: {e}", error_type=type(e).__name__)
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def display_sync_results(results: Sequence[SyncResult]) -> None:
    """Render one row per destination."""
    if not results:
        console.print("[yellow]No destinations to sync[/yellow]")
        return

    dry_run = any(result.dry_run for result in results)
    title = "Sync Results (dry run)" if dry_run else "Sync Results"
    table = Table(title=title)
    table.add_column("Destination", style="cyan")
    table.add_column("Source", justify="right")
    table.add_column("Destination", justify="right")
    table.add_column("To Love", justify="right", style="green")
    table.add_column("To Unlove", justify="right", style="yellow")
    table.add_column("Status")
    table.add_column("Duration", justify="right", style="dim")

    for result in results:
        if not result.success:
            status = f"[red]✗ {result.error}[/red]"
        elif result.dry_run:
            status = "[blue]planned[/blue]"
        else:
            status = (
                f"[green]✓[/green] loved {result.loved_count}, "
                f"unloved {result.unloved_count}"
            )
        table.add_row(
            result.destination,
            str(result.source_count),
            str(result.destination_count),
            str(len(result.to_love)),
            str(len(result.to_unlove)),
            status,
            f"{result.execution_time:.1f}s",
        )

    console.print(table)


def display_planned_changes(results: Sequence[SyncResult]) -> None:
    """List every track a dry run would love or unlove."""
    for result in results:
        if not result.success or not (result.to_love or result.to_unlove):
            continue

        table = Table(title=f"Planned changes for {result.destination}")
        table.add_column("Action", style="bold")
        table.add_column("Track", style="green")
        table.add_column("Album", style="dim")

        for track in result.to_love:
            table.add_row("[green]love[/green]", track.display_name, track.album)
        for track in result.to_unlove:
            table.add_row("[yellow]unlove[/yellow]", track.display_name, track.album)

        console.print(table)
