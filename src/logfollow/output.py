"""Terminal notices using rich.

Everything here goes to stderr; stdout carries the followed lines only.
"""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box
from rich.markup import escape

from .state import PositionRecord


console = Console(stderr=True)


def print_startup(path: Path, skip_to_end: bool, state_file: Path | None) -> None:
    """Print startup message."""
    details = []
    if skip_to_end:
        details.append("starting at end of file")
    if state_file:
        details.append(f"position saved to [green]{state_file}[/green]")
    extra = f"\n[dim]{', '.join(details)}[/dim]" if details else ""

    console.print(
        Panel(
            f"[bold cyan]logfollow[/bold cyan] is following [green]{path}[/green]{extra}\n"
            "[dim]Press Ctrl+C to stop[/dim]",
            box=box.ROUNDED,
            border_style="cyan",
        )
    )


def print_file_opened(path: Path, identity: tuple[int, int] | None, offset: int) -> None:
    device, inode = identity or (0, 0)
    console.print(
        f"[cyan]==>[/cyan] opened [green]{path}[/green] "
        f"[dim](device {device}, inode {inode}, offset {offset})[/dim]"
    )


def print_file_closed(path: Path, offset: int) -> None:
    console.print(f"[cyan]<==[/cyan] closed [green]{path}[/green] [dim](offset {offset})[/dim]")


def print_position(state_file: Path, record: PositionRecord | None) -> None:
    """Print the saved position held in a state file."""
    if record is None:
        console.print(f"[yellow]No saved position in {state_file}[/yellow]")
        return

    table = Table(title="Saved Position", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("State file", str(state_file))
    table.add_row("Device", str(record.device))
    table.add_row("Inode", str(record.inode))
    table.add_row("Offset", str(record.offset))

    console.print(table)


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[cyan]{escape(message)}[/cyan]")
