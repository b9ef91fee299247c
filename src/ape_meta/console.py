"""Shared Rich console for ape-meta CLI output."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

# Global console instance (initialized in CLI)
_console: Console | None = None


def get_console() -> Console:
    """Get the global Rich console instance, creating a default one if unset."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global Rich console instance."""
    global _console
    _console = console


@contextmanager
def make_progress(transient: bool = True) -> Iterator[Progress]:
    """Progress bar for multi-file commands, drawn on the global console.

    Disabled when the console is not a terminal, so piped output stays clean.

    Example:
        with make_progress() as progress:
            task = progress.add_task("Reading...", total=len(files))
            for f in files:
                progress.update(task, advance=1)
    """
    columns = [
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
    ]
    console = get_console()
    with Progress(
        *columns,
        transient=transient,
        console=console,
        disable=not console.is_terminal,
    ) as progress:
        yield progress


def print(*args: Any, **kwargs: Any) -> None:
    """Print to the global console."""
    get_console().print(*args, **kwargs)


def print_json(data: str) -> None:
    """Print a JSON document without Rich markup processing."""
    get_console().print_json(data)


def print_error(message: str) -> None:
    """Print an error message in red."""
    get_console().print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    get_console().print(f"[yellow]Warning: {message}[/yellow]")


def print_success(message: str) -> None:
    """Print a success message in green."""
    get_console().print(f"[green]{message}[/green]")
