"""Shared CLI helpers: exit codes, console output and logging setup."""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from confchain.core.config import get_config

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2

# Shared console for output
console = Console()

# Log messages go to stderr so structured output on stdout stays parseable
_err_console = Console(stderr=True)


def _setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging with a rich handler.

    Args:
        verbose: Log at DEBUG level.
        quiet: Log errors only. Ignored when verbose is set.

    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=verbose, rich_tracebacks=verbose)],
        force=True,
    )


def _error(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")


def _success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def _resolve_config_path(path: Path) -> Path:
    """Return the configuration file to evaluate for a CLI path argument.

    A directory resolves to its configured default file name.

    Raises:
        typer.Exit: If the path does not exist.

    """
    if path.is_dir():
        path = path / get_config().default_filename
    if not path.exists():
        _error(f"Configuration file not found: {path}")
        raise typer.Exit(code=EXIT_ERROR)
    return path
