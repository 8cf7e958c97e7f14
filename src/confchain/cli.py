"""confchain command line interface.

Usage:
    confchain eval PATH [--format text|json|yaml]
    confchain globals PATH
    confchain graph PATH
    confchain config show
    confchain config verify [FILE]

Settings are read from --config, the CONFCHAIN_CONFIG environment variable or
./confchain.yaml, in that order.
"""

import logging
from pathlib import Path

import typer

from confchain import __version__
from confchain.cli_utils import EXIT_CONFIG_ERROR, EXIT_SUCCESS, _error, _setup_logging, console
from confchain.commands import variables
from confchain.commands.config import config_app
from confchain.core.config import find_config_file, load_config, load_config_file
from confchain.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="confchain",
    help="Resolve locals and globals across chains of included configuration files",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
variables.register(app)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"confchain {__version__}")
        raise typer.Exit(code=EXIT_SUCCESS)


@app.callback()
def main(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to settings file (default: $CONFCHAIN_CONFIG or ./confchain.yaml)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output with debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Load settings and configure logging for all commands."""
    _setup_logging(verbose=verbose, quiet=quiet)

    config_path = config or find_config_file()
    try:
        if config_path is None:
            load_config()
        else:
            load_config_file(config_path)
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None
    logger.debug("Using settings from %s", config_path or "defaults")


if __name__ == "__main__":
    app()
