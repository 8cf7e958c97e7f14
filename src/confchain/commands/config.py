"""Config command group for confchain.

Provides commands to inspect and check evaluator settings:
- `confchain config show`: Print the active settings as YAML
- `confchain config verify`: Validate a settings file

Example:
    $ confchain config show
    $ confchain --config ./confchain.yaml config show
    $ confchain config verify ~/project/confchain.yaml
"""

import logging
from pathlib import Path

import typer
import yaml

from confchain.cli_utils import EXIT_CONFIG_ERROR, EXIT_SUCCESS, _error, _success, console
from confchain.core.config import PROJECT_CONFIG_NAME, get_config, load_config_file
from confchain.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

config_app = typer.Typer(
    name="config",
    help="Configuration management commands",
    no_args_is_help=True,
)


@config_app.command(name="show")
def show_command() -> None:
    """Print the active evaluator settings as YAML.

    Settings come from --config, CONFCHAIN_CONFIG or ./confchain.yaml,
    deep-merged over the defaults.
    """
    data = get_config().model_dump()
    # Plain print keeps the YAML free of Rich markup and wrapping
    print(yaml.safe_dump(data, sort_keys=True, default_flow_style=False), end="")


@config_app.command(name="verify")
def verify_command(
    config: Path = typer.Argument(
        None,
        help="Path to settings file (default: ./confchain.yaml)",
    ),
) -> None:
    """Verify a settings file for YAML and validation errors.

    Exits with code 0 if valid, 2 if the file is missing or invalid.
    """
    if config is None:
        config = Path(PROJECT_CONFIG_NAME)

    config_path = config.resolve()

    if not config_path.exists():
        console.print(f"[red][ERR][/red] Config file not found: {config_path}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    if not config_path.is_file():
        console.print(f"[red][ERR][/red] Not a file: {config_path}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    try:
        loaded = load_config_file(config_path)
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    logger.debug("Verified settings: %s", loaded)
    _success(f"[OK] {config_path}")
    raise typer.Exit(code=EXIT_SUCCESS)
