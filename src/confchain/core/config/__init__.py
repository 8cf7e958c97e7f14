"""Evaluator settings loading.

Settings are held in a module-level singleton so library entry points and the
CLI share one validated EvaluatorConfig:

- load_config(): validate a dict and install it as the active config
- load_config_file(): read a YAML file, deep-merge it over defaults, install it
- get_config(): return the active config (defaults when nothing was loaded)
- _reset_config(): clear the singleton (tests)

Usage:
    from confchain.core.config import get_config, load_config_file

    load_config_file(Path("confchain.yaml"))
    max_sweeps = get_config().max_sweeps
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from confchain.core.config.models import DEFAULT_EVALUATOR_CONFIG, EvaluatorConfig
from confchain.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Environment variable naming a YAML settings file for the CLI
CONFIG_ENV_VAR = "CONFCHAIN_CONFIG"

# Settings file looked up in the working directory
PROJECT_CONFIG_NAME = "confchain.yaml"

_config: EvaluatorConfig | None = None

__all__ = [
    "CONFIG_ENV_VAR",
    "PROJECT_CONFIG_NAME",
    "EvaluatorConfig",
    "DEFAULT_EVALUATOR_CONFIG",
    "get_config",
    "load_config",
    "load_config_file",
    "find_config_file",
    "_deep_merge",
    "_reset_config",
]


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base without mutating either.

    Nested dicts are merged key by key; any other value in override replaces
    the base value. Lists are replaced, not concatenated.

    Args:
        base: Base dictionary.
        override: Dictionary whose values take precedence.

    Returns:
        New merged dictionary sharing no mutable state with the inputs.

    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_config(config_data: dict[str, Any] | None = None) -> EvaluatorConfig:
    """Validate settings and install them as the active config.

    Args:
        config_data: Raw settings. None or empty dict installs defaults.

    Returns:
        The validated EvaluatorConfig.

    Raises:
        ConfigError: If the settings fail validation.

    """
    global _config

    if config_data is not None and not isinstance(config_data, dict):
        raise ConfigError(
            f"Configuration must be a mapping, got {type(config_data).__name__}"
        )

    merged = _deep_merge(DEFAULT_EVALUATOR_CONFIG.model_dump(), config_data or {})
    try:
        _config = EvaluatorConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration:\n{e}") from e

    logger.debug("Loaded evaluator config: %s", _config)
    return _config


def load_config_file(path: Path) -> EvaluatorConfig:
    """Load settings from a YAML file and install them as the active config.

    An empty file is treated as an empty mapping.

    Args:
        path: YAML settings file.

    Returns:
        The validated EvaluatorConfig.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or fails
            validation.

    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")

    logger.info("Loading configuration from %s", path)
    return load_config(data)


def find_config_file(cwd: Path | None = None) -> Path | None:
    """Locate the settings file for the CLI.

    Looks at CONFCHAIN_CONFIG first, then confchain.yaml in cwd.

    Args:
        cwd: Directory to search. Defaults to the process working directory.

    Returns:
        Path to the settings file, or None if neither exists.

    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    candidate = (cwd or Path.cwd()) / PROJECT_CONFIG_NAME
    if candidate.is_file():
        return candidate
    return None


def get_config() -> EvaluatorConfig:
    """Return the active config, falling back to defaults."""
    if _config is None:
        return DEFAULT_EVALUATOR_CONFIG
    return _config


def _reset_config() -> None:
    """Clear the active config. Intended for tests."""
    global _config
    _config = None
