"""Runtime configuration for the nupack CLI.

Settings are resolved with the command line taking precedence over the
config file, which in turn beats the environment and built-in defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from constants import Constants, FailurePolicy
from common.logging_utils import configure_logging
from nuspec.versioning import ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments.

    Args:
        args: Parsed CLI arguments.
    """
    configure_logging(getattr(args, "LOG_LEVEL", None))

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the YAML (or JSON) configuration file.

    Args:
        config_path: Path to the config file, or None.

    Returns:
        The parsed mapping; empty when no file is given or it does not exist.

    Raises:
        ConfigurationError: If the file exists but cannot be parsed into a mapping.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {config_path} must be a mapping")
    logger.debug("Loaded config from: %s", config_path)
    return data


def config_section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    return section


@dataclass
class ToolSettings:
    """How to run the NuGet executable."""

    nuget_path: str = Constants.DEFAULT_NUGET_PATH
    timeout: float = Constants.TOOL_TIMEOUT_SEC
    failure_policy: FailurePolicy = FailurePolicy.STDERR


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def tool_settings(args: Any, config: Dict[str, Any], section: str) -> ToolSettings:
    """Resolve NuGet path, timeout and failure policy for the ``pack``/``publish`` step.

    Raises:
        ConfigurationError: On a non-numeric timeout or unknown failure policy.
    """
    scoped = config_section(config, section)
    nuget_path = _first(
        getattr(args, "NUGET_PATH", None),
        scoped.get("nuget_path"),
        config.get("nuget_path"),
        os.environ.get(Constants.ENV_NUGET_PATH),
        Constants.DEFAULT_NUGET_PATH,
    )
    raw_timeout = _first(
        getattr(args, "TIMEOUT", None),
        scoped.get("timeout"),
        config.get("timeout"),
        Constants.TOOL_TIMEOUT_SEC,
    )
    raw_policy = _first(
        getattr(args, "FAILURE_POLICY", None),
        scoped.get("failure_policy"),
        config.get("failure_policy"),
        FailurePolicy.STDERR.value,
    )
    try:
        timeout = float(raw_timeout)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid timeout '{raw_timeout}'") from e
    if timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {raw_timeout}")
    try:
        policy = FailurePolicy(str(raw_policy).strip().lower())
    except ValueError as e:
        raise ConfigurationError(f"Invalid failure policy '{raw_policy}'") from e
    return ToolSettings(nuget_path=str(nuget_path), timeout=timeout, failure_policy=policy)
