"""CLI entry points for ``nupack pack`` and ``nupack publish``."""

from __future__ import annotations

import logging
from typing import Any

from cli_config import config_section, load_config, setup_logging, tool_settings
from constants import ExitCodes
from nuspec.versioning import ConfigurationError
from tasks.pack import build_package
from tasks.publish import publish_package

logger = logging.getLogger(__name__)


def run_pack(args: Any) -> int:
    """Entry point for the pack command."""
    setup_logging(args)
    try:
        config = load_config(getattr(args, "CONFIG", None))
        settings = tool_settings(args, config, "pack")
        base_path = getattr(args, "BASE_PATH", None) or config_section(config, "pack").get("base_path")
    except ConfigurationError as e:
        logger.error("%s", e)
        return ExitCodes.USAGE_ERROR.value

    ok = build_package(
        args.NUSPEC,
        args.OUT_DIR,
        base_path,
        tool_path=settings.nuget_path,
        timeout=settings.timeout,
        policy=settings.failure_policy,
    )
    return ExitCodes.SUCCESS.value if ok else ExitCodes.TASK_FAILED.value


def run_publish(args: Any) -> int:
    """Entry point for the publish command."""
    setup_logging(args)
    try:
        config = load_config(getattr(args, "CONFIG", None))
        settings = tool_settings(args, config, "publish")
        server = getattr(args, "SERVER", None) or config_section(config, "publish").get("server")
    except ConfigurationError as e:
        logger.error("%s", e)
        return ExitCodes.USAGE_ERROR.value

    ok = publish_package(
        args.NUSPEC,
        args.OUT_DIR,
        server=server,
        api_key=getattr(args, "API_KEY", None),
        tool_path=settings.nuget_path,
        timeout=settings.timeout,
        policy=settings.failure_policy,
    )
    return ExitCodes.SUCCESS.value if ok else ExitCodes.TASK_FAILED.value
