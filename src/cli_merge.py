"""CLI entry point for ``nupack merge``."""

from __future__ import annotations

import logging
from typing import Any, Dict

from cli_config import config_section, load_config, setup_logging
from constants import ExitCodes
from nuspec.options import MergeOptions
from nuspec.versioning import AssemblyInfo, ConfigurationError, load_assembly_info
from tasks.merge import merge_nuspec

logger = logging.getLogger(__name__)

# CLI dest -> merge option name
_OPTION_ARGS = {
    "VERSION": "version",
    "VERSION_POLICY": "version_policy",
    "INCLUDE_BUILD_VERSION": "include_build_version",
    "USE_BUILD_VERSION_AS_PATCH": "use_build_version_as_patch",
    "VERSION_SOURCE": "version_source",
    "FILE_EXCLUSION_PATTERN": "file_exclusion_pattern",
    "PACKAGE_EXCLUSION_PATTERN": "package_exclusion_pattern",
    "TARGET_FRAMEWORK_VERSION": "target_framework_version",
    "TARGET_FRAMEWORK_PROFILE": "target_framework_profile",
    "USE_TARGET_FRAMEWORK": "use_target_framework",
    "USE_DISPLAY_NAME": "use_display_name",
}

_INFO_ARGS = {
    "PRODUCT_NAME": "product_name",
    "PRODUCT_VERSION": "product_version",
    "FILE_VERSION": "file_version",
    "COMMENTS": "comments",
    "FILE_DESCRIPTION": "file_description",
}


def _cli_values(args: Any, mapping: Dict[str, str]) -> Dict[str, Any]:
    values = {}
    for dest, name in mapping.items():
        value = getattr(args, dest, None)
        if value is not None:
            values[name] = value
    return values


def build_merge_options(args: Any, config: Dict[str, Any]) -> MergeOptions:
    """Layer defaults, the config ``merge`` section and CLI flags.

    Raises:
        ConfigurationError: On malformed option values.
    """
    options = MergeOptions().overlay(config_section(config, "merge"), origin="config file")
    return options.overlay(_cli_values(args, _OPTION_ARGS), origin="command line")


def build_assembly_info(args: Any) -> AssemblyInfo:
    info = load_assembly_info(getattr(args, "ASSEMBLY_INFO", None))
    return info.updated(**_cli_values(args, _INFO_ARGS))


def run_merge(args: Any) -> int:
    """Entry point for the merge command.

    Args:
        args: Parsed CLI arguments namespace.

    Returns:
        Process exit code.
    """
    setup_logging(args)
    try:
        config = load_config(getattr(args, "CONFIG", None))
        options = build_merge_options(args, config)
        info = build_assembly_info(args)
    except ConfigurationError as e:
        logger.error("%s", e)
        return ExitCodes.USAGE_ERROR.value

    ok = merge_nuspec(
        args.NUSPEC,
        args.ASSEMBLY,
        args.PROJECT,
        getattr(args, "PACKAGES_CONFIG", None),
        options=options,
        assembly_info=info,
    )
    return ExitCodes.SUCCESS.value if ok else ExitCodes.TASK_FAILED.value
