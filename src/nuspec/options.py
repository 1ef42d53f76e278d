"""Merge options and the layers they are read from.

Options start from defaults and are overlaid, lowest precedence first, by the
``merge`` section of the config file, the command line, and finally any
``<?nupack ...?>`` processing instruction inside the manifest itself.
"""
from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Pattern

from constants import Constants, VersionPolicy, VersionSource
from common.logging_utils import extra_context, is_debug_enabled
from nuspec.versioning import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off"}
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_STRING_OPTIONS = (
    "version",
    "file_exclusion_pattern",
    "package_exclusion_pattern",
    "target_framework_version",
    "target_framework_profile",
)
_BOOL_OPTIONS = ("use_target_framework", "use_display_name")
# Boolean switches kept from the MSBuild task properties.
_LEGACY_OPTIONS = ("include_build_version", "use_build_version_as_patch", "dont_use_windows_display_name")


def normalize_option_name(name: str) -> str:
    """``IncludeBuildVersion`` / ``include-build-version`` -> ``include_build_version``."""
    return _CAMEL_RE.sub("_", name.strip()).replace("-", "_").lower()


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"'{value}' is not a boolean")


@dataclass(frozen=True)
class MergeOptions:
    """Everything that shapes a single merge run."""

    version: Optional[str] = None
    version_policy: VersionPolicy = VersionPolicy.MAJOR_MINOR_BUILD
    version_source: VersionSource = VersionSource.PRODUCT
    file_exclusion_pattern: Optional[str] = None
    package_exclusion_pattern: Optional[str] = None
    target_framework_version: Optional[str] = None
    target_framework_profile: Optional[str] = None
    use_target_framework: bool = True
    use_display_name: bool = True

    def overlay(self, values: Mapping[str, Any], strict: bool = True, origin: str = "config") -> "MergeOptions":
        """Return a copy with ``values`` applied on top.

        Args:
            values: Option name -> value; names may be camelCase or snake_case.
            strict: Raise on a malformed value instead of skipping that option.
            origin: Where the values came from, for log messages.

        Raises:
            ConfigurationError: On a malformed value when ``strict`` is set.
        """
        changes: Dict[str, Any] = {}
        legacy: Dict[str, bool] = {}
        for raw_name, raw_value in values.items():
            if raw_value is None:
                continue
            name = normalize_option_name(raw_name)
            try:
                if name in _STRING_OPTIONS:
                    changes[name] = str(raw_value)
                elif name in _BOOL_OPTIONS:
                    changes[name] = parse_bool(raw_value)
                elif name in _LEGACY_OPTIONS:
                    legacy[name] = parse_bool(raw_value)
                elif name == "version_policy":
                    changes[name] = VersionPolicy(str(raw_value).strip().lower())
                elif name == "version_source":
                    changes[name] = VersionSource(str(raw_value).strip().lower())
                else:
                    logger.debug("Ignoring unknown merge option '%s' from %s", raw_name, origin)
            except ValueError as e:
                if strict:
                    raise ConfigurationError(f"Invalid value for merge option '{raw_name}' in {origin}: {e}") from e
                if is_debug_enabled(logger):
                    logger.debug(
                        "Skipping malformed merge option",
                        extra=extra_context(
                            event="option_skipped", component="options", target=raw_name, outcome=str(e)
                        ),
                    )

        if "version_policy" not in changes:
            if legacy.get("include_build_version"):
                changes["version_policy"] = VersionPolicy.FULL
            elif legacy.get("use_build_version_as_patch"):
                changes["version_policy"] = VersionPolicy.BUILD_AS_PATCH
            elif legacy.get("include_build_version") is False and legacy.get("use_build_version_as_patch") is False:
                changes["version_policy"] = VersionPolicy.MAJOR_MINOR_BUILD
        if "dont_use_windows_display_name" in legacy and "use_display_name" not in changes:
            changes["use_display_name"] = not legacy["dont_use_windows_display_name"]

        return replace(self, **changes)


def compile_exclusion_filter(pattern: Optional[str]) -> Optional[Pattern[str]]:
    """Compile ``Foo.*;Bar?`` into one anchored, case-sensitive alternation.

    Returns None when the pattern holds no tokens.
    """
    if not pattern:
        return None
    tokens = [t.strip() for t in pattern.split(";") if t.strip()]
    if not tokens:
        return None
    return re.compile("|".join(f"(?:{fnmatch.translate(t)})" for t in tokens))


def is_excluded(identifier: str, exclusion: Optional[Pattern[str]]) -> bool:
    return exclusion is not None and exclusion.match(identifier) is not None


def instruction_overrides(document) -> Dict[str, str]:
    """Collect option attributes from every ``<?nupack ...?>`` instruction, later ones winning."""
    merged: Dict[str, str] = {}
    for attrs in document.instructions(Constants.OPTIONS_INSTRUCTION):
        merged.update(attrs)
    return merged
