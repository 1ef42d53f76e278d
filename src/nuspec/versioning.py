"""Assembly version information and package version resolution."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from constants import Constants, VersionPolicy, VersionSource

_VERSION_RE = re.compile(Constants.VERSION_PATTERN)
_QUAD_RE = re.compile(r"^\s*(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?")
_FRAMEWORK_RE = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?$")
_CLIENT_PROFILE_VERSIONS = {"35", "40"}


class ConfigurationError(Exception):
    """Raised for invalid option values, such as a malformed version override."""


@dataclass
class VersionQuad:
    """A four-part assembly version: major.minor.build.private."""

    major: int = 0
    minor: int = 0
    build: int = 0
    private: int = 0
    raw: str = ""

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["VersionQuad"]:
        """Parse ``1.2.3.4``-style text; missing parts are zero. None if unparseable."""
        if not text:
            return None
        match = _QUAD_RE.match(str(text))
        if match is None:
            return None
        parts = [int(p) if p is not None else 0 for p in match.groups()]
        return cls(*parts, raw=str(text).strip())


@dataclass
class AssemblyInfo:
    """Version resource fields of the primary output assembly."""

    product_name: Optional[str] = None
    product_version: Optional[str] = None
    file_version: Optional[str] = None
    comments: Optional[str] = None
    file_description: Optional[str] = None

    FIELDS = ("product_name", "product_version", "file_version", "comments", "file_description")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "AssemblyInfo":
        known = {k: (str(v) if v is not None else None) for k, v in data.items() if k in cls.FIELDS}
        return cls(**known)

    def updated(self, **overrides: Optional[str]) -> "AssemblyInfo":
        """Copy with every non-None override applied."""
        values = {name: getattr(self, name) for name in self.FIELDS}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return AssemblyInfo(**values)


def load_assembly_info(path: Optional[str]) -> AssemblyInfo:
    """Load assembly version information from a YAML or JSON file.

    Args:
        path: File path, or None for an empty record.

    Raises:
        ConfigurationError: If the file cannot be read or is not a mapping.
    """
    if not path:
        return AssemblyInfo()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Couldn't read assembly info {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Assembly info {path} must be a mapping of field -> value")
    return AssemblyInfo.from_mapping(data)


def is_valid_version(version: str) -> bool:
    return bool(version) and _VERSION_RE.match(version) is not None


def resolve_version(
    info: AssemblyInfo,
    policy: VersionPolicy = VersionPolicy.MAJOR_MINOR_BUILD,
    source: VersionSource = VersionSource.PRODUCT,
    override: Optional[str] = None,
) -> str:
    """Work out the package version.

    An explicit override wins and must look like ``1.2.3`` or ``1.2.3-beta``.
    Otherwise the product (or file) version is reduced according to ``policy``.

    Raises:
        ConfigurationError: For a malformed override or a missing version source.
    """
    if override is not None and str(override).strip():
        override = str(override).strip()
        if not is_valid_version(override):
            raise ConfigurationError(
                f"The version '{override}' is not a valid package version "
                "(expected numeric segments such as 1.2.3 with an optional -prerelease suffix)."
            )
        return override

    raw = info.product_version if source == VersionSource.PRODUCT else info.file_version
    quad = VersionQuad.parse(raw)
    if quad is None:
        raise ConfigurationError(
            f"No usable {source.value} version available to derive the package version from."
        )

    if policy == VersionPolicy.FULL:
        return quad.raw
    if policy == VersionPolicy.BUILD_AS_PATCH:
        return f"{quad.major}.{quad.minor}.{quad.private}"
    return f"{quad.major}.{quad.minor}.{quad.build}"


def target_framework_moniker(version: Optional[str], profile: Optional[str] = None) -> str:
    """Map an MSBuild framework version/profile pair to a NuGet folder name.

    ``v4.5.1`` becomes ``net451``; ``v4.0`` with the Client profile becomes
    ``net40-client``. Unrecognised input yields an empty string.
    """
    if not version:
        return ""
    match = _FRAMEWORK_RE.match(version.strip())
    if match is None:
        return ""
    digits = "".join(p for p in match.groups() if p is not None)
    moniker = f"net{digits}"
    if profile and profile.strip().lower() == "client" and digits in _CLIENT_PROFILE_VERSIONS:
        moniker += "-client"
    return moniker

