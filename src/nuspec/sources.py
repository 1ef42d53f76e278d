"""Readers for the project files a merge pulls from: packages.config and the project file."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List

from constants import Constants
from nuspec.document import NuSpecError

logger = logging.getLogger(__name__)


@dataclass
class PackageDependency:
    """One ``<package>`` entry of packages.config."""

    id: str
    version: str
    development: bool = False


def _parse_stripped(path: str, kind: str) -> ET.Element:
    try:
        tree = ET.parse(path)
    except (ET.ParseError, OSError) as e:
        raise NuSpecError(f"Couldn't parse {kind} {path}: {e}") from e
    root = tree.getroot()
    # Remove namespace for easier parsing
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}")[1]
    return root


def read_package_dependencies(config_path: str) -> List[PackageDependency]:
    """Read every package listed in a packages.config file.

    Args:
        config_path: Path to packages.config.

    Returns:
        Package entries in file order, development-only ones flagged.

    Raises:
        NuSpecError: If the file is unreadable or has no ``<packages>`` root.
    """
    root = _parse_stripped(config_path, Constants.PACKAGES_CONFIG_FILE)
    if root.tag != "packages":
        raise NuSpecError(f"{config_path} does not contain a <packages> XML element.")

    packages: List[PackageDependency] = []
    for package in root.findall("package"):
        id_attr = package.get("id")
        version_attr = package.get("version")
        if not id_attr or not version_attr:
            logger.warning("Skipping package entry without id/version in %s", config_path)
            continue
        development = (package.get("developmentDependency") or "").strip().lower() == "true"
        packages.append(PackageDependency(id=id_attr, version=version_attr, development=development))
    return packages


def read_framework_references(project_path: str) -> List[str]:
    """Return the ``System.*`` assembly names referenced by a project file.

    Strong-name details after the first comma of ``Include`` are dropped, so
    ``System.Xml, Version=4.0.0.0`` yields ``System.Xml``.

    Raises:
        NuSpecError: If the project file is unreadable.
    """
    root = _parse_stripped(project_path, "project file")
    references: List[str] = []
    for reference in root.iter("Reference"):
        include = (reference.get("Include") or "").split(",")[0].strip()
        if include.startswith(Constants.SYSTEM_REFERENCE_PREFIX):
            references.append(include)
    return references
