"""Manifest merge: fold build information into a .nuspec file.

The manifest is loaded once, every change is made in memory, and the file is
only written after all steps succeeded, so a failed merge leaves it as it was.
"""
from __future__ import annotations

import logging
import os
from pathlib import PureWindowsPath
from typing import Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from nuspec.document import NuSpecDocument, NuSpecError
from nuspec.identity import current_user
from nuspec.options import MergeOptions, compile_exclusion_filter, instruction_overrides, is_excluded
from nuspec.sources import read_framework_references, read_package_dependencies
from nuspec.versioning import AssemblyInfo, ConfigurationError, resolve_version, target_framework_moniker

logger = logging.getLogger(__name__)


class NuSpecMerger:
    """Applies one merge run to a manifest. Raises on failure; see ``merge_nuspec``."""

    def __init__(
        self,
        nuspec_path: str,
        assembly_path: str,
        project_file_path: str,
        dependency_config_path: Optional[str] = None,
        options: Optional[MergeOptions] = None,
        assembly_info: Optional[AssemblyInfo] = None,
    ):
        self.nuspec_path = nuspec_path
        self.assembly_path = assembly_path
        self.project_file_path = project_file_path
        if dependency_config_path is None and project_file_path:
            dependency_config_path = os.path.join(
                os.path.dirname(project_file_path), Constants.PACKAGES_CONFIG_FILE
            )
        self.dependency_config_path = dependency_config_path
        self.options = options or MergeOptions()
        self.assembly_info = assembly_info or AssemblyInfo()

    @property
    def output_name(self) -> str:
        """Base name of the primary output assembly, without extension."""
        return PureWindowsPath(self.assembly_path).stem

    def merge(self) -> NuSpecDocument:
        document = NuSpecDocument.load(self.nuspec_path)
        options = self.options
        overrides = instruction_overrides(document)
        if overrides:
            options = options.overlay(overrides, strict=False, origin="NuSpec processing instruction")

        self.merge_metadata(document, options)
        if self.dependency_config_path and os.path.isfile(self.dependency_config_path):
            self.merge_package_dependencies(document, options)
        self.merge_references(document, options)
        self.merge_file(document, options)

        document.save(self.nuspec_path)
        return document

    def merge_metadata(self, document: NuSpecDocument, options: MergeOptions) -> str:
        logger.info("Merging metadata from %s", self.assembly_path)
        info = self.assembly_info
        metadata = document.metadata

        version = resolve_version(info, options.version_policy, options.version_source, options.version)

        if info.product_name:
            document.set_value(metadata, "title", info.product_name)
        document.set_value(metadata, "version", version)
        document.set_value_if_blank(metadata, "summary", info.comments)
        document.set_value_if_blank(metadata, "description", info.file_description)

        user = current_user(options.use_display_name)
        document.set_value_if_blank(metadata, "authors", user)
        document.set_value_if_blank(metadata, "owners", user)
        return version

    def merge_package_dependencies(self, document: NuSpecDocument, options: MergeOptions) -> int:
        """Upsert packages.config entries into ``<dependencies>``; return how many were applied."""
        logger.info("Merging package dependencies from %s", self.dependency_config_path)
        dependencies = document.get_or_create(document.metadata, "dependencies")
        existing = {d.get("id"): d for d in document.children(dependencies, "dependency")}
        exclusion = compile_exclusion_filter(options.package_exclusion_pattern)

        applied = 0
        for package in read_package_dependencies(self.dependency_config_path):
            if package.development:
                logger.debug("Skipping development dependency %s", package.id)
                continue
            if is_excluded(package.id, exclusion):
                logger.info("Excluding package dependency %s", package.id)
                continue
            entry = existing.get(package.id)
            if entry is None:
                existing[package.id] = document.append(
                    dependencies, "dependency", id=package.id, version=package.version
                )
            else:
                entry.set("version", package.version)
            applied += 1
        return applied

    def merge_references(self, document: NuSpecDocument, options: MergeOptions) -> int:
        """Upsert the project's System.* references into ``<frameworkAssemblies>``."""
        logger.info("Merging system references from %s", self.project_file_path)
        assemblies = document.get_or_create(document.metadata, "frameworkAssemblies")
        existing = {a.get("assemblyName"): a for a in document.children(assemblies, "frameworkAssembly")}
        moniker = self._moniker(options)

        applied = 0
        for name in read_framework_references(self.project_file_path):
            entry = existing.get(name)
            if entry is None:
                entry = document.append(assemblies, "frameworkAssembly", assemblyName=name)
                existing[name] = entry
            if moniker:
                entry.set("targetFramework", moniker)
            applied += 1
        return applied

    def merge_file(self, document: NuSpecDocument, options: MergeOptions) -> None:
        logger.info("Merging file reference from project output")
        files = document.get_or_create(document.package, "files")
        moniker = self._moniker(options)
        target = Constants.LIB_FOLDER + (f"\\{moniker}" if moniker else "")
        attrs = {"src": f"**\\{self.output_name}.*", "target": target}
        if options.file_exclusion_pattern:
            attrs["exclude"] = options.file_exclusion_pattern
        document.append(files, "file", **attrs)

    @staticmethod
    def _moniker(options: MergeOptions) -> str:
        if not options.use_target_framework:
            return ""
        return target_framework_moniker(options.target_framework_version, options.target_framework_profile)


def merge_nuspec(
    nuspec_path: str,
    assembly_path: str,
    project_file_path: str,
    dependency_config_path: Optional[str] = None,
    options: Optional[MergeOptions] = None,
    assembly_info: Optional[AssemblyInfo] = None,
) -> bool:
    """Merge build information into ``nuspec_path``.

    Returns:
        True on success. Failures are logged and reported as False; the
        manifest is not written unless every step succeeded.
    """
    merger = NuSpecMerger(
        nuspec_path, assembly_path, project_file_path, dependency_config_path, options, assembly_info
    )
    try:
        merger.merge()
    except (NuSpecError, ConfigurationError) as e:
        logger.error(
            "%s",
            e,
            extra=extra_context(
                event="task_failed", component="merge", action="merge", target=nuspec_path, outcome=type(e).__name__
            ),
        )
        return False
    except OSError as e:
        logger.error("Couldn't write NuSpec file %s: %s", nuspec_path, e)
        return False

    if is_debug_enabled(logger):
        logger.debug(
            "Merge completed",
            extra=extra_context(event="task_done", component="merge", action="merge", target=nuspec_path),
        )
    logger.info("Merged %s", nuspec_path)
    return True
