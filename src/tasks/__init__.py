"""The three build steps: merge a manifest, pack it, publish the package."""

from .merge import NuSpecMerger, merge_nuspec  # noqa: F401
from .pack import build_package  # noqa: F401
from .publish import publish_package  # noqa: F401

__all__ = ["NuSpecMerger", "merge_nuspec", "build_package", "publish_package"]
