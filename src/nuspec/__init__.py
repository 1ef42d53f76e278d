"""NuGet manifest access and the inputs a merge draws on.

- document.py: get-or-create access to .nuspec XML
- options.py: merge options, their layering, and the package exclusion filter
- versioning.py: assembly version information and package version resolution
- identity.py: current user lookup for authors/owners
- sources.py: packages.config and project reference readers
"""

from .document import NuSpecDocument, NuSpecError  # noqa: F401
from .options import MergeOptions  # noqa: F401
from .versioning import AssemblyInfo, ConfigurationError  # noqa: F401

__all__ = [
    "NuSpecDocument",
    "NuSpecError",
    "MergeOptions",
    "AssemblyInfo",
    "ConfigurationError",
]
