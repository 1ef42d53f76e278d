"""Package builder: run ``nuget pack`` on a manifest."""
from __future__ import annotations

import logging
from typing import List, Optional

from constants import Constants, FailurePolicy
from common.process import report_result, run_tool

logger = logging.getLogger(__name__)


def pack_arguments(nuspec_path: str, output_dir: str, base_path: str) -> List[str]:
    return [
        "pack",
        nuspec_path,
        "-OutputDirectory",
        output_dir,
        "-BasePath",
        base_path,
        "-NoPackageAnalysis",
        "-NonInteractive",
        "-Verbosity",
        "Detailed",
    ]


def build_package(
    nuspec_path: str,
    output_dir: str,
    base_path: Optional[str] = None,
    tool_path: str = Constants.DEFAULT_NUGET_PATH,
    timeout: float = Constants.TOOL_TIMEOUT_SEC,
    policy: FailurePolicy = FailurePolicy.STDERR,
) -> bool:
    """Create the NuGet package for ``nuspec_path`` in ``output_dir``.

    Args:
        nuspec_path: Manifest to pack.
        output_dir: Directory receiving the package; also the working directory.
        base_path: Root for relative ``<file src>`` paths; defaults to ``output_dir``.
        tool_path: NuGet executable.
        timeout: Seconds to wait for NuGet.
        policy: When the run counts as failed.

    Returns:
        True if the package was built.
    """
    command = [tool_path] + pack_arguments(nuspec_path, output_dir, base_path or output_dir)
    logger.info("Building NuGet package using '%s'", " ".join(command))
    result = run_tool(command, cwd=output_dir, timeout=timeout)
    return report_result(result, "creating", timeout=timeout, policy=policy, target=nuspec_path)
