"""Package publisher: run ``nuget push`` for the package built from a manifest."""
from __future__ import annotations

import logging
import os
from typing import List, Optional

from constants import Constants, FailurePolicy
from common.logging_utils import mask_secrets
from common.process import report_result, run_tool
from nuspec.document import NuSpecDocument, NuSpecError

logger = logging.getLogger(__name__)


def spec_version(nuspec_path: str) -> str:
    """Read ``<metadata><version>`` from a manifest.

    Raises:
        NuSpecError: If the manifest is invalid or has no version.
    """
    document = NuSpecDocument.load(nuspec_path)
    version = document.value(document.metadata, "version").strip()
    if not version:
        raise NuSpecError(f"The NuSpec file {nuspec_path} does not specify a <version>.")
    return version


def package_path(nuspec_path: str, output_dir: str) -> str:
    """``<output_dir>/<manifest name>.<version>.nupkg``."""
    spec_name = os.path.splitext(os.path.basename(nuspec_path))[0]
    return os.path.join(output_dir, f"{spec_name}.{spec_version(nuspec_path)}{Constants.PACKAGE_EXTENSION}")


def push_arguments(package: str, server: Optional[str] = None, api_key: Optional[str] = None) -> List[str]:
    arguments = ["push", package]
    if api_key and api_key.strip():
        arguments += ["-ApiKey", api_key]
    if server and server.strip():
        arguments += ["-Source", server]
    arguments.append("-NonInteractive")
    return arguments


def publish_package(
    nuspec_path: str,
    output_dir: str,
    server: Optional[str] = None,
    api_key: Optional[str] = None,
    tool_path: str = Constants.DEFAULT_NUGET_PATH,
    timeout: float = Constants.TOOL_TIMEOUT_SEC,
    policy: FailurePolicy = FailurePolicy.STDERR,
) -> bool:
    """Push the package built from ``nuspec_path`` to ``server``.

    When ``api_key`` is not given, ``NUGET_API_KEY`` from the environment is used.

    Returns:
        True if the push succeeded.
    """
    try:
        package = package_path(nuspec_path, output_dir)
    except NuSpecError as e:
        logger.error("%s", e)
        return False

    if api_key is None:
        api_key = os.environ.get(Constants.ENV_NUGET_API_KEY) or None

    logger.info("Publishing package '%s'", package)
    command = [tool_path] + push_arguments(package, server, api_key)
    logger.debug("Publishing NuGet package using '%s'", " ".join(mask_secrets(command, [api_key])))
    result = run_tool(command, cwd=output_dir, timeout=timeout, secrets=[api_key])
    return report_result(result, "publishing", timeout=timeout, policy=policy, target=nuspec_path)
