"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    TASK_FAILED = 1
    USAGE_ERROR = 2


class VersionPolicy(Enum):
    """How the package version is derived from an assembly version quadruple.

    Args:
        Enum (string): Version inclusion policies.
    """

    FULL = "full"
    BUILD_AS_PATCH = "build-as-patch"
    MAJOR_MINOR_BUILD = "major-minor-build"


class VersionSource(Enum):
    """Which assembly version resource feeds the package version.

    Args:
        Enum (string): Version sources.
    """

    PRODUCT = "product"
    FILE = "file"


class FailurePolicy(Enum):
    """When a NuGet tool invocation counts as failed.

    Args:
        Enum (string): Failure policies.
    """

    STDERR = "stderr"
    EXIT_CODE = "exit-code"
    STRICT = "strict"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    VERSION_POLICIES = [p.value for p in VersionPolicy]
    VERSION_SOURCES = [s.value for s in VersionSource]
    FAILURE_POLICIES = [p.value for p in FailurePolicy]
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

    PACKAGES_CONFIG_FILE = "packages.config"
    PACKAGE_EXTENSION = ".nupkg"
    NUSPEC_NAMESPACE = "http://schemas.microsoft.com/packaging/2010/07/nuspec.xsd"
    OPTIONS_INSTRUCTION = "nupack"
    SYSTEM_REFERENCE_PREFIX = "System."
    LIB_FOLDER = "lib"

    # NuGet command line
    DEFAULT_NUGET_PATH = "nuget"
    TOOL_TIMEOUT_SEC = 30
    ENV_NUGET_PATH = "NUGET_PATH"
    ENV_NUGET_API_KEY = "NUGET_API_KEY"
    ENV_LOG_LEVEL = "NUPACK_LOG_LEVEL"

    # Package versions: numeric dot-separated segments with an optional pre-release tag
    VERSION_PATTERN = r"^\d+(\.\d+){0,3}(-[0-9A-Za-z][0-9A-Za-z.-]*)?$"
