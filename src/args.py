"""Argument parsing functionality for nupack."""

import argparse
from constants import Constants


def _global_arguments(parser, default=None):
    """Flags accepted both before and after the subcommand."""
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help=f"Set the logging level (default: ${Constants.ENV_LOG_LEVEL} or INFO)",
                        action="store",
                        type=str.upper,
                        choices=Constants.LOG_LEVELS,
                        default=default)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str,
                        default=default)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str,
                        default=default)


def _common_parser():
    common = argparse.ArgumentParser(add_help=False)
    # Suppressed so a value given before the subcommand is not reset.
    _global_arguments(common, default=argparse.SUPPRESS)
    common.add_argument("-n", "--nuspec",
                        dest="NUSPEC",
                        help="Path to the .nuspec file",
                        action="store",
                        type=str,
                        required=True)
    return common


def _tool_arguments(parser):
    parser.add_argument("-o", "--output-dir",
                        dest="OUT_DIR",
                        help="Directory the package is written to / read from",
                        action="store",
                        type=str,
                        required=True)
    parser.add_argument("--nuget",
                        dest="NUGET_PATH",
                        help=f"Path to the NuGet executable (default: ${Constants.ENV_NUGET_PATH} or "
                             f"'{Constants.DEFAULT_NUGET_PATH}')",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Seconds to wait for NuGet (default: {Constants.TOOL_TIMEOUT_SEC})",
                        action="store",
                        type=float)
    parser.add_argument("--failure-policy",
                        dest="FAILURE_POLICY",
                        help="When a NuGet run fails: output on stderr (stderr), non-zero exit "
                             "code (exit-code), or either (strict). Default: stderr",
                        action="store",
                        type=str.lower,
                        choices=Constants.FAILURE_POLICIES)


def _merge_arguments(parser):
    parser.add_argument("-a", "--assembly",
                        dest="ASSEMBLY",
                        help="Path to the primary output assembly",
                        action="store", type=str, required=True)
    parser.add_argument("-p", "--project",
                        dest="PROJECT",
                        help="Path to the project file (.csproj)",
                        action="store", type=str, required=True)
    parser.add_argument("--packages-config",
                        dest="PACKAGES_CONFIG",
                        help="Path to packages.config (default: next to the project file)",
                        action="store", type=str)

    info = parser.add_argument_group("assembly information")
    info.add_argument("--assembly-info",
                      dest="ASSEMBLY_INFO",
                      help="YAML/JSON file with product_name, product_version, file_version, "
                           "comments and file_description",
                      action="store", type=str)
    info.add_argument("--product-name", dest="PRODUCT_NAME", action="store", type=str)
    info.add_argument("--product-version", dest="PRODUCT_VERSION", action="store", type=str)
    info.add_argument("--file-version", dest="FILE_VERSION", action="store", type=str)
    info.add_argument("--comments", dest="COMMENTS", action="store", type=str)
    info.add_argument("--file-description", dest="FILE_DESCRIPTION", action="store", type=str)

    opts = parser.add_argument_group("merge options")
    opts.add_argument("--version",
                      dest="VERSION",
                      help="Explicit package version, e.g. 1.2.3 or 1.2.3-beta",
                      action="store", type=str)
    opts.add_argument("--version-policy",
                      dest="VERSION_POLICY",
                      help="How the version is derived: full, build-as-patch, major-minor-build",
                      action="store", type=str.lower,
                      choices=Constants.VERSION_POLICIES)
    opts.add_argument("--include-build-version",
                      dest="INCLUDE_BUILD_VERSION",
                      help="Use the full assembly version (same as --version-policy full)",
                      action="store_true", default=None)
    opts.add_argument("--use-build-version-as-patch",
                      dest="USE_BUILD_VERSION_AS_PATCH",
                      help="Use major.minor.private (same as --version-policy build-as-patch)",
                      action="store_true", default=None)
    opts.add_argument("--version-source",
                      dest="VERSION_SOURCE",
                      help="Assembly version to start from: product or file",
                      action="store", type=str.lower,
                      choices=Constants.VERSION_SOURCES)
    opts.add_argument("--file-exclusion-pattern",
                      dest="FILE_EXCLUSION_PATTERN",
                      help="Value for the exclude attribute of the generated <file> element",
                      action="store", type=str)
    opts.add_argument("--package-exclusion-pattern",
                      dest="PACKAGE_EXCLUSION_PATTERN",
                      help="Semicolon-separated glob patterns of package ids not to merge",
                      action="store", type=str)
    opts.add_argument("--target-framework-version",
                      dest="TARGET_FRAMEWORK_VERSION",
                      help="MSBuild target framework version, e.g. v4.5",
                      action="store", type=str)
    opts.add_argument("--target-framework-profile",
                      dest="TARGET_FRAMEWORK_PROFILE",
                      help="MSBuild target framework profile, e.g. Client",
                      action="store", type=str)
    opts.add_argument("--no-target-framework",
                      dest="USE_TARGET_FRAMEWORK",
                      help="Do not qualify the lib folder and framework assemblies by target framework",
                      action="store_false", default=None)
    opts.add_argument("--no-display-name",
                      dest="USE_DISPLAY_NAME",
                      help="Do not look up the user's display name for authors/owners",
                      action="store_false", default=None)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="nupack",
        description="nupack - merge, pack and publish NuGet .nuspec manifests",
        add_help=True,
    )
    _global_arguments(parser)
    subparsers = parser.add_subparsers(dest="action", metavar="{merge,pack,publish}")
    subparsers.required = True
    common = _common_parser()

    merge = subparsers.add_parser("merge",
                                  parents=[common],
                                  help="Merge build information into a .nuspec file")
    _merge_arguments(merge)

    pack = subparsers.add_parser("pack",
                                 parents=[common],
                                 help="Create a NuGet package from a .nuspec file")
    _tool_arguments(pack)
    pack.add_argument("-b", "--base-path",
                      dest="BASE_PATH",
                      help="Base path for files referenced by the .nuspec (default: output directory)",
                      action="store", type=str)

    publish = subparsers.add_parser("publish",
                                    parents=[common],
                                    help="Push the package built from a .nuspec file")
    _tool_arguments(publish)
    publish.add_argument("-s", "--server",
                         dest="SERVER",
                         help="Package source to push to",
                         action="store", type=str)
    publish.add_argument("-k", "--api-key",
                         dest="API_KEY",
                         help=f"API key for the package source (default: ${Constants.ENV_NUGET_API_KEY})",
                         action="store", type=str)

    return parser.parse_args(argv)
