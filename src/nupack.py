"""nupack - merge build output into NuGet manifests, then pack and publish them.

    Returns:
        int: Exit code
"""
import logging
import sys

from args import parse_args
from common.logging_utils import extra_context, is_debug_enabled


def dispatch(args):
    """Run the selected subcommand and return its exit code."""
    if args.action == "merge":
        from cli_merge import run_merge  # pylint: disable=import-outside-toplevel
        return run_merge(args)
    if args.action == "pack":
        from cli_pack import run_pack  # pylint: disable=import-outside-toplevel
        return run_pack(args)
    from cli_pack import run_publish  # pylint: disable=import-outside-toplevel
    return run_publish(args)


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)
    args = parse_args(argv)

    exit_code = dispatch(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action=args.action, outcome=exit_code),
        )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
