"""
Main CLI entry point for pacmeta

Commands:
- pacmeta query / pacmeta q   Look a package up in the pacman databases
- pacmeta parse / pacmeta p   Decode a desc file and print it back
"""

import argparse
import copy
import sys
from pathlib import Path

from .. import __version__
from ..core.config import Config, build_repositories, get_config, read_config
from ..core.package import FormatError, read_record
from ..core.query import NotFoundError, PackageLocator


def check_dependencies() -> list:
    """Check for required Python modules.

    Returns:
        List of missing module names (empty if all OK)
    """
    missing = []

    # Check zstandard (required for zstd-compressed sync databases)
    try:
        import zstandard  # noqa: F401
    except ImportError:
        missing.append(('zstandard', 'zstd database decompression'))

    return missing


def print_missing_dependencies(missing: list):
    """Print error message for missing dependencies."""
    print("ERROR: Missing required Python modules:\n", file=sys.stderr)
    for pkg, purpose in missing:
        print(f"  - {pkg} ({purpose})", file=sys.stderr)
    print("\nInstall with:", file=sys.stderr)
    print(f"  pip install {' '.join(pkg for pkg, _ in missing)}", file=sys.stderr)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all commands and aliases."""

    parser = argparse.ArgumentParser(
        prog='pacmeta',
        description='Read and look up pacman package descriptions',
        epilog='Use "pacmeta <command> --help" for command-specific help.'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'pacmeta {__version__}'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='FILE',
        help='Config file (default: /etc/pacmeta.conf)'
    )

    # Parent parser for display options (inherited by subparsers)
    display_parent = argparse.ArgumentParser(add_help=False)
    output = display_parent.add_mutually_exclusive_group()
    output.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )
    output.add_argument(
        '--raw',
        action='store_true',
        help='Print the desc text'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='<command>')

    # query
    query_parser = subparsers.add_parser(
        'query', aliases=['q'],
        parents=[display_parent],
        help='Look a package up in the sync (and local) databases'
    )
    query_parser.add_argument('name', help='Package name')
    query_parser.add_argument(
        '--repo', '-r',
        action='append',
        dest='repos',
        metavar='REPO',
        help='Repository to search, in order (repeatable; default: core extra multilib)'
    )
    query_parser.add_argument(
        '--local',
        action='store_true',
        help='Also search the local database, after the sync databases'
    )
    query_parser.add_argument(
        '--dbpath', '-b',
        type=Path,
        metavar='DIR',
        help='Database directory (default: /var/lib/pacman)'
    )

    # parse
    parse_parser = subparsers.add_parser(
        'parse', aliases=['p'],
        parents=[display_parent],
        help='Decode a desc file'
    )
    parse_parser.add_argument('file', type=Path, help='Path to a desc file')

    return parser


def _load_config(args) -> Config:
    """Build the effective configuration from file and command line."""
    config = read_config(args.config) if args.config else copy.deepcopy(get_config())
    if getattr(args, 'dbpath', None):
        config.db_path = args.dbpath
    if getattr(args, 'repos', None):
        config.repositories = list(args.repos)
    if getattr(args, 'local', False):
        config.include_local = True
    return config


def cmd_query(args) -> int:
    """Resolve a package and print it."""
    from . import display

    config = _load_config(args)
    locator = PackageLocator(build_repositories(config))
    record = locator.resolve(args.name)
    display.print_record(record)
    return 0


def cmd_parse(args) -> int:
    """Decode a desc file and print it."""
    from . import display

    record = read_record(args.file)
    display.print_record(record)
    return 0


# =============================================================================
# Main entry point
# =============================================================================

def main(argv=None) -> int:
    """Main CLI entry point."""
    # Check required dependencies first
    missing = check_dependencies()
    if missing:
        print_missing_dependencies(missing)
        return 1

    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging based on verbose flag
    if args.verbose:
        import logging
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr
        )

    # Initialize color support
    from . import colors
    colors.init(nocolor=args.nocolor)

    # Initialize display mode
    from . import display
    if getattr(args, 'json', False):
        display.init(mode='json')
    elif getattr(args, 'raw', False):
        display.init(mode='raw')
    else:
        display.init(mode='info')

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command in ('query', 'q'):
            return cmd_query(args)

        # argparse only accepts the commands registered above
        return cmd_parse(args)

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    except (FormatError, NotFoundError, OSError) as e:
        if args.verbose:
            import traceback
            traceback.print_exc()
        print(colors.error(f"Error: {e}"), file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
