"""
Main CLI entry point for depsolve

Usage:
    depsolve solve manifest.json
    depsolve solve manifest.json --json
    depsolve solve manifest.json --config .depsolve.local --prefer-lowest
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .. import __version__
from ..core.config import SolverConfig, find_config, load_config
from ..core.errors import DepsolveError
from ..core.loader import load_manifest
from ..core.resolver import Resolver
from . import colors


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""

    parser = argparse.ArgumentParser(
        prog='depsolve',
        description='SAT based package dependency resolver',
        epilog='Use "depsolve <command> --help" for command-specific help.'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'depsolve {__version__}'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output (solver debug log on stderr)'
    )

    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        title='commands',
        metavar='<command>'
    )

    solve_parser = subparsers.add_parser(
        'solve',
        help='Compute the operations for a manifest'
    )
    solve_parser.add_argument(
        'manifest',
        type=Path,
        help='JSON manifest (repositories, installed, platform, request)'
    )
    solve_parser.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )
    solve_parser.add_argument(
        '--config', '-c',
        type=Path,
        metavar='FILE',
        help='Config file (default: .depsolve.local in the current directory)'
    )
    solve_parser.add_argument(
        '--ignore-platform-reqs',
        action='store_true',
        help='Ignore php, ext-* and lib-* requirements'
    )
    solve_parser.add_argument(
        '--prefer-lowest',
        action='store_true',
        help='Prefer the lowest matching versions'
    )
    solve_parser.add_argument(
        '--prefer-stable',
        action='store_true',
        help='Prefer stable versions over more recent unstable ones'
    )

    return parser


def _load_solver_config(args) -> SolverConfig:
    config_path = args.config or find_config()
    config = load_config(config_path) if config_path else SolverConfig()

    # command line flags only ever turn options on
    if args.ignore_platform_reqs:
        config.ignore_platform_reqs = True
    if args.prefer_lowest:
        config.prefer_lowest = True
    if args.prefer_stable:
        config.prefer_stable = True
    return config


def cmd_solve(args) -> int:
    """Resolve a manifest and print the operations or the problems."""
    config = _load_solver_config(args)
    manifest = load_manifest(args.manifest)

    resolver = Resolver(manifest.repositories, manifest.installed, manifest.platform,
                        config, manifest.root_aliases)
    result = resolver.resolve(manifest.request)

    if args.json:
        print(json.dumps({
            'success': result.success,
            'operations': [op.to_dict() for op in result.operations],
            'problems': result.problems,
        }, indent=2))
        return result.exit_code

    if not result.success:
        print(colors.error("Your requirements could not be resolved to an installable set of packages."),
              file=sys.stderr)
        print(colors.error(result.message), file=sys.stderr)
        return result.exit_code

    if not result.operations:
        print("Nothing to install, update or remove")
        return 0

    for op in result.operations:
        print(f"  - {colors.operation(op)}")
    print(colors.dim(f"{len(result.operations)} operation(s)"))
    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr
        )

    colors.init(nocolor=args.nocolor)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'solve':
            return cmd_solve(args)
        parser.print_help()
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    except DepsolveError as e:
        if args.verbose:
            import traceback
            traceback.print_exc()
        print(colors.error(f"Error: {e}"), file=sys.stderr)
        return e.exit_code


if __name__ == '__main__':
    sys.exit(main())
