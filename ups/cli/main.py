"""
Main entry point for the ups command-line tool.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import argparse
import logging
import sys
from typing import Optional

from .. import __version__
from ..config import Config
from ..constants import (
    EXIT_OK, EXIT_USAGE, EXIT_OUTDATED, EXIT_FAILURE, EXIT_INTERRUPTED, NONE_VERSION,
)
from ..exceptions import (
    UpsError, ConfigurationError, ValidationError, PackageNotFoundError,
    DuplicatePackageError, ScriptError, StoreError,
)
from ..tracker import UpstreamTracker
from ..utils.instance_lock import InstanceLockError
from ..utils.logger import set_console_level, set_global_config
from .output import OutputFormatter


class UpsCLI:
    """Main CLI application class."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize CLI with configuration."""
        self.config = Config(config_path)
        set_global_config(self.config.get_all_settings())
        self.tracker = UpstreamTracker(self.config)
        self.formatter = OutputFormatter(use_color=bool(self.config.get('use_color', True)))

    def run(self, args: argparse.Namespace) -> int:
        """
        Run the CLI with given arguments.

        Args:
            args: Parsed command line arguments

        Returns:
            Exit code
        """
        use_color = not args.no_color and bool(self.config.get('use_color', True))
        self.formatter = OutputFormatter(
            use_color=use_color,
            json_output=args.json,
            quiet=args.quiet,
        )
        self.tracker.progress_callback = self.formatter.progress

        handlers = {
            None: self.cmd_check,
            'check': self.cmd_check,
            'list': self.cmd_list,
            'insert': self.cmd_insert,
            'snapshot': self.cmd_snapshot,
            'get': self.cmd_get,
            'remove': self.cmd_remove,
            'history': self.cmd_history,
            'config': self.cmd_config,
        }
        handler = handlers.get(args.command)
        if handler is None:
            self.formatter.error(f"Unknown command: {args.command}")
            return EXIT_USAGE

        try:
            return handler(args)
        except (ValidationError, PackageNotFoundError, DuplicatePackageError) as e:
            self.formatter.error(str(e))
            return EXIT_USAGE
        except ScriptError as e:
            self.formatter.error(str(e))
            return EXIT_FAILURE
        except (StoreError, InstanceLockError) as e:
            self.formatter.error(str(e))
            return EXIT_FAILURE

    def cmd_check(self, args: argparse.Namespace) -> int:
        """Handle 'check' command - run every script and compare with snapshots."""
        report = self.tracker.check()

        if args.json:
            self.formatter.output_json({
                'packages': [r.to_dict() for r in report.results],
                'outdated_count': len(report.outdated),
                'failed_count': len(report.failed),
                'timestamp': report.timestamp.isoformat(),
            })
        elif not args.quiet:
            if report.results:
                print()
                print(self.formatter.format_packages_table(report.entries, report.failed))
            else:
                self.formatter.info("No packages registered. Use 'ups insert <name> <script>' to add one.")

        for result in report.failed:
            self.formatter.error(f"{result.entry.name}: {result.error_message}")

        if report.has_failures:
            return EXIT_FAILURE
        return EXIT_OUTDATED if report.has_outdated else EXIT_OK

    def cmd_list(self, args: argparse.Namespace) -> int:
        """Handle 'list' command - show stored versions without running scripts."""
        entries = self.tracker.entries()

        if args.json:
            self.formatter.output_json([e.to_dict() for e in entries])
        elif entries:
            print(self.formatter.format_packages_table(entries))
        else:
            self.formatter.info("No packages registered")
        return EXIT_OK

    def cmd_insert(self, args: argparse.Namespace) -> int:
        """Handle 'insert' command - register a package and its check-script."""
        entry = self.tracker.insert(args.name, args.script, replace=args.force)

        if args.json:
            self.formatter.output_json(entry.to_dict())
        else:
            self.formatter.success(f"Registered {entry.name} ({entry.script_path})")
        return EXIT_OK

    def cmd_snapshot(self, args: argparse.Namespace) -> int:
        """Handle 'snapshot' command - record the latest version as packaged."""
        entry = self.tracker.snapshot(args.name)

        if args.json:
            self.formatter.output_json(entry.to_dict())
        else:
            self.formatter.success(f"Snapshot of {entry.name}: {entry.snapshot_version or NONE_VERSION}")
        return EXIT_OK

    def cmd_get(self, args: argparse.Namespace) -> int:
        """Handle 'get' command - print the latest version of one package."""
        value = self.tracker.latest(args.name)

        if args.json:
            self.formatter.output_json({'name': args.name, 'latest_version': value})
        else:
            print(value)
        return EXIT_OK

    def cmd_remove(self, args: argparse.Namespace) -> int:
        """Handle 'remove' command - unregister a package."""

        if not args.yes:
            try:
                response = input(f"Remove {args.name} from the tracked packages? [y/N] ")
            except (EOFError, KeyboardInterrupt):
                print()
                response = ''
            if response.lower() not in ['y', 'yes']:
                self.formatter.info("Remove cancelled")
                return EXIT_OK

        entry = self.tracker.remove(args.name)
        if args.json:
            self.formatter.output_json(entry.to_dict())
        else:
            self.formatter.success(f"Removed {entry.name}")
        return EXIT_OK

    def cmd_history(self, args: argparse.Namespace) -> int:
        """Handle 'history' command - display snapshot history."""
        history = self.tracker.history

        try:
            if args.clear:
                if not args.yes:
                    response = input("Clear all snapshot history? [y/N] ")
                    if response.lower() not in ['y', 'yes']:
                        self.formatter.info("Clear cancelled")
                        return EXIT_OK

                history.clear()
                self.formatter.success("Snapshot history cleared")
                return EXIT_OK

            if args.export:
                format_ = 'csv' if args.export.lower().endswith('.csv') else 'json'
                history.export(args.export, format_)
                self.formatter.success(f"History exported to {args.export}")
                return EXIT_OK

            events = history.for_package(args.name) if args.name else history.all()
            if args.limit is not None:
                events = events[:args.limit]

            if args.json:
                self.formatter.output_json([e.to_dict() for e in events])
            elif events:
                self.formatter.header(f"Snapshot History ({len(events)} entries)")
                print(self.formatter.format_history_table(events))
            else:
                self.formatter.info("No snapshot history recorded")
            return EXIT_OK

        except (EOFError, KeyboardInterrupt):
            print()
            self.formatter.info("Clear cancelled")
            return EXIT_OK
        except OSError as e:
            self.formatter.error(f"Failed to access history: {e}")
            return EXIT_FAILURE

    def cmd_config(self, args: argparse.Namespace) -> int:
        """Handle 'config' command - view/modify configuration."""

        if args.action == 'path':
            print(self.config.config_file)
            return EXIT_OK

        if args.action == 'get':
            if not args.key:
                if args.json:
                    self.formatter.output_json(self.config.get_all_settings())
                else:
                    self.formatter.header("Configuration")
                    for key, value in self.config.get_all_settings().items():
                        print(f"  {key}: {value}")
                return EXIT_OK

            if args.key not in self.config.config:
                self.formatter.error(f"Unknown config key: {args.key}")
                return EXIT_USAGE
            value = self.config.get(args.key)
            if args.json:
                self.formatter.output_json({args.key: value})
            else:
                print(value)
            return EXIT_OK

        # set
        if not args.key or args.value is None:
            self.formatter.error("Both key and value are required for 'set'")
            self.formatter.info("Available keys:")
            for key in self.config.config.keys():
                print(f"  • {key}")
            self.formatter.info("Example: ups config set script_timeout_seconds 120")
            return EXIT_USAGE

        try:
            self.config.set(args.key, _parse_config_value(args.value))
        except ConfigurationError as e:
            self.formatter.error(str(e))
            return EXIT_USAGE

        self.formatter.success(f"Set {args.key} = {self.config.get(args.key)}")
        return EXIT_OK


def _parse_config_value(value: str):
    """Infer the type of a value given on the command line."""
    lowered = value.lower()
    if lowered in ['true', 'false']:
        return lowered == 'true'
    if lowered in ['null', 'none']:
        return None
    if value.isdigit():
        return int(value)
    return value


def _positive_int(value: str) -> int:
    """argparse type accepting integers >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='ups',
        description='Track upstream versions of the packages you maintain.\n\n'
        'Register a check-script per package, then run `ups` to compare the\n'
        'latest upstream version with the snapshot you currently package.',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global options
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Alternative config file path'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Output in JSON format'
    )
    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable ANSI colors'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Minimal output (exit status only)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser(
        'check',
        help='Run every check-script and compare with snapshots (default)'
    )

    subparsers.add_parser('list', help='Show stored versions without running scripts')

    insert_parser = subparsers.add_parser('insert', help='Register a package and its check-script')
    insert_parser.add_argument('name', help='Package name')
    insert_parser.add_argument('script', help='Executable printing the latest upstream version')
    insert_parser.add_argument(
        '--force', '-f',
        action='store_true',
        help='Replace an existing registration with the same name'
    )

    snapshot_parser = subparsers.add_parser(
        'snapshot',
        help='Record the latest version as the one currently packaged'
    )
    snapshot_parser.add_argument('name', help='Package name')

    get_parser = subparsers.add_parser('get', help='Print the latest upstream version of a package')
    get_parser.add_argument('name', help='Package name')

    remove_parser = subparsers.add_parser('remove', help='Unregister a package')
    remove_parser.add_argument('name', help='Package name')
    remove_parser.add_argument(
        '--yes', '-y',
        action='store_true',
        help='Skip confirmation'
    )

    history_parser = subparsers.add_parser('history', help='Display snapshot history')
    history_parser.add_argument(
        'name',
        nargs='?',
        help='Only show history of this package'
    )
    history_parser.add_argument(
        '--limit',
        type=_positive_int,
        metavar='N',
        help='Show at most N entries'
    )
    history_parser.add_argument(
        '--clear',
        action='store_true',
        help='Clear history'
    )
    history_parser.add_argument(
        '--export',
        metavar='FILE',
        help='Export history to file (json/csv)'
    )
    history_parser.add_argument(
        '--yes', '-y',
        action='store_true',
        help='Skip confirmation for clear'
    )

    config_parser = subparsers.add_parser(
        'config',
        help='View/modify configuration',
        description='Manage configuration settings. Examples:\n'
        '  ups config get                            # Show all settings\n'
        '  ups config get script_timeout_seconds     # Show specific setting\n'
        '  ups config set script_timeout_seconds 120 # Set a value\n'
        '  ups config path                           # Show config file location',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    config_parser.add_argument(
        'action',
        choices=['get', 'set', 'path'],
        help='Config action: get (view), set (change), path (location)'
    )
    config_parser.add_argument(
        'key',
        nargs='?',
        help='Config key (e.g. script_timeout_seconds, history_enabled, use_color)'
    )
    config_parser.add_argument(
        'value',
        nargs='?',
        help='Config value to set (e.g. 120, true, false, null)'
    )

    return parser


def main(argv: Optional[list] = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.debug:
        set_console_level(logging.DEBUG)
    elif args.quiet:
        set_console_level(logging.ERROR)
    else:
        set_console_level(logging.WARNING)

    try:
        cli = UpsCLI(args.config)
        exit_code = cli.run(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    except UpsError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_USAGE)
    except Exception as e:
        print(f"Fatal error: {str(e)}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(EXIT_USAGE)


if __name__ == '__main__':
    main()
