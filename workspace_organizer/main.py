"""
Workspace Organizer - Command Line
==================================

Entry point for the ``clean``, ``undo``, ``watch``, ``history`` and
``config`` commands.
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import yaml

from workspace_organizer import __version__
from workspace_organizer.actions import (
    CleanOrchestrator,
    CleanReport,
    UndoJournal,
    UndoReport,
)
from workspace_organizer.config import Config, default_rules
from workspace_organizer.monitoring import InboxWatcher
from workspace_organizer.utils.exceptions import OrganizerError, ConfigurationError
from workspace_organizer.utils.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="workspace-organizer",
        description="Workspace Organizer - sort the inbox into your workspace, reversibly"
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to config file (default: ~/.config/workspace_organizer/config.yaml, then ./config.yaml)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f"%(prog)s {__version__}"
    )

    commands = parser.add_subparsers(dest='command', required=True)

    clean = commands.add_parser('clean', help='Sort items from the inbox into the workspace')
    clean.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be moved without moving anything'
    )

    undo = commands.add_parser('undo', help='Undo the last move operations')
    undo.add_argument(
        '--count', '-n',
        type=_positive_int,
        default=1,
        help='Number of operations to undo (default: 1)'
    )

    commands.add_parser('watch', help='Watch the inbox and clean it automatically')

    history = commands.add_parser('history', help='Show recent move operations')
    history.add_argument(
        '--count', '-n',
        type=_positive_int,
        default=10,
        help='Number of entries to show (default: 10)'
    )

    config = commands.add_parser('config', help='Manage the configuration file')
    config_commands = config.add_subparsers(dest='config_command', required=True)
    init = config_commands.add_parser('init', help='Write a default configuration file')
    init.add_argument(
        '--path',
        type=Path,
        help='Where to write the file (default: ~/.config/workspace_organizer/config.yaml)'
    )
    init.add_argument(
        '--force',
        action='store_true',
        help='Overwrite an existing file'
    )
    config_commands.add_parser('show', help='Print the effective configuration')

    return parser


def print_clean_report(report: CleanReport, inbox: Path) -> None:
    """Print every clean outcome followed by the totals."""
    if report.inbox_not_found:
        print(f"✗ Inbox path not found: {inbox}")
        return

    if report.inbox_empty:
        print("Inbox is empty.")
        return

    for item in report.moved:
        if item.dry_run:
            print(f"  Would move {item.source} -> {item.destination}")
        else:
            suffix = " (copied across devices)" if item.used_copy_fallback else ""
            print(f"  ✓ Moved {item.source.name} -> {item.destination}{suffix}")

    for item in report.skipped:
        print(f"  - Skipped: {item.path.name} ({item.reason})")

    for error in report.errors:
        print(f"  ✗ {error}")

    print(f"\n{report.summary()}")


def print_undo_report(report: UndoReport) -> None:
    """Print every undo outcome followed by the totals."""
    if report.no_log_found:
        print("No undo log found.")
        return

    if report.log_empty:
        print("Undo log is empty.")
        return

    for item in report.undone:
        if item.success:
            print(f"  ↩ Reverted {item.source} -> {item.destination}")
        else:
            target = item.source if item.source else "journal entry"
            print(f"  ✗ Could not revert {target}: {item.error}")

    print(f"\nReverted: {report.reverted_count}, Failed: {report.failed_count}")


def cmd_clean(config: Config, args: argparse.Namespace) -> int:
    orchestrator = CleanOrchestrator(config)
    report = orchestrator.run(dry_run=args.dry_run)
    print_clean_report(report, config.resolve_path("inbox"))
    return 0


def cmd_undo(config: Config, args: argparse.Namespace) -> int:
    journal = UndoJournal.for_config(config)
    report = journal.undo(args.count)
    print_undo_report(report)
    return 0


def cmd_watch(config: Config, args: argparse.Namespace) -> int:
    inbox = config.resolve_path("inbox")
    if not inbox.is_dir():
        print(f"✗ Inbox path not found: {inbox}")
        return 0

    print(f"Watching {inbox} (press Ctrl+C to stop)")
    InboxWatcher(config).watch()
    return 0


def cmd_history(config: Config, args: argparse.Namespace) -> int:
    journal = UndoJournal.for_config(config)
    operations = journal.get_recent(args.count)
    if not operations:
        print("No history yet.")
        return 0

    print(f"\n📋 Recent History ({len(operations)} entries):\n")
    for operation in operations:
        when = datetime.fromtimestamp(operation.timestamp).strftime("%Y-%m-%d %H:%M")
        print(f"  [{when}] {operation.src.name}")
        print(f"      {operation.src} → {operation.dest}")
    return 0


def cmd_config(config: Optional[Config], args: argparse.Namespace) -> int:
    if args.config_command == 'init':
        target = args.path or Config.search_paths()[0]
        if target.exists() and not args.force:
            raise ConfigurationError(
                f"Config file already exists: {target} (use --force to overwrite)"
            )
        Config(rules=default_rules()).save(target)
        print(f"✓ Config initialized at {target}")
        return 0

    print("Current Configuration:\n")
    if config.source:
        print(f"# loaded from {config.source}")
    print(yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False))
    return 0


COMMANDS = {
    'clean': cmd_clean,
    'undo': cmd_undo,
    'watch': cmd_watch,
    'history': cmd_history,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with CLI support."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'config' and args.config_command == 'init':
            return cmd_config(None, args)

        config = Config.load(args.config)
        if args.verbose:
            config.logging_config.level = "DEBUG"
        setup_logging(config.logging_config)

        if args.command == 'config':
            return cmd_config(config, args)
        return COMMANDS[args.command](config, args)

    except OrganizerError as e:
        logger.debug(f"Command {args.command} failed", exc_info=True)
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
