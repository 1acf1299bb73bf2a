"""
Inbox Cleaner
=============

Drives one reorganization pass over the inbox: every immediate entry is
matched against the clean rules and moved to the first matching rule's
target.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Dict, Any

from workspace_organizer.actions.file_operations import MoveExecutor
from workspace_organizer.actions.rules_engine import RulesEngine
from workspace_organizer.actions.undo_journal import UndoJournal
from workspace_organizer.config.settings import Config
from workspace_organizer.utils.exceptions import MoveError
from workspace_organizer.utils.logging_config import get_logger, Timer

logger = get_logger(__name__)

NO_MATCHING_RULE = "No matching rule"


@dataclass
class MovedItem:
    """An inbox item that was (or, in a dry run, would be) moved."""
    source: Path
    destination: Path
    dry_run: bool
    used_copy_fallback: bool = False


@dataclass
class SkippedItem:
    """An inbox item left in place."""
    path: Path
    reason: str


@dataclass
class CleanReport:
    """Result of a single clean pass."""
    moved: List[MovedItem] = field(default_factory=list)
    skipped: List[SkippedItem] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    inbox_empty: bool = False
    inbox_not_found: bool = False

    def summary(self) -> str:
        return (
            f"Moved: {len(self.moved)}, Skipped: {len(self.skipped)}, "
            f"Errors: {len(self.errors)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "moved": [
                {
                    "source": str(item.source),
                    "destination": str(item.destination),
                    "dry_run": item.dry_run,
                    "used_copy_fallback": item.used_copy_fallback,
                }
                for item in self.moved
            ],
            "skipped": [
                {"path": str(item.path), "reason": item.reason}
                for item in self.skipped
            ],
            "errors": list(self.errors),
            "inbox_empty": self.inbox_empty,
            "inbox_not_found": self.inbox_not_found,
        }


def _is_text_name(name: str) -> bool:
    """Whether a directory entry name is valid text.

    Undecodable bytes come back from ``os.scandir`` as lone surrogates.
    """
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class CleanOrchestrator:
    """Runs clean passes over the configured inbox."""

    def __init__(
        self,
        config: Config,
        journal: Optional[UndoJournal] = None,
        executor: Optional[MoveExecutor] = None
    ):
        """Initialize the orchestrator.

        Args:
            config: Loaded configuration (paths and rules).
            journal: Undo journal; defaults to the workspace journal.
            executor: Move executor; defaults to one writing to ``journal``.
        """
        self.config = config
        self.journal = journal if journal is not None else UndoJournal.for_config(config)
        self.executor = executor or MoveExecutor(self.journal)

    def run(self, dry_run: bool = False) -> CleanReport:
        """Run one clean pass.

        Args:
            dry_run: Report intended moves without touching anything.

        Returns:
            CleanReport with per-item outcomes.

        Raises:
            ConfigurationError: If the inbox path cannot be resolved.
        """
        report = CleanReport()
        inbox = self.config.resolve_path("inbox")

        if not inbox.is_dir():
            logger.warning(f"Inbox path not found: {inbox}")
            report.inbox_not_found = True
            return report

        with os.scandir(inbox) as it:
            entries = list(it)

        if not entries:
            report.inbox_empty = True
            return report

        engine = RulesEngine(self.config.rules)
        report.errors.extend(error.message for error in engine.errors)

        mode = "dry run" if dry_run else "clean"
        logger.info(f"Scanning {len(entries)} items in {inbox} ({mode})")

        with Timer(logger, f"clean {inbox}"):
            for entry in entries:
                self._process_entry(Path(entry.path), entry.name, engine, dry_run, report)

        logger.info(report.summary())
        return report

    def _process_entry(
        self,
        path: Path,
        name: str,
        engine: RulesEngine,
        dry_run: bool,
        report: CleanReport
    ) -> None:
        if not _is_text_name(name):
            logger.debug(f"Ignoring entry with undecodable name: {path!r}")
            return

        compiled = engine.match(name)
        if compiled is None:
            logger.debug(f"Skipped: {name} ({NO_MATCHING_RULE})")
            report.skipped.append(SkippedItem(path=path, reason=NO_MATCHING_RULE))
            return

        dest_dir = self.config.resolve_path(compiled.target)
        try:
            result = self.executor.move(path, dest_dir, dry_run=dry_run)
        except MoveError as e:
            logger.error(f"Failed to move {path}: {e.message}")
            report.errors.append(f"Failed to move {path}: {e.message}")
            return

        report.moved.append(MovedItem(
            source=path,
            destination=result.destination or dest_dir / name,
            dry_run=dry_run,
            used_copy_fallback=result.used_copy_fallback,
        ))


def log_clean_report(report: CleanReport, log: Optional[logging.Logger] = None) -> None:
    """Write a clean report to the log, one line per item plus a summary."""
    log = log or logger

    if report.inbox_not_found:
        log.error("Inbox path not found")
        return
    if report.inbox_empty:
        log.info("Inbox is empty")
        return

    for item in report.moved:
        verb = "Would move" if item.dry_run else "Moved"
        log.info(f"{verb} {item.source} -> {item.destination}")
    for item in report.skipped:
        log.info(f"Skipped: {item.path.name} ({item.reason})")
    for error in report.errors:
        log.error(error)
    log.info(report.summary())
