"""
Undo Journal
============

Append-only record of completed moves, stored as JSON lines in
``<workspace>/.undo_log.jsonl``. Each append opens, writes and closes the
file; no handle is kept between calls. Undo reverts the newest records and
then rewrites the file with the older ones in a single atomic replace.
"""

import json
import os
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any, Union

from workspace_organizer.utils.exceptions import (
    OrganizerError,
    ErrorCode,
    JournalWriteError,
    JournalRewriteError,
    UndoTargetMissingError,
)
from workspace_organizer.utils.file_utils import relocate
from workspace_organizer.utils.logging_config import get_logger

logger = get_logger(__name__)

JOURNAL_FILENAME = ".undo_log.jsonl"


class OperationKind(Enum):
    """Kinds of journaled operations."""
    MOVE = "Move"


class UnknownOperationKind(ValueError):
    """A journal line carries a kind this version does not understand."""


@dataclass
class Operation:
    """Record of a single completed move.

    Attributes:
        timestamp: Seconds since the epoch when the move completed.
        kind: Operation discriminant.
        src: Absolute path the item was moved from.
        dest: Absolute path the item was moved to.
    """

    timestamp: int
    kind: OperationKind
    src: Path
    dest: Path

    @classmethod
    def move(cls, src: Path, dest: Path, timestamp: Optional[int] = None) -> "Operation":
        """Build a move record stamped with the current time."""
        return cls(
            timestamp=int(time.time()) if timestamp is None else timestamp,
            kind=OperationKind.MOVE,
            src=Path(src).absolute(),
            dest=Path(dest).absolute(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "timestamp": self.timestamp,
            "kind": self.kind.value,
            "src": str(self.src),
            "dest": str(self.dest),
        }

    def to_json(self) -> str:
        """Serialize as a single journal line (without newline)."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Operation":
        """Create from dictionary.

        Raises:
            UnknownOperationKind: If ``kind`` is not a known variant.
            KeyError, TypeError, ValueError: If the record is malformed.
        """
        try:
            kind = OperationKind(data["kind"])
        except ValueError:
            raise UnknownOperationKind(f"Unknown operation kind: {data['kind']!r}")
        return cls(
            timestamp=int(data["timestamp"]),
            kind=kind,
            src=Path(data["src"]),
            dest=Path(data["dest"]),
        )

    @classmethod
    def from_json(cls, line: str) -> "Operation":
        """Parse one journal line."""
        data = json.loads(line)
        if not isinstance(data, dict):
            raise ValueError("Journal line is not a JSON object")
        return cls.from_dict(data)


@dataclass
class UndoItem:
    """Outcome of reverting one operation.

    Attributes:
        source: Where the item was taken from (the recorded destination).
        destination: Where it was restored to (the recorded source).
        success: Whether the item was moved back.
        error: Reason for failure.
    """
    source: Optional[Path]
    destination: Optional[Path]
    success: bool
    error: Optional[str] = None


@dataclass
class UndoReport:
    """Result of an undo batch."""
    undone: List[UndoItem] = field(default_factory=list)
    no_log_found: bool = False
    log_empty: bool = False

    @property
    def reverted_count(self) -> int:
        return sum(1 for item in self.undone if item.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.undone if not item.success)


class UndoJournal:
    """Handle to the undo journal file.

    Passed explicitly to whatever needs to append to or rewrite the
    journal; every call opens and closes the file itself.
    """

    def __init__(self, journal_path: Union[str, Path]):
        """Initialize the journal handle.

        Args:
            journal_path: Location of the JSON-lines journal.
        """
        self.path = Path(journal_path)

    @classmethod
    def for_config(cls, config) -> "UndoJournal":
        """Journal located in the configured workspace root."""
        return cls(config.resolve_path("workspace") / JOURNAL_FILENAME)

    def append(self, operation: Operation) -> None:
        """Append one operation as a single line.

        Raises:
            JournalWriteError: If the journal cannot be opened or written.
        """
        line = (operation.to_json() + "\n").encode("utf-8", "surrogateescape")
        try:
            with open(self.path, "a+b") as f:
                # Finish a line left partial by an interrupted append
                if f.seek(0, os.SEEK_END) > 0:
                    f.seek(-1, os.SEEK_END)
                    if f.read(1) != b"\n":
                        f.write(b"\n")
                f.write(line)
        except OSError as e:
            raise JournalWriteError(
                "Failed to append to undo journal",
                journal_path=str(self.path),
                cause=e,
            )
        logger.debug(f"Journaled move: {operation.src} -> {operation.dest}")

    def record_move(self, source: Path, destination: Path) -> Operation:
        """Record a completed move.

        Args:
            source: Original item path.
            destination: Final item path.

        Returns:
            The appended operation.
        """
        operation = Operation.move(source, destination)
        self.append(operation)
        return operation

    def exists(self) -> bool:
        return self.path.exists()

    def read_lines(self) -> List[str]:
        """Read the raw journal lines in chronological order.

        Blank lines are ignored. A missing journal reads as empty. Bytes that
        are not valid UTF-8 are kept as surrogates, so such lines fail to
        parse and are rewritten unchanged.
        """
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8", errors="surrogateescape") as f:
            return [line.rstrip("\n") for line in f if line.strip()]

    def read_operations(self) -> List[Operation]:
        """Parse every readable operation in chronological order.

        Lines with an unknown kind or malformed content are skipped.
        """
        operations = []
        for number, line in enumerate(self.read_lines(), start=1):
            try:
                operations.append(Operation.from_json(line))
            except UnknownOperationKind as e:
                logger.warning(f"Skipping journal line {number}: {e}")
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed journal line {number}: {e}")
        return operations

    def __len__(self) -> int:
        return len(self.read_lines())

    def get_recent(self, count: int = 10) -> List[Operation]:
        """Get the most recent operations.

        Args:
            count: Number of operations to return.

        Returns:
            Operations, newest first.
        """
        if count <= 0:
            return []
        return list(reversed(self.read_operations()[-count:]))

    def undo(self, count: int = 1) -> UndoReport:
        """Revert the newest ``count`` operations.

        Operations are reverted newest first. Individual failures are
        recorded and do not stop the batch. Afterwards the journal is
        rewritten, exactly once, with only the lines that were not part of
        the batch.

        Args:
            count: Number of operations to revert.

        Returns:
            Per-item outcomes.

        Raises:
            JournalRewriteError: If the journal cannot be rewritten.
        """
        if not self.path.exists():
            logger.info(f"No undo log found at {self.path}")
            return UndoReport(no_log_found=True)

        lines = self.read_lines()
        if not lines:
            logger.info("Undo log is empty")
            return UndoReport(log_empty=True)

        report = UndoReport()
        to_undo = min(max(count, 0), len(lines))
        if to_undo == 0:
            return report

        keep = lines[:len(lines) - to_undo]
        revert = lines[len(lines) - to_undo:]

        logger.info(f"Undoing last {to_undo} operations")

        for line in reversed(revert):
            report.undone.append(self._revert_line(line))

        self._rewrite(keep)

        logger.info(
            f"Undo finished: {report.reverted_count} reverted, "
            f"{report.failed_count} failed"
        )
        return report

    def _revert_line(self, line: str) -> UndoItem:
        """Move one journaled item back to where it came from."""
        try:
            operation = Operation.from_json(line)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Cannot revert journal line: {e}")
            return UndoItem(source=None, destination=None, success=False, error=str(e))

        try:
            self._revert(operation)
        except OrganizerError as e:
            logger.warning(f"Cannot undo {operation.dest}: {e.message}")
            return UndoItem(
                source=operation.dest,
                destination=operation.src,
                success=False,
                error=e.message,
            )

        logger.info(f"Undone: {operation.dest} -> {operation.src}")
        return UndoItem(source=operation.dest, destination=operation.src, success=True)

    def _revert(self, operation: Operation) -> None:
        if operation.kind is OperationKind.MOVE:
            self._revert_move(operation)

    @staticmethod
    def _revert_move(operation: Operation) -> None:
        dest = operation.dest
        src = operation.src

        if not os.path.lexists(dest):
            raise UndoTargetMissingError("Source file not found", file_path=str(dest))

        # Never overwrite whatever now occupies the original location
        if os.path.lexists(src):
            raise OrganizerError(
                f"Original location already exists: {src}",
                error_code=ErrorCode.UNDO_FAILED,
                details={"file_path": str(src)},
            )

        try:
            src.parent.mkdir(parents=True, exist_ok=True)
            relocate(dest, src)
        except OSError as e:
            raise OrganizerError(
                e.strerror or str(e),
                error_code=ErrorCode.UNDO_FAILED,
                details={"file_path": str(dest)},
                cause=e,
            )

    def _rewrite(self, keep: List[str]) -> None:
        """Atomically replace the journal with ``keep``."""
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=".undo_log.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as f:
                for line in keep:
                    f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to rewrite undo journal {self.path}: {e}")
            raise JournalRewriteError(
                "Failed to rewrite undo journal after undo; "
                "reverted files and journal contents may disagree",
                journal_path=str(self.path),
                cause=e,
            )
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
