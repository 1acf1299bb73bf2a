"""
File Operations
===============

Relocates a single inbox item into its destination directory.
Uses an atomic rename when possible and falls back to copy-then-delete when
source and destination live on different devices. Every completed move is
appended to the undo journal.
"""

import errno
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from workspace_organizer.actions.undo_journal import UndoJournal
from workspace_organizer.utils.exceptions import ErrorCode, MoveError, JournalWriteError
from workspace_organizer.utils.file_utils import relocate
from workspace_organizer.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class MoveResult:
    """Outcome of a single move.

    Attributes:
        success: Whether the item ended up (or would end up) at destination.
        used_copy_fallback: Whether copy-then-delete was used.
        destination: Final path of the item.
        dry_run: Whether nothing was actually touched.
    """
    success: bool
    used_copy_fallback: bool = False
    destination: Optional[Path] = None
    dry_run: bool = False


class MoveExecutor:
    """Safe moves with undo journaling.

    Failures raise ``MoveError``; the item stays where it was (or, after a
    failed cross-device copy, at worst a partial duplicate exists at the
    destination).
    """

    def __init__(self, journal: Optional[UndoJournal] = None):
        """Initialize the executor.

        Args:
            journal: Journal receiving one record per completed move.
                     None disables journaling.
        """
        self.journal = journal

    def move(
        self,
        source: Path,
        dest_dir: Path,
        dry_run: bool = False
    ) -> MoveResult:
        """Move an item (file or directory) into a destination directory.

        Args:
            source: Item to move.
            dest_dir: Directory to move it into; created if missing.
            dry_run: Report the move without touching anything.

        Returns:
            MoveResult describing the move.

        Raises:
            MoveError: If the move fails.
        """
        source = Path(source)
        dest_dir = Path(dest_dir)
        dest_path = dest_dir / source.name

        if dry_run:
            logger.debug(f"Dry run: would move {source} -> {dest_path}")
            return MoveResult(success=True, destination=dest_path, dry_run=True)

        if not os.path.lexists(source):
            raise MoveError(
                "Source no longer exists",
                file_path=str(source),
                error_code=ErrorCode.FILE_NOT_FOUND,
            )

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise self._wrap_os_error(f"Failed to create destination directory {dest_dir}", source, e)

        if os.path.lexists(dest_path):
            raise MoveError(
                f"Destination already exists: {dest_path}",
                file_path=str(source),
                error_code=ErrorCode.NAME_COLLISION,
            )

        try:
            used_copy_fallback = relocate(source, dest_path)
        except OSError as e:
            raise self._wrap_os_error("Failed to move", source, e)

        logger.info(f"Moved: {source.name} -> {dest_path}")
        self._journal_move(source, dest_path)

        return MoveResult(
            success=True,
            used_copy_fallback=used_copy_fallback,
            destination=dest_path,
        )

    def _journal_move(self, source: Path, dest_path: Path) -> None:
        if self.journal is None:
            return
        try:
            self.journal.record_move(source, dest_path)
        except JournalWriteError as e:
            # The move stands even without an undo record
            logger.warning(f"Failed to log undo operation for {source}: {e}")

    @staticmethod
    def _wrap_os_error(message: str, source: Path, error: OSError) -> MoveError:
        if error.errno in (errno.EACCES, errno.EPERM):
            code = ErrorCode.PERMISSION_DENIED
        elif error.errno in (errno.EEXIST, errno.ENOTEMPTY):
            code = ErrorCode.NAME_COLLISION
        else:
            code = ErrorCode.MOVE_FAILED
        return MoveError(
            f"{message}: {error.strerror or error}",
            file_path=str(source),
            error_code=code,
            cause=error,
        )
