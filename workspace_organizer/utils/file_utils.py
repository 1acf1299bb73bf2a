"""
Filesystem helpers shared by moves and undo.
"""

import errno
import os
import shutil
from pathlib import Path

from workspace_organizer.utils.exceptions import (
    ErrorCode,
    MoveError,
    CrossDeviceFallbackError,
)
from workspace_organizer.utils.logging_config import get_logger

logger = get_logger(__name__)


def relocate(source: Path, dest_path: Path) -> bool:
    """Rename ``source`` to ``dest_path``, copying across devices if needed.

    Args:
        source: Existing file, symlink or directory.
        dest_path: Full target path; must not exist.

    Returns:
        True if the copy-then-delete fallback was used.

    Raises:
        OSError: If the rename fails for a reason other than EXDEV.
        CrossDeviceFallbackError: If the cross-device copy fails (source kept).
        MoveError: If the copy succeeded but the source could not be removed.
    """
    try:
        os.rename(source, dest_path)
        return False
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise

    logger.info(f"Cross-device move, copying: {source} -> {dest_path}")
    copy_then_delete(source, dest_path)
    return True


def copy_then_delete(source: Path, dest_path: Path) -> None:
    """Copy an item across devices, then remove the original.

    The original is only removed once the copy completed without error.
    """
    is_dir = source.is_dir() and not source.is_symlink()

    try:
        if is_dir:
            shutil.copytree(source, dest_path, symlinks=True)
        else:
            shutil.copy2(source, dest_path, follow_symlinks=False)
    except (OSError, shutil.Error) as e:
        logger.error(f"Cross-device copy failed, source kept: {source}")
        raise CrossDeviceFallbackError(
            f"Cross-device copy failed: {e}",
            file_path=str(source),
            cause=e,
        )

    if not os.path.lexists(dest_path):
        raise CrossDeviceFallbackError(
            "Cross-device copy did not produce the destination",
            file_path=str(source),
        )

    try:
        if is_dir:
            shutil.rmtree(source)
        else:
            os.unlink(source)
    except OSError as e:
        raise MoveError(
            f"Copied to {dest_path} but could not remove the original: {e}",
            file_path=str(source),
            error_code=ErrorCode.SOURCE_REMOVAL_FAILED,
            cause=e,
        )
