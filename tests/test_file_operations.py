"""
Unit tests for the move executor.
"""

import errno
import os
import shutil

import pytest

from workspace_organizer.utils import file_utils
from workspace_organizer.actions.file_operations import MoveExecutor
from workspace_organizer.actions.undo_journal import UndoJournal, OperationKind
from workspace_organizer.utils.exceptions import (
    ErrorCode,
    MoveError,
    CrossDeviceFallbackError,
)


def cross_device_rename(src, dst, *args, **kwargs):
    raise OSError(errno.EXDEV, "Invalid cross-device link")


class TestMoveExecutor:
    """Tests for MoveExecutor."""

    @pytest.fixture
    def executor(self, journal):
        return MoveExecutor(journal)

    def test_move_file(self, executor, journal, tmp_path):
        """Test a same-device move renames and journals once."""
        source = tmp_path / "a.pdf"
        source.write_bytes(b"%PDF-1.4 data")
        dest_dir = tmp_path / "dest"

        result = executor.move(source, dest_dir)

        assert result.success is True
        assert result.used_copy_fallback is False
        assert result.destination == dest_dir / "a.pdf"
        assert not source.exists()
        assert (dest_dir / "a.pdf").read_bytes() == b"%PDF-1.4 data"

        operations = journal.read_operations()
        assert len(operations) == 1
        assert operations[0].kind is OperationKind.MOVE
        assert operations[0].src == source
        assert operations[0].dest == dest_dir / "a.pdf"

    def test_creates_nested_destination(self, executor, tmp_path):
        source = tmp_path / "a.txt"
        source.write_text("x")

        executor.move(source, tmp_path / "deep" / "er" / "dir")

        assert (tmp_path / "deep" / "er" / "dir" / "a.txt").exists()

    def test_dry_run_touches_nothing(self, executor, journal, tmp_path):
        """Test dry run neither moves, creates directories nor journals."""
        source = tmp_path / "a.pdf"
        source.write_text("x")
        dest_dir = tmp_path / "not-created"

        result = executor.move(source, dest_dir, dry_run=True)

        assert result.success is True
        assert result.dry_run is True
        assert result.destination == dest_dir / "a.pdf"
        assert source.exists()
        assert not dest_dir.exists()
        assert not journal.exists()

    def test_name_collision(self, executor, journal, tmp_path):
        """Test an existing destination is never overwritten."""
        source = tmp_path / "a.txt"
        source.write_text("new")
        dest_dir = tmp_path / "dest"
        dest_dir.mkdir()
        (dest_dir / "a.txt").write_text("old")

        with pytest.raises(MoveError) as exc_info:
            executor.move(source, dest_dir)

        assert exc_info.value.error_code == ErrorCode.NAME_COLLISION
        assert source.read_text() == "new"
        assert (dest_dir / "a.txt").read_text() == "old"
        assert not journal.exists()

    def test_missing_source(self, executor, tmp_path):
        with pytest.raises(MoveError) as exc_info:
            executor.move(tmp_path / "gone.txt", tmp_path / "dest")

        assert exc_info.value.error_code == ErrorCode.FILE_NOT_FOUND

    def test_other_rename_error(self, executor, journal, tmp_path, monkeypatch):
        """Test non cross-device rename errors fail the item."""
        source = tmp_path / "a.txt"
        source.write_text("x")

        def denied(src, dst, *args, **kwargs):
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr(file_utils.os, "rename", denied)

        with pytest.raises(MoveError) as exc_info:
            executor.move(source, tmp_path / "dest")

        assert exc_info.value.error_code == ErrorCode.PERMISSION_DENIED
        assert source.exists()
        assert not journal.exists()

    def test_cross_device_file(self, executor, journal, tmp_path, monkeypatch):
        """Test EXDEV falls back to copy then delete."""
        source = tmp_path / "a.bin"
        source.write_bytes(b"\x00\x01payload")
        dest_dir = tmp_path / "other-device"
        monkeypatch.setattr(file_utils.os, "rename", cross_device_rename)

        result = executor.move(source, dest_dir)

        assert result.used_copy_fallback is True
        assert not source.exists()
        assert (dest_dir / "a.bin").read_bytes() == b"\x00\x01payload"
        assert len(journal) == 1

    def test_cross_device_directory(self, executor, journal, tmp_path, monkeypatch):
        """Test a whole subtree moves and is journaled once."""
        source = tmp_path / "project"
        (source / "src" / "pkg").mkdir(parents=True)
        (source / "README").write_text("readme")
        (source / "src" / "pkg" / "mod.py").write_text("print('hi')")
        dest_dir = tmp_path / "other-device"
        monkeypatch.setattr(file_utils.os, "rename", cross_device_rename)

        result = executor.move(source, dest_dir)

        moved = dest_dir / "project"
        assert result.used_copy_fallback is True
        assert not source.exists()
        assert (moved / "README").read_text() == "readme"
        assert (moved / "src" / "pkg" / "mod.py").read_text() == "print('hi')"

        operations = journal.read_operations()
        assert len(operations) == 1
        assert operations[0].src == source
        assert operations[0].dest == moved

    def test_cross_device_copy_failure_keeps_source(self, executor, journal, tmp_path, monkeypatch):
        """Test a failed copy never deletes the source."""
        source = tmp_path / "a.bin"
        source.write_bytes(b"precious")
        monkeypatch.setattr(file_utils.os, "rename", cross_device_rename)

        def disk_full(*args, **kwargs):
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr(file_utils.shutil, "copy2", disk_full)

        with pytest.raises(CrossDeviceFallbackError) as exc_info:
            executor.move(source, tmp_path / "dest")

        assert isinstance(exc_info.value, MoveError)
        assert exc_info.value.error_code == ErrorCode.CROSS_DEVICE_COPY_FAILED
        assert source.read_bytes() == b"precious"
        assert not journal.exists()

    def test_cross_device_partial_tree_keeps_source(self, executor, journal, tmp_path, monkeypatch):
        """Test a copytree failure leaves the source tree intact."""
        source = tmp_path / "tree"
        source.mkdir()
        (source / "one.txt").write_text("1")
        monkeypatch.setattr(file_utils.os, "rename", cross_device_rename)

        def broken_copytree(src, dst, *args, **kwargs):
            os.makedirs(dst)
            raise shutil.Error([(str(src), str(dst), "boom")])

        monkeypatch.setattr(file_utils.shutil, "copytree", broken_copytree)

        with pytest.raises(CrossDeviceFallbackError):
            executor.move(source, tmp_path / "dest")

        assert (source / "one.txt").read_text() == "1"
        assert not journal.exists()

    def test_journal_failure_does_not_fail_move(self, tmp_path):
        """Test an unwritable journal leaves the move in place."""
        journal = UndoJournal(tmp_path / "missing-dir" / ".undo_log.jsonl")
        executor = MoveExecutor(journal)
        source = tmp_path / "a.txt"
        source.write_text("x")

        result = executor.move(source, tmp_path / "dest")

        assert result.success is True
        assert (tmp_path / "dest" / "a.txt").exists()
        assert not journal.exists()

    def test_without_journal(self, tmp_path):
        source = tmp_path / "a.txt"
        source.write_text("x")

        result = MoveExecutor().move(source, tmp_path / "dest")

        assert result.success is True
