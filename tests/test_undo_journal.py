"""
Unit tests for the undo journal.
"""

import json
import os

import pytest

from workspace_organizer.actions import undo_journal
from workspace_organizer.actions.undo_journal import (
    UndoJournal,
    Operation,
    OperationKind,
)
from workspace_organizer.config.settings import Config, PathsConfig
from workspace_organizer.utils.exceptions import JournalWriteError, JournalRewriteError


def place(tmp_path, name, content="data"):
    """Create a file as if it had been moved from inbox to resources."""
    src = tmp_path / "inbox" / name
    dest = tmp_path / "resources" / name
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(content)
    return src, dest


class TestOperation:
    """Tests for Operation serialization."""

    def test_line_format(self, tmp_path):
        """Test the persisted line layout."""
        operation = Operation.move(tmp_path / "a", tmp_path / "b", timestamp=1718000000)

        data = json.loads(operation.to_json())

        assert data == {
            "timestamp": 1718000000,
            "kind": "Move",
            "src": str(tmp_path / "a"),
            "dest": str(tmp_path / "b"),
        }

    def test_parse_line(self):
        line = '{"timestamp": 1718000000, "kind": "Move", "src": "/w/in/a.pdf", "dest": "/w/res/a.pdf"}'

        operation = Operation.from_json(line)

        assert operation.kind is OperationKind.MOVE
        assert operation.timestamp == 1718000000
        assert str(operation.src) == "/w/in/a.pdf"
        assert str(operation.dest) == "/w/res/a.pdf"


class TestUndoJournal:
    """Tests for UndoJournal."""

    def test_append_one_line_per_move(self, journal, tmp_path):
        """Test journal length equals number of recorded moves."""
        for i in range(3):
            journal.record_move(tmp_path / f"in{i}", tmp_path / f"out{i}")

        assert len(journal) == 3
        assert [op.dest.name for op in journal.read_operations()] == ["out0", "out1", "out2"]

    def test_for_config(self, tmp_path):
        config = Config(paths=PathsConfig(workspace=tmp_path))

        assert UndoJournal.for_config(config).path == tmp_path / ".undo_log.jsonl"

    def test_append_failure(self, tmp_path):
        journal = UndoJournal(tmp_path / "no-such-dir" / "log.jsonl")

        with pytest.raises(JournalWriteError):
            journal.record_move(tmp_path / "a", tmp_path / "b")

    def test_skips_unknown_kinds(self, journal, tmp_path):
        """Test newer or garbled records do not break reading."""
        journal.record_move(tmp_path / "a", tmp_path / "b")
        with open(journal.path, "a", encoding="utf-8") as f:
            f.write('{"timestamp": 1, "kind": "Delete", "src": "/x", "dest": "/y"}\n')
            f.write("not json\n")
        journal.record_move(tmp_path / "c", tmp_path / "d")

        operations = journal.read_operations()

        assert [op.src.name for op in operations] == ["a", "c"]
        assert len(journal) == 4

    def test_append_after_partial_line(self, journal, tmp_path):
        """Test a record written after an interrupted append stays readable."""
        journal.path.write_text('{"timestamp": 1, "kind": "Mo')

        journal.record_move(tmp_path / "a.txt", tmp_path / "out" / "a.txt")

        operations = journal.read_operations()
        assert [op.src.name for op in operations] == ["a.txt"]
        assert len(journal) == 2
        assert journal.path.read_bytes().endswith(b"\n")

    def test_partial_line_then_undo(self, journal, tmp_path):
        src, dest = place(tmp_path, "a.txt", "moved")
        journal.path.write_text('{"timestamp": 1, "kind": "Mo')
        journal.record_move(src, dest)

        report = journal.undo(1)

        assert report.reverted_count == 1
        assert src.read_text() == "moved"
        assert journal.read_lines() == ['{"timestamp": 1, "kind": "Mo']

    def test_undecodable_bytes_are_skipped(self, journal, tmp_path):
        """Test a line that is not valid UTF-8 does not break reading."""
        journal.record_move(tmp_path / "a", tmp_path / "b")
        with open(journal.path, "ab") as f:
            f.write(b"\xff\xfe\n")

        assert [op.src.name for op in journal.read_operations()] == ["a"]
        assert [op.src.name for op in journal.get_recent(5)] == ["a"]
        assert len(journal) == 2

    def test_undo_with_undecodable_line(self, journal, tmp_path):
        """Test undo reports the garbled line and still reverts the rest."""
        src, dest = place(tmp_path, "a.txt")
        journal.record_move(src, dest)
        with open(journal.path, "ab") as f:
            f.write(b"\xff\xfe\n")

        report = journal.undo(2)

        assert report.reverted_count == 1
        assert report.failed_count == 1
        assert report.undone[0].source is None
        assert src.exists()
        assert len(journal) == 0

    def test_rewrite_keeps_undecodable_bytes(self, journal, tmp_path):
        """Test kept lines are written back byte for byte."""
        with open(journal.path, "wb") as f:
            f.write(b"\xff\xfe\n")
        src, dest = place(tmp_path, "a.txt")
        journal.record_move(src, dest)

        journal.undo(1)

        assert journal.path.read_bytes() == b"\xff\xfe\n"

    def test_get_recent_newest_first(self, journal, tmp_path):
        for name in ("a", "b", "c"):
            journal.record_move(tmp_path / name, tmp_path / "out" / name)

        recent = journal.get_recent(2)

        assert [op.src.name for op in recent] == ["c", "b"]

    def test_undo_no_log(self, journal):
        report = journal.undo(1)

        assert report.no_log_found is True
        assert report.undone == []

    def test_undo_empty_log(self, journal):
        journal.path.write_text("")

        report = journal.undo(1)

        assert report.log_empty is True
        assert journal.path.exists()

    def test_undo_last(self, journal, tmp_path):
        """Test the newest move is reverted and removed from the journal."""
        src, dest = place(tmp_path, "a.pdf", "content")
        journal.record_move(src, dest)

        report = journal.undo(1)

        assert report.reverted_count == 1
        assert report.failed_count == 0
        item = report.undone[0]
        assert item.source == dest
        assert item.destination == src
        assert src.read_text() == "content"
        assert not dest.exists()
        assert len(journal) == 0

    def test_undo_newest_first_and_keeps_prefix(self, journal, tmp_path):
        """Test undo(k) reverts the k newest and keeps the older lines."""
        pairs = [place(tmp_path, f"f{i}.txt") for i in range(4)]
        for src, dest in pairs:
            journal.record_move(src, dest)
        original_lines = journal.read_lines()

        report = journal.undo(2)

        assert [item.destination.name for item in report.undone] == ["f3.txt", "f2.txt"]
        assert journal.read_lines() == original_lines[:2]
        assert pairs[3][0].exists() and pairs[2][0].exists()
        assert pairs[1][1].exists() and pairs[0][1].exists()

    def test_undo_count_larger_than_log(self, journal, tmp_path):
        src, dest = place(tmp_path, "only.txt")
        journal.record_move(src, dest)

        report = journal.undo(10)

        assert len(report.undone) == 1
        assert len(journal) == 0

    def test_undo_zero_count(self, journal, tmp_path):
        src, dest = place(tmp_path, "a.txt")
        journal.record_move(src, dest)

        report = journal.undo(0)

        assert report.undone == []
        assert len(journal) == 1
        assert dest.exists()

    def test_missing_target_does_not_abort_batch(self, journal, tmp_path):
        """Test a vanished file fails alone; the rest is still reverted."""
        first = place(tmp_path, "first.txt")
        gone = place(tmp_path, "gone.txt")
        last = place(tmp_path, "last.txt")
        for src, dest in (first, gone, last):
            journal.record_move(src, dest)
        gone[1].unlink()

        report = journal.undo(3)

        assert report.reverted_count == 2
        assert report.failed_count == 1
        failed = [item for item in report.undone if not item.success][0]
        assert failed.error == "Source file not found"
        assert first[0].exists() and last[0].exists()
        assert len(journal) == 0

    def test_undo_refuses_to_overwrite(self, journal, tmp_path):
        """Test an occupied original location is left alone."""
        src, dest = place(tmp_path, "a.txt", "moved")
        journal.record_move(src, dest)
        src.parent.mkdir(parents=True, exist_ok=True)
        src.write_text("newcomer")

        report = journal.undo(1)

        assert report.failed_count == 1
        assert "already exists" in report.undone[0].error
        assert src.read_text() == "newcomer"
        assert dest.read_text() == "moved"

    def test_undo_recreates_parent(self, journal, tmp_path):
        src = tmp_path / "removed-dir" / "a.txt"
        dest = tmp_path / "res" / "a.txt"
        dest.parent.mkdir()
        dest.write_text("x")
        journal.record_move(src, dest)

        report = journal.undo(1)

        assert report.reverted_count == 1
        assert src.read_text() == "x"

    def test_undo_unknown_kind_reported(self, journal):
        journal.path.write_text('{"timestamp": 1, "kind": "Delete", "src": "/x", "dest": "/y"}\n')

        report = journal.undo(1)

        assert report.failed_count == 1
        assert "Delete" in report.undone[0].error
        assert len(journal) == 0

    def test_rewrite_failure_is_fatal(self, journal, tmp_path, monkeypatch):
        """Test a failed journal rewrite is raised, not swallowed."""
        src, dest = place(tmp_path, "a.txt")
        journal.record_move(src, dest)

        def broken_replace(*args, **kwargs):
            raise OSError("read-only file system")

        monkeypatch.setattr(undo_journal.os, "replace", broken_replace)

        with pytest.raises(JournalRewriteError):
            journal.undo(1)

        leftovers = [p for p in os.listdir(journal.path.parent) if p.endswith(".tmp")]
        assert leftovers == []
