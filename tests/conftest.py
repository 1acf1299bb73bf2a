"""
Shared fixtures for the test suite.
"""

import pytest
from pathlib import Path

from workspace_organizer.config.settings import Config, PathsConfig, CleanRule
from workspace_organizer.actions.undo_journal import UndoJournal


WORKSPACE_FOLDERS = ("0_Inbox", "1_Projects", "2_Areas", "3_Resources", "4_Archives")


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Create an empty PARA workspace."""
    root = tmp_path / "workspace"
    for folder in WORKSPACE_FOLDERS:
        (root / folder).mkdir(parents=True)
    return root


@pytest.fixture
def inbox(workspace) -> Path:
    return workspace / "0_Inbox"


@pytest.fixture
def make_config(workspace):
    """Build a Config for the workspace with the given (pattern, target) rules."""
    def _make(*rules):
        return Config(
            paths=PathsConfig(workspace=workspace),
            rules=[CleanRule(pattern=pattern, target=target) for pattern, target in rules],
        )
    return _make


@pytest.fixture
def journal(workspace) -> UndoJournal:
    return UndoJournal(workspace / ".undo_log.jsonl")
