"""Actions module for inbox reorganization."""

from .rules_engine import RulesEngine, CompiledRule
from .undo_journal import (
    UndoJournal,
    Operation,
    OperationKind,
    UndoItem,
    UndoReport,
)
from .file_operations import MoveExecutor, MoveResult
from .cleaner import (
    CleanOrchestrator,
    CleanReport,
    MovedItem,
    SkippedItem,
    log_clean_report,
)

__all__ = [
    "RulesEngine",
    "CompiledRule",
    "UndoJournal",
    "Operation",
    "OperationKind",
    "UndoItem",
    "UndoReport",
    "MoveExecutor",
    "MoveResult",
    "CleanOrchestrator",
    "CleanReport",
    "MovedItem",
    "SkippedItem",
    "log_clean_report",
]
