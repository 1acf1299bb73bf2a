"""Utilities module for Workspace Organizer."""

from .logging_config import setup_logging, get_logger, LoggingConfig, Timer
from .exceptions import (
    ErrorCode,
    OrganizerError,
    ConfigurationError,
    RuleCompileError,
    MoveError,
    CrossDeviceFallbackError,
    JournalWriteError,
    UndoTargetMissingError,
    JournalRewriteError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "Timer",
    "ErrorCode",
    "OrganizerError",
    "ConfigurationError",
    "RuleCompileError",
    "MoveError",
    "CrossDeviceFallbackError",
    "JournalWriteError",
    "UndoTargetMissingError",
    "JournalRewriteError",
]
