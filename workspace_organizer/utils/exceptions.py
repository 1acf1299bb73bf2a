"""
Custom Exceptions
=================

Defines custom exception classes for the Workspace Organizer.
All exceptions include error codes for programmatic handling.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Error codes for programmatic error handling."""

    # General errors (1000-1099)
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001
    FILE_NOT_FOUND = 1002
    PERMISSION_DENIED = 1003

    # Rule errors (1100-1199)
    RULE_COMPILE_FAILED = 1100

    # Move errors (1200-1299)
    MOVE_FAILED = 1200
    NAME_COLLISION = 1201
    CROSS_DEVICE_COPY_FAILED = 1202
    SOURCE_REMOVAL_FAILED = 1203

    # Journal errors (1300-1399)
    JOURNAL_WRITE_FAILED = 1300
    JOURNAL_REWRITE_FAILED = 1301
    UNDO_TARGET_MISSING = 1302
    UNDO_FAILED = 1303


class OrganizerError(Exception):
    """Base exception for all Workspace Organizer errors.

    Attributes:
        message: Human-readable error message.
        error_code: Programmatic error code.
        details: Additional error context.
        cause: Original exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Programmatic error code.
            details: Additional context as key-value pairs.
            cause: Original exception if wrapping another error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return a formatted error string."""
        result = f"[{self.error_code.name}] {self.message}"
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {type(self.cause).__name__}: {self.cause}"
        return result

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(OrganizerError):
    """Raised when there's a configuration problem.

    Examples:
        - Invalid configuration file format
        - Workspace or inbox path not configured
        - Malformed rule entries
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
            **kwargs
        )


class RuleCompileError(OrganizerError):
    """Raised when a rule pattern is not a valid regular expression.

    Only the offending rule is dropped; the rest of the rule set stays active.
    """

    def __init__(self, message: str, pattern: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if pattern is not None:
            details["pattern"] = pattern
        super().__init__(
            message,
            error_code=ErrorCode.RULE_COMPILE_FAILED,
            details=details,
            **kwargs
        )


class MoveError(OrganizerError):
    """Raised when relocating a single inbox item fails.

    Examples:
        - Permission denied
        - An item with the same name already exists at the destination
        - Disk full
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.MOVE_FAILED,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class CrossDeviceFallbackError(MoveError):
    """Raised when the copy step of a cross-device move fails.

    The source is left untouched; a partial copy may remain at the destination.
    """

    def __init__(self, message: str, file_path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            file_path=file_path,
            error_code=ErrorCode.CROSS_DEVICE_COPY_FAILED,
            **kwargs
        )


class JournalWriteError(OrganizerError):
    """Raised when an operation cannot be appended to the undo journal."""

    def __init__(self, message: str, journal_path: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if journal_path:
            details["journal_path"] = journal_path
        super().__init__(
            message,
            error_code=ErrorCode.JOURNAL_WRITE_FAILED,
            details=details,
            **kwargs
        )


class UndoTargetMissingError(OrganizerError):
    """Raised when a journaled destination no longer exists at undo time."""

    def __init__(self, message: str, file_path: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        super().__init__(
            message,
            error_code=ErrorCode.UNDO_TARGET_MISSING,
            details=details,
            **kwargs
        )


class JournalRewriteError(OrganizerError):
    """Raised when the journal cannot be rewritten after an undo batch.

    Fatal to the undo command: the files already moved back no longer match
    what the journal on disk says.
    """

    def __init__(self, message: str, journal_path: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if journal_path:
            details["journal_path"] = journal_path
        super().__init__(
            message,
            error_code=ErrorCode.JOURNAL_REWRITE_FAILED,
            details=details,
            **kwargs
        )
