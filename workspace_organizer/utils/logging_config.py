"""
Logging Configuration
=====================

Provides structured JSON logging with correlation IDs for tracing a single
clean, undo or watch cycle. Supports both console and file output with
configurable log levels.
"""

import logging
import logging.handlers
import json
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
import threading


ROOT_LOGGER_NAME = "workspace_organizer"

# Thread-local storage for correlation IDs
_thread_local = threading.local()


def get_correlation_id() -> str:
    """Get the current correlation ID for the thread."""
    if not hasattr(_thread_local, 'correlation_id'):
        _thread_local.correlation_id = new_correlation_id()
    return _thread_local.correlation_id


def set_correlation_id(correlation_id: str) -> None:
    """Set a correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


def new_correlation_id() -> str:
    """Generate a short correlation ID."""
    return str(uuid.uuid4())[:8]


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON for structured logging."""

    EXTRA_FIELDS = ("file_path", "destination", "operation", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for name in self.EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    """Human-readable colored console formatter."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        """Format with colors for console output."""
        color = self.COLORS.get(record.levelname, '')
        timestamp = datetime.now().strftime('%H:%M:%S')

        msg = f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
        msg += f"[{get_correlation_id()}] "
        msg += f"{record.name}: {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


@dataclass
class LoggingConfig:
    """Configuration for the logging system."""
    level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path.home() / ".workspace_organizer" / "logs")
    console_output: bool = True
    file_output: bool = True
    json_format: bool = False  # Use JSON for console
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        """Create LoggingConfig from dictionary."""
        if not data:
            return cls()
        defaults = cls()
        log_dir = data.get("log_dir")
        return cls(
            level=str(data.get("level", defaults.level)),
            log_dir=Path(log_dir).expanduser() if log_dir else defaults.log_dir,
            console_output=bool(data.get("console_output", defaults.console_output)),
            file_output=bool(data.get("file_output", defaults.file_output)),
            json_format=bool(data.get("json_format", defaults.json_format)),
            max_file_size=int(data.get("max_file_size", defaults.max_file_size)),
            backup_count=int(data.get("backup_count", defaults.backup_count)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a YAML-friendly dictionary."""
        return {
            "level": self.level,
            "log_dir": str(self.log_dir),
            "console_output": self.console_output,
            "file_output": self.file_output,
            "json_format": self.json_format,
            "max_file_size": self.max_file_size,
            "backup_count": self.backup_count,
        }


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """Set up the logging system.

    Args:
        config: Logging configuration. Uses defaults if not provided.
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    # Remove existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        if config.json_format:
            console_handler.setFormatter(JSONFormatter())
        else:
            console_handler.setFormatter(ConsoleFormatter())
        root_logger.addHandler(console_handler)

    if config.file_output:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.log_dir / "workspace_organizer.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Prevent propagation to root logger
    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Name of the module (typically __name__).

    Returns:
        Logger instance under the application namespace.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class Timer:
    """Context manager for timing operations and logging duration."""

    def __init__(self, logger: logging.Logger, operation: str):
        """Initialize timer.

        Args:
            logger: Logger to log the duration to.
            operation: Name of the operation being timed.
        """
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.duration_ms = 0.0

    def __enter__(self):
        """Start the timer."""
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Stop the timer and log the duration."""
        self.duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
        self.logger.debug(
            f"Operation completed: {self.operation} ({self.duration_ms} ms)",
            extra={"operation": self.operation, "duration_ms": self.duration_ms},
        )
        return False
