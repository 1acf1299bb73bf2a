"""Monitoring module for inbox filesystem events."""

from .watcher import (
    InboxWatcher,
    InboxEventHandler,
    StabilityChecker,
)
from .trigger_queue import (
    TriggerQueue,
    Trigger,
    TriggerStats,
)

__all__ = [
    "InboxWatcher",
    "InboxEventHandler",
    "StabilityChecker",
    "TriggerQueue",
    "Trigger",
    "TriggerStats",
]
