"""
Trigger Queue
=============

Bounded, single-consumer queue between the filesystem observer thread and
the watch loop. Bursts of events are debounced into a single trigger.
"""

import threading
import time
from dataclasses import dataclass
from queue import Queue, Empty, Full
from typing import Callable, Dict, List, Optional

from workspace_organizer.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TriggerStats:
    """Statistics for the trigger queue."""

    received: int = 0
    dropped: int = 0
    triggers: int = 0

    def to_dict(self) -> Dict:
        """Convert stats to dictionary."""
        return {
            "received": self.received,
            "dropped": self.dropped,
            "triggers": self.triggers,
        }


@dataclass
class Trigger:
    """A debounced batch of filesystem events.

    Attributes:
        paths: Event paths in arrival order (duplicates removed).
        event_count: Number of raw events collapsed into this trigger.
    """

    paths: List[str]
    event_count: int


class TriggerQueue:
    """Collects raw event paths and hands out debounced triggers.

    The producer side (``put``) never blocks: when the queue is full the
    event is dropped, since a trigger is already pending anyway.
    """

    def __init__(
        self,
        maxsize: int = 256,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize the queue.

        Args:
            maxsize: Maximum number of buffered events.
            clock: Monotonic time source.
        """
        self._queue: "Queue[str]" = Queue(maxsize=maxsize)
        self._clock = clock
        self.stats = TriggerStats()
        self._stats_lock = threading.Lock()

    def put(self, path: str) -> bool:
        """Enqueue an event path.

        Returns:
            False if the event was dropped because the queue is full.
        """
        with self._stats_lock:
            self.stats.received += 1
        try:
            self._queue.put_nowait(path)
            return True
        except Full:
            with self._stats_lock:
                self.stats.dropped += 1
            logger.debug(f"Event queue full, dropping event: {path}")
            return False

    def wait_for_trigger(
        self,
        debounce_seconds: float,
        timeout: Optional[float] = None
    ) -> Optional[Trigger]:
        """Block until events arrive and collapse them into one trigger.

        After the first event, further events are collected until
        ``debounce_seconds`` have passed since that first event; anything
        still queued at that point is drained into the same trigger.

        Args:
            debounce_seconds: Debounce window.
            timeout: Maximum wait for the first event; None waits forever.

        Returns:
            The trigger, or None if ``timeout`` expired with no event.
        """
        try:
            first = self._queue.get(timeout=timeout)
        except Empty:
            return None

        paths = [first]
        deadline = self._clock() + debounce_seconds
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            try:
                paths.append(self._queue.get(timeout=remaining))
            except Empty:
                break

        paths.extend(self._drain())

        with self._stats_lock:
            self.stats.triggers += 1

        logger.debug(f"Debounced {len(paths)} events into one trigger")
        return Trigger(paths=list(dict.fromkeys(paths)), event_count=len(paths))

    def _drain(self) -> List[str]:
        drained = []
        while True:
            try:
                drained.append(self._queue.get_nowait())
            except Empty:
                return drained

    def get_stats(self) -> TriggerStats:
        """Get a copy of the current statistics."""
        with self._stats_lock:
            return TriggerStats(
                received=self.stats.received,
                dropped=self.stats.dropped,
                triggers=self.stats.triggers,
            )

    def qsize(self) -> int:
        """Number of buffered events."""
        return self._queue.qsize()
