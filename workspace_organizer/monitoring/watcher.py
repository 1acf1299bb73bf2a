"""
Inbox Watcher
=============

Monitors the inbox for changes and runs a clean pass once the inbox has
settled. Events are debounced into triggers; each trigger waits until no
file in the inbox is still growing before the cleaner is invoked.
"""

import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEvent, FileSystemEventHandler

from workspace_organizer.actions.cleaner import CleanOrchestrator, log_clean_report
from workspace_organizer.config.settings import Config, WatcherConfig
from workspace_organizer.monitoring.trigger_queue import TriggerQueue, Trigger
from workspace_organizer.utils.exceptions import OrganizerError
from workspace_organizer.utils.logging_config import (
    get_logger,
    set_correlation_id,
    new_correlation_id,
)

logger = get_logger(__name__)

# Read/access notifications never trigger a clean
NON_TRIGGERING_EVENTS = frozenset({"opened", "closed_no_write"})

Snapshot = Dict[str, int]


class StabilityChecker:
    """Decides whether the inbox has stopped changing.

    Compares ``{path: size}`` snapshots of the regular files directly in
    the inbox, taken ``interval`` seconds apart.
    """

    def __init__(
        self,
        interval: float = 2.0,
        max_rounds: int = 5,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize the checker.

        Args:
            interval: Seconds between two snapshots.
            max_rounds: Rounds attempted before giving up.
            sleep: Sleep function.
        """
        self.interval = interval
        self.max_rounds = max_rounds
        self._sleep = sleep

    @staticmethod
    def snapshot(inbox: Path) -> Snapshot:
        """Sizes of the regular files directly inside ``inbox``."""
        sizes: Snapshot = {}
        try:
            with os.scandir(inbox) as it:
                for entry in it:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            sizes[entry.path] = entry.stat(follow_symlinks=False).st_size
                    except FileNotFoundError:
                        continue
        except FileNotFoundError:
            pass
        return sizes

    @staticmethod
    def compare(before: Snapshot, after: Snapshot) -> bool:
        """Whether two consecutive snapshots show a settled inbox.

        A file that appeared or changed size breaks stability; a file that
        disappeared does not.
        """
        for path, size in after.items():
            if before.get(path) != size:
                return False
        return True

    def wait_until_stable(self, inbox: Path) -> bool:
        """Wait for the inbox to settle.

        Args:
            inbox: Directory to check.

        Returns:
            True once two consecutive snapshots agree (or the inbox holds
            no regular files), False if ``max_rounds`` rounds all saw change.
        """
        before = self.snapshot(inbox)
        for round_number in range(1, self.max_rounds + 1):
            if not before:
                return True

            self._sleep(self.interval)
            after = self.snapshot(inbox)

            if self.compare(before, after):
                logger.debug(f"Inbox stable after {round_number} round(s)")
                return True

            logger.debug(f"Inbox still changing (round {round_number}/{self.max_rounds})")
            before = after

        return False


class InboxEventHandler(FileSystemEventHandler):
    """Forwards relevant inbox events into the trigger queue."""

    def __init__(self, trigger_queue: TriggerQueue):
        """Initialize the event handler.

        Args:
            trigger_queue: Queue consumed by the watch loop.
        """
        super().__init__()
        self.queue = trigger_queue

    @staticmethod
    def is_triggering(event: FileSystemEvent) -> bool:
        """Check whether an event should lead to a clean pass."""
        return event.event_type not in NON_TRIGGERING_EVENTS

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Handle any filesystem event.

        Args:
            event: Filesystem event.
        """
        if not self.is_triggering(event):
            return

        path = event.src_path
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        logger.debug(f"Inbox event ({event.event_type}): {path}")
        self.queue.put(path)


class InboxWatcher:
    """Watches the inbox and cleans it once it has settled.

    The observer thread only enqueues events; debouncing, the stability
    check and the clean pass all run sequentially on the thread calling
    ``watch``, so at most one clean pass is ever in flight.
    """

    POLL_TIMEOUT = 0.5

    def __init__(
        self,
        config: Config,
        orchestrator: Optional[CleanOrchestrator] = None,
        checker: Optional[StabilityChecker] = None,
        trigger_queue: Optional[TriggerQueue] = None
    ):
        """Initialize the watcher.

        Args:
            config: Loaded configuration.
            orchestrator: Clean orchestrator; built from ``config`` if None.
            checker: Stability checker; built from the watcher config if None.
            trigger_queue: Event queue; built from the watcher config if None.
        """
        self.config = config
        settings: WatcherConfig = config.watcher
        self.settings = settings
        self.orchestrator = orchestrator or CleanOrchestrator(config)
        self.checker = checker or StabilityChecker(
            interval=settings.stability_interval,
            max_rounds=settings.max_stability_rounds,
        )
        self.queue = trigger_queue or TriggerQueue(maxsize=settings.queue_size)
        self.handler = InboxEventHandler(self.queue)
        self._stop_event = threading.Event()
        self.cycles = 0
        self.cleans = 0

    def stop(self) -> None:
        """Ask the watch loop to exit after the current cycle."""
        self._stop_event.set()

    def watch(self) -> None:
        """Watch the inbox until interrupted or stopped.

        Raises:
            ConfigurationError: If the inbox path cannot be resolved.
        """
        inbox = self.config.resolve_path("inbox")
        if not inbox.is_dir():
            logger.error(f"Inbox path not found: {inbox}")
            return

        observer = Observer()
        observer.schedule(self.handler, str(inbox), recursive=False)
        observer.start()
        self._stop_event.clear()
        logger.info(f"Watching for changes in: {inbox}")

        try:
            while not self._stop_event.is_set():
                trigger = self.queue.wait_for_trigger(
                    self.settings.debounce_seconds,
                    timeout=self.POLL_TIMEOUT,
                )
                if trigger is not None:
                    self.process_trigger(trigger)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping watcher")
        finally:
            observer.stop()
            observer.join(timeout=5.0)
            logger.info(
                f"Watcher stopped after {self.cycles} cycles, {self.cleans} clean passes"
            )

    def process_trigger(self, trigger: Optional[Trigger] = None) -> bool:
        """Run one watch cycle: stability check, then clean.

        Args:
            trigger: The debounced trigger being handled.

        Returns:
            True if a clean pass ran.
        """
        set_correlation_id(new_correlation_id())
        self.cycles += 1
        if trigger is not None:
            logger.info(f"Change detected ({trigger.event_count} events), checking stability")

        try:
            inbox = self.config.resolve_path("inbox")
            if not self.checker.wait_until_stable(inbox):
                logger.warning(
                    "Inbox still changing after "
                    f"{self.checker.max_rounds} checks, deferring clean"
                )
                return False

            report = self.orchestrator.run(dry_run=False)
        except (OrganizerError, OSError) as e:
            logger.error(f"Auto-clean failed: {e}")
            return False

        self.cleans += 1
        log_clean_report(report, logger)
        return True
