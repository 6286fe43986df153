"""Event channel from the watcher core to the presentation layer.

The watcher runs on a background thread and must never touch UI
objects.  Instead it emits :class:`WatchEvent` records onto an
:class:`EventLog`; the status window (or the headless runner) drains
them on its own thread.  Every event is also written to the module
logger so the rotating log file keeps a copy.
"""

from __future__ import annotations

import logging
import queue
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """What happened.  The UI uses this to pick icons, sounds and speech."""

    INFO = "info"
    TARGET_SET = "target_set"
    GAME_DETECTED = "game_detected"
    GAME_EXITED = "game_exited"
    FIRST_LAUNCH_SKIPPED = "first_launch_skipped"
    GAME_KILLED = "game_killed"
    KILL_FAILED = "kill_failed"
    FOLDER_INVALID = "folder_invalid"
    FINGERPRINT_FAILED = "fingerprint_failed"
    NO_CHANGES = "no_changes"
    REPACK_STARTED = "repack_started"
    REPACK_FINISHED = "repack_finished"
    REPACK_TIMED_OUT = "repack_timed_out"
    REPACK_FAILED = "repack_failed"
    GAME_LAUNCHED = "game_launched"
    LAUNCH_FAILED = "launch_failed"


@dataclass(frozen=True)
class WatchEvent:
    """A single timestamped line of watcher activity."""

    kind: EventKind
    message: str
    level: int = logging.INFO
    # True when the user should be interrupted (message box, alert sound).
    alert: bool = False
    timestamp: float = field(default_factory=time.time)

    @property
    def timestamp_str(self) -> str:
        return datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S")

    def format_line(self) -> str:
        return f"[{self.timestamp_str}] {self.message}"


class EventLog:
    """Thread-safe, bounded FIFO of :class:`WatchEvent` records.

    When the queue is full the oldest event is dropped so a missing
    consumer can never stall the watcher.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self._queue: queue.Queue[WatchEvent] = queue.Queue(maxsize=maxsize)

    def emit(
        self,
        kind: EventKind,
        message: str,
        *,
        level: int = logging.INFO,
        alert: bool = False,
    ) -> WatchEvent:
        """Record an event and return it."""
        event = WatchEvent(kind=kind, message=message, level=level, alert=alert)
        logger.log(level, message)
        while True:
            try:
                self._queue.put_nowait(event)
                break
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass
        return event

    def drain(self, limit: int | None = None) -> list[WatchEvent]:
        """Remove and return pending events, oldest first."""
        events: list[WatchEvent] = []
        while limit is None or len(events) < limit:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return events

    def __len__(self) -> int:
        return self._queue.qsize()
