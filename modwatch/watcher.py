"""Game launch watcher.

Polls for the game process and, on each launch, decides whether the mod
folder has to be repacked before the game is allowed to run:

* the very first launch seen in a session is left alone;
* the first launch after that is killed, force-repacked and relaunched;
* every later launch is killed, and repacked only if the folder's
  fingerprint changed, then relaunched.

All per-session flags live in an immutable :class:`SessionState`.
:meth:`GameWatcher.step` takes the current state and returns the next one,
so a single tick can be exercised without threads or timers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Protocol

from modwatch.events import EventKind, EventLog
from modwatch.fingerprint import EMPTY_FINGERPRINT, FingerprintError, compute_fingerprint
from modwatch.launcher import LaunchResult
from modwatch.process import TerminateResult
from modwatch.tool import ToolOutcome, ToolStatus

logger = logging.getLogger(__name__)

POLL_INTERVAL = 5.0


class ProcessController(Protocol):
    def find_running(self) -> Any | None: ...

    def terminate(self, proc: Any) -> TerminateResult: ...


class Repacker(Protocol):
    def run(self, folder: str) -> ToolOutcome: ...


class Launcher(Protocol):
    def launch(self) -> LaunchResult: ...


@dataclass(frozen=True)
class SessionState:
    """Everything the watcher remembers between ticks."""

    mod_folder: str = ""
    last_fingerprint: str = EMPTY_FINGERPRINT
    skip_first_kill: bool = True
    has_repacked_once: bool = False
    warned_kill_failure: bool = False
    game_was_running: bool = False


@dataclass(frozen=True)
class _PendingTarget:
    folder: str
    fingerprint: str


class GameWatcher:
    """
    Background poller driving the kill / repack / relaunch cycle.

    Parameters
    ----------
    controller : ProcessController
        Finds and kills the game process.
    tool : Repacker
        Runs the external repack tool against the mod folder.
    launcher : Launcher
        Starts the game again.
    events : EventLog
        Receives every user-visible activity line.
    fingerprinter : callable
        ``folder -> str``; raises ``FingerprintError`` when unavailable.
    poll_interval : float
        Seconds slept between ticks.  Tick work is not subtracted.
    """

    def __init__(
        self,
        controller: ProcessController,
        tool: Repacker,
        launcher: Launcher,
        events: EventLog,
        fingerprinter: Callable[[str], str] = compute_fingerprint,
        poll_interval: float = POLL_INTERVAL,
        state: SessionState | None = None,
    ):
        self._controller = controller
        self._tool = tool
        self._launcher = launcher
        self._events = events
        self._fingerprinter = fingerprinter
        self._poll_interval = poll_interval

        self._state = state or SessionState()
        self._pending: _PendingTarget | None = None
        self._repack_requested = False
        self._busy = False
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # ---- lifecycle ----

    def start(self) -> None:
        """Start polling on a daemon thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, daemon=True, name="GameWatcher")
        self._thread.start()
        logger.info("Watching for the game every %gs.", self._poll_interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Ask the loop to exit and wait for the current tick to finish."""
        self._stop.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Watcher stopped.")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Poll until :meth:`stop` is called."""
        while not self._stop.is_set():
            self.poll_once()
            self._stop.wait(timeout=self._poll_interval)

    # ---- foreground API ----

    @property
    def state(self) -> SessionState:
        """Snapshot of the current state, including a not-yet-applied target."""
        with self._lock:
            if self._pending is not None:
                return self._apply_target(self._state, self._pending)
            return self._state

    @property
    def is_busy(self) -> bool:
        """True while a kill / repack / relaunch cycle is in progress."""
        return self._busy

    def set_watch_target(self, folder: str) -> str:
        """Switch to *folder* and re-arm the forced repack.

        The fingerprint is computed immediately on the calling thread; the
        new folder, fingerprint and flag reset are applied together at the
        start of the next tick.  Returns the stored fingerprint.
        """
        if not Path(folder).is_dir():
            raise FileNotFoundError(f"Mod folder does not exist: {folder}")

        try:
            fingerprint = self._fingerprinter(folder)
            self._events.emit(EventKind.TARGET_SET, f"Mod folder set to {folder}; initial hash stored.")
        except FingerprintError as exc:
            fingerprint = EMPTY_FINGERPRINT
            self._events.emit(
                EventKind.FINGERPRINT_FAILED,
                f"Error computing initial hash: {exc}",
                level=logging.WARNING,
            )

        with self._lock:
            self._pending = _PendingTarget(folder, fingerprint)
        return fingerprint

    def request_repack(self) -> None:
        """Queue a manual repack for the next tick."""
        with self._lock:
            self._repack_requested = True
        self._events.emit(EventKind.INFO, "Manual repack queued.")

    # ---- tick ----

    def poll_once(self) -> SessionState:
        """Run one tick against the shared state and store the result."""
        with self._lock:
            state = self._state
            if self._pending is not None:
                state = self._apply_target(state, self._pending)
                self._pending = None
            manual = self._repack_requested
            self._repack_requested = False

        try:
            new_state = self.step(state)
            if manual:
                new_state = self.repack_now(new_state)
        except Exception:
            logger.exception("Unexpected error during watcher tick.")
            new_state = state
        finally:
            self._busy = False

        with self._lock:
            self._state = new_state
        return new_state

    def step(self, state: SessionState) -> SessionState:
        """Advance the launch state machine by one poll."""
        proc = self._controller.find_running()

        if proc is None:
            if state.game_was_running:
                self._events.emit(EventKind.GAME_EXITED, "Game is no longer running.", level=logging.DEBUG)
            return replace(state, game_was_running=False, warned_kill_failure=False)

        if state.game_was_running:
            return state

        self._events.emit(EventKind.GAME_DETECTED, "Game launch detected.", level=logging.DEBUG)

        if state.skip_first_kill:
            self._events.emit(EventKind.FIRST_LAUNCH_SKIPPED, "Skipping first repack.")
            return replace(state, skip_first_kill=False, game_was_running=True)

        state = replace(state, game_was_running=True)
        self._busy = True

        result = self._controller.terminate(proc)
        if not result.ok:
            if not state.warned_kill_failure:
                self._events.emit(
                    EventKind.KILL_FAILED,
                    "The game is running, but the watcher couldn't terminate it "
                    "automatically. You may need to close it manually before the "
                    f"mod repack will run. Reason: {result.reason}",
                    level=logging.WARNING,
                    alert=True,
                )
                state = replace(state, warned_kill_failure=True)
            return state

        self._events.emit(EventKind.GAME_KILLED, "Killed game process to allow repack.")

        if not state.has_repacked_once:
            return self._forced_repack(state)
        return self._conditional_repack(state)

    def repack_now(self, state: SessionState) -> SessionState:
        """Repack outside a launch cycle.  Refused while the game is running."""
        if state.game_was_running:
            self._events.emit(
                EventKind.INFO,
                "Game is running; close it before repacking manually.",
                level=logging.WARNING,
            )
            return state
        if not self._folder_ok(state):
            return state

        self._busy = True
        fingerprint = self._fingerprint_or_sentinel(state.mod_folder)
        state = replace(state, last_fingerprint=fingerprint)
        self._events.emit(EventKind.INFO, "Running manual mod repack...")
        self._run_repack(state.mod_folder)
        return state

    # ---- cycle helpers ----

    def _forced_repack(self, state: SessionState) -> SessionState:
        if not self._folder_ok(state):
            self._launch()
            return state

        fingerprint = self._fingerprint_or_sentinel(state.mod_folder)
        state = replace(state, last_fingerprint=fingerprint, has_repacked_once=True)

        self._events.emit(EventKind.INFO, "Performing first forced repack (no hash check).")
        self._run_repack(state.mod_folder)
        self._launch()
        return state

    def _conditional_repack(self, state: SessionState) -> SessionState:
        if not self._folder_ok(state):
            self._launch()
            return state

        current = self._fingerprint_or_sentinel(state.mod_folder)
        if current != EMPTY_FINGERPRINT and current == state.last_fingerprint:
            self._events.emit(EventKind.NO_CHANGES, "No changes detected; skipping repack.")
            self._launch()
            return state

        state = replace(state, last_fingerprint=current)
        self._events.emit(EventKind.INFO, "Detected mod-folder change; running mod repack...")
        self._run_repack(state.mod_folder)
        self._launch()
        return state

    def _folder_ok(self, state: SessionState) -> bool:
        if state.mod_folder and Path(state.mod_folder).is_dir():
            return True
        self._events.emit(
            EventKind.FOLDER_INVALID,
            "No valid mod folder selected.",
            level=logging.WARNING,
            alert=True,
        )
        return False

    def _fingerprint_or_sentinel(self, folder: str) -> str:
        try:
            return self._fingerprinter(folder)
        except FingerprintError as exc:
            self._events.emit(
                EventKind.FINGERPRINT_FAILED,
                f"Error computing folder hash: {exc}",
                level=logging.WARNING,
            )
            return EMPTY_FINGERPRINT

    def _run_repack(self, folder: str) -> ToolOutcome:
        self._events.emit(EventKind.REPACK_STARTED, "Running mod repack...")
        outcome = self._tool.run(folder)

        if outcome.status is ToolStatus.LAUNCH_FAILED:
            self._events.emit(
                EventKind.REPACK_FAILED,
                f"Repack failed: {outcome.error}",
                level=logging.ERROR,
                alert=True,
            )
        elif outcome.status is ToolStatus.TIMED_OUT:
            self._events.emit(
                EventKind.REPACK_TIMED_OUT,
                "Repack process timed out and was killed.",
                level=logging.WARNING,
            )
        elif outcome.exit_code:
            self._events.emit(
                EventKind.REPACK_FINISHED,
                f"Repack finished with exit code {outcome.exit_code}.",
                level=logging.WARNING,
            )
        else:
            self._events.emit(
                EventKind.REPACK_FINISHED,
                f"Repack complete in {outcome.duration:.1f}s.",
            )
        return outcome

    def _launch(self) -> LaunchResult:
        self._events.emit(EventKind.INFO, "Launching KCD2 via Steam...")
        result = self._launcher.launch()
        if result.ok:
            self._events.emit(EventKind.GAME_LAUNCHED, "Steam launch triggered.")
        else:
            self._events.emit(
                EventKind.LAUNCH_FAILED,
                f"Failed to launch KCD2 via Steam: {result.reason}",
                level=logging.ERROR,
                alert=True,
            )
        return result

    @staticmethod
    def _apply_target(state: SessionState, pending: _PendingTarget) -> SessionState:
        return replace(
            state,
            mod_folder=pending.folder,
            last_fingerprint=pending.fingerprint,
            has_repacked_once=False,
            skip_first_kill=True,
        )
