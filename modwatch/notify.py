"""Spoken announcements for watcher activity.

On Windows, uses accessible_output2 to speak through the active screen
reader (JAWS, NVDA, Narrator).  On macOS the built-in ``say`` command is
used so VoiceOver users hear the same messages.  Elsewhere announcements
are only logged.
"""

import logging
import subprocess
import threading

from modwatch.events import EventKind, WatchEvent
from modwatch.platform_utils import IS_MACOS, IS_WINDOWS

logger = logging.getLogger(__name__)

_HAS_AO2 = False
if IS_WINDOWS:
    try:
        from accessible_output2.outputs.auto import (
            Auto as _AO2Auto,  # type: ignore[import-untyped]
        )

        _HAS_AO2 = True
    except ImportError:
        logger.warning(
            "accessible_output2 not installed; screen reader announcements disabled."
        )

# Short phrases for the events worth interrupting the user for.
_SPOKEN: dict[EventKind, str] = {
    EventKind.REPACK_STARTED: "Repacking mods.",
    EventKind.REPACK_FINISHED: "Repack finished.",
    EventKind.REPACK_TIMED_OUT: "Repack timed out.",
    EventKind.REPACK_FAILED: "Repack failed.",
    EventKind.NO_CHANGES: "No mod changes. Launching game.",
    EventKind.KILL_FAILED: "Could not close the game for repacking.",
    EventKind.LAUNCH_FAILED: "Game launch failed.",
    EventKind.FOLDER_INVALID: "No valid mod folder selected.",
}


class Announcer:
    """Non-blocking speech output.  Each utterance runs on a daemon thread."""

    def __init__(self) -> None:
        self._output = _AO2Auto() if _HAS_AO2 else None  # type: ignore[name-defined]
        self.enabled = True

    @property
    def available(self) -> bool:
        return self._output is not None or IS_MACOS

    def speak(self, text: str, interrupt: bool = True) -> None:
        if not self.enabled or not self.available:
            logger.debug("Announce (silent): %s", text)
            return
        threading.Thread(
            target=self._do_speak,
            args=(text, interrupt),
            daemon=True,
            name="Announce",
        ).start()

    def announce(self, event: WatchEvent) -> None:
        """Speak the phrase registered for *event*'s kind, if any."""
        phrase = _SPOKEN.get(event.kind)
        if phrase:
            self.speak(phrase)

    def _do_speak(self, text: str, interrupt: bool) -> None:
        try:
            if self._output:
                self._output.speak(text, interrupt=interrupt)
            elif IS_MACOS:
                subprocess.run(
                    ["say", text],
                    timeout=15,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
        except Exception:
            logger.debug("Speech announcement failed.", exc_info=True)


announcer = Announcer()
