"""Global hotkeys for KCD2 Mod Watcher.

Lets the user bring up the status window, queue a manual repack, or
quit from inside any application (including the game).  Uses the
``keyboard`` library's hook-based hotkeys; on macOS it needs root, so
registration is skipped there unless running privileged.
"""

import logging
import os
import platform
from collections.abc import Callable

logger = logging.getLogger(__name__)

try:
    import keyboard as _kb  # type: ignore[import-untyped]

    _HAS_KEYBOARD = True
except ImportError:
    _HAS_KEYBOARD = False
    logger.warning("keyboard library not installed; global hotkeys disabled.")


def _can_listen() -> bool:
    """The keyboard listener thread dies without root on macOS."""
    if platform.system() != "Darwin":
        return True
    return os.geteuid() == 0


class GlobalHotkeys:
    """Named hotkey slots bound to callbacks.

    ``bindings`` maps a slot name to ``(combo, callback)``; an empty combo
    leaves the slot unassigned.
    """

    def __init__(self, bindings: dict[str, tuple[str, Callable[[], None]]]):
        self._bindings = dict(bindings)
        self._registered = False

    @property
    def available(self) -> bool:
        return _HAS_KEYBOARD and _can_listen()

    def register(self) -> None:
        if self._registered:
            return
        if not self.available:
            logger.info("Global hotkeys unavailable on this system.")
            return
        try:
            for name, (combo, callback) in self._bindings.items():
                if combo:
                    _kb.add_hotkey(combo, callback, suppress=False)
                    logger.info("Registered hotkey %s = %s", name, combo)
            self._registered = True
        except Exception:
            logger.exception("Failed to register global hotkeys.")

    def unregister(self) -> None:
        if not _HAS_KEYBOARD or not self._registered:
            return
        try:
            _kb.unhook_all_hotkeys()
        except Exception:
            logger.exception("Error unregistering hotkeys.")
        self._registered = False

    def update(self, combos: dict[str, str]) -> None:
        """Re-register with new combos for existing slots."""
        self.unregister()
        for name, combo in combos.items():
            if name in self._bindings:
                self._bindings[name] = (combo, self._bindings[name][1])
        self.register()

    def describe(self) -> str:
        parts = [f"{name.replace('_', ' ')} = {combo}" for name, (combo, _) in self._bindings.items() if combo]
        return "Hotkeys:  " + "  |  ".join(parts) if parts else "No hotkeys configured."
