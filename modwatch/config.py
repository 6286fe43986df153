"""Configuration management for KCD2 Mod Watcher.

Stores and retrieves user settings from a JSON config file
in the platform-appropriate application data directory.
"""

import json
import logging
from pathlib import Path
from typing import Any

from modwatch.platform_utils import (
    get_config_dir as _platform_config_dir,
)
from modwatch.platform_utils import (
    get_log_path as _platform_log_path,
)

logger = logging.getLogger(__name__)

# Key written by earlier releases, read once and migrated to ``mod_folder``.
_LEGACY_FOLDER_KEY = "modFolder"

DEFAULT_CONFIG: dict[str, Any] = {
    "mod_folder": "",
    "log_level": "INFO",
    "start_minimized": True,
    "start_with_windows": False,
    # ---- notifications ----
    "speak_notifications": True,  # screen reader / TTS announcements
    "play_sound_on_error": True,  # system alert sound on alert events
    # ---- log rotation ----
    "max_log_size_mb": 5,
    "log_backup_count": 3,
    # ---- global hotkeys (blank = unassigned) ----
    "hotkey_show_window": "ctrl+shift+f9",
    "hotkey_repack_now": "ctrl+shift+f10",
    "hotkey_quit": "",
}


def get_config_dir() -> Path:
    """Return the platform-appropriate application config directory."""
    return _platform_config_dir()


def get_config_path() -> Path:
    """Return the path to the configuration file."""
    return get_config_dir() / "config.json"


def get_log_path() -> Path:
    """Return the path to the log file."""
    return _platform_log_path()


class Config:
    """Configuration manager backed by a JSON file."""

    def __init__(self, path: Path | None = None):
        """Load config from *path*, falling back to the platform default."""
        self._path = path or get_config_path()
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    # ---- persistence ----

    def load(self) -> None:
        """Load configuration from disk, applying defaults for missing keys."""
        if not self._path.exists():
            self._data = dict(DEFAULT_CONFIG)
            self.save()
            logger.info("Created default configuration at %s", self._path)
            return

        try:
            with open(self._path, encoding="utf-8") as fh:
                stored = json.load(fh)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read config (%s); using defaults.", exc)
            self._data = dict(DEFAULT_CONFIG)
            return

        if not isinstance(stored, dict):
            logger.warning("Config root is not an object; using defaults.")
            self._data = dict(DEFAULT_CONFIG)
            return

        legacy = stored.pop(_LEGACY_FOLDER_KEY, None)
        if legacy and not stored.get("mod_folder"):
            stored["mod_folder"] = legacy
            logger.info("Migrated legacy '%s' setting.", _LEGACY_FOLDER_KEY)

        # Merge stored values over defaults so new keys get defaults
        self._data = {**DEFAULT_CONFIG, **stored}
        logger.info("Configuration loaded from %s", self._path)

    def save(self) -> bool:
        """Persist the current configuration to disk.  Returns True on success."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
        except OSError as exc:
            logger.error("Failed to save configuration: %s", exc)
            return False
        logger.info("Configuration saved.")
        return True

    # ---- accessors ----

    @property
    def mod_folder(self) -> str:
        """Return the watched mod folder path."""
        return str(self._data.get("mod_folder") or "")

    @mod_folder.setter
    def mod_folder(self, value: str) -> None:
        self._data["mod_folder"] = value.strip()

    @property
    def log_level(self) -> str:
        return self._data.get("log_level", "INFO")

    @log_level.setter
    def log_level(self, value: str) -> None:
        self._data["log_level"] = value.strip().upper() or "INFO"

    @property
    def start_minimized(self) -> bool:
        """Return whether the app starts hidden in the tray."""
        return bool(self._data["start_minimized"])

    @start_minimized.setter
    def start_minimized(self, value: bool) -> None:
        self._data["start_minimized"] = bool(value)

    @property
    def start_with_windows(self) -> bool:
        """Return whether auto-start at login is enabled."""
        return bool(self._data["start_with_windows"])

    @start_with_windows.setter
    def start_with_windows(self, value: bool) -> None:
        self._data["start_with_windows"] = bool(value)

    # ---- notifications ----

    @property
    def speak_notifications(self) -> bool:
        return bool(self._data.get("speak_notifications", True))

    @speak_notifications.setter
    def speak_notifications(self, value: bool) -> None:
        self._data["speak_notifications"] = bool(value)

    @property
    def play_sound_on_error(self) -> bool:
        return bool(self._data.get("play_sound_on_error", True))

    @play_sound_on_error.setter
    def play_sound_on_error(self, value: bool) -> None:
        self._data["play_sound_on_error"] = bool(value)

    # ---- log rotation ----

    @property
    def max_log_size_mb(self) -> int:
        """Return the maximum log file size in MB before rotation."""
        return int(self._data.get("max_log_size_mb", 5))

    @max_log_size_mb.setter
    def max_log_size_mb(self, value: int) -> None:
        """Set the maximum log file size in MB (minimum 1)."""
        self._data["max_log_size_mb"] = max(1, int(value))

    @property
    def log_backup_count(self) -> int:
        return int(self._data.get("log_backup_count", 3))

    @log_backup_count.setter
    def log_backup_count(self, value: int) -> None:
        self._data["log_backup_count"] = max(0, int(value))

    # ---- global hotkeys ----

    @property
    def hotkey_show_window(self) -> str:
        return self._data.get("hotkey_show_window", "")

    @hotkey_show_window.setter
    def hotkey_show_window(self, value: str) -> None:
        self._data["hotkey_show_window"] = value.strip().lower()

    @property
    def hotkey_repack_now(self) -> str:
        return self._data.get("hotkey_repack_now", "")

    @hotkey_repack_now.setter
    def hotkey_repack_now(self, value: str) -> None:
        self._data["hotkey_repack_now"] = value.strip().lower()

    @property
    def hotkey_quit(self) -> str:
        return self._data.get("hotkey_quit", "")

    @hotkey_quit.setter
    def hotkey_quit(self, value: str) -> None:
        self._data["hotkey_quit"] = value.strip().lower()

    # ---- convenience ----

    def is_configured(self) -> bool:
        """Return True when a mod folder is set and still exists."""
        return bool(self.mod_folder) and Path(self.mod_folder).is_dir()
