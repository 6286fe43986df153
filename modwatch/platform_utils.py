"""
Cross-platform utilities for KCD2 Mod Watcher.

Centralises all OS-detection logic so every other module can import
a single canonical set of helpers rather than scattering ``sys.platform``
checks throughout the codebase.

The game and the PAK tool are Windows programs; macOS and Linux are
supported best-effort (Steam + Proton on Linux).
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# ---- platform flags ----------------------------------------------------

IS_WINDOWS: bool = sys.platform == "win32"
IS_MACOS: bool = sys.platform == "darwin"
IS_LINUX: bool = sys.platform.startswith("linux")

APP_DIR_NAME = "KCD2ModWatcher"

# ---- directories -------------------------------------------------------


def get_local_data_dir() -> Path:
    """
    Return the per-user local application data directory (not created).

    - Windows : ``%LOCALAPPDATA%``
    - macOS   : ``~/Library/Application Support``
    - Linux   : ``$XDG_DATA_HOME`` (default ``~/.local/share``)
    """
    if IS_WINDOWS:
        base = os.environ.get("LOCALAPPDATA", str(Path.home() / "AppData" / "Local"))
    elif IS_MACOS:
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_DATA_HOME", str(Path.home() / ".local" / "share"))
    return Path(base)


def get_config_dir() -> Path:
    """
    Return the application config directory, created if needed.

    - Windows : ``%LOCALAPPDATA%\\KCD2ModWatcher``
    - macOS   : ``~/Library/Application Support/KCD2ModWatcher``
    - Linux   : ``$XDG_CONFIG_HOME/KCD2ModWatcher`` (default ``~/.config``)
    """
    if IS_LINUX:
        base = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    else:
        base = get_local_data_dir()

    config_dir = base / APP_DIR_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_log_path() -> Path:
    """Return the path to the log file (inside the config directory)."""
    return get_config_dir() / "kcd2_mod_watcher.log"


# ---- subprocess helpers -------------------------------------------------


def hidden_process_kwargs() -> dict[str, Any]:
    """Return ``Popen`` keyword arguments that suppress the child's console window."""
    if not IS_WINDOWS:
        return {}
    startupinfo = subprocess.STARTUPINFO()  # type: ignore[attr-defined]
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW  # type: ignore[attr-defined]
    startupinfo.wShowWindow = 0  # SW_HIDE
    return {
        "startupinfo": startupinfo,
        "creationflags": subprocess.CREATE_NO_WINDOW,  # type: ignore[attr-defined]
    }


# ---- desktop integration -----------------------------------------------


def open_url(url: str) -> None:
    """Hand *url* to the OS protocol handler.  Raises ``OSError`` on failure."""
    if IS_WINDOWS:
        os.startfile(url)  # type: ignore[attr-defined]
    elif IS_MACOS:
        subprocess.Popen(["open", url])
    else:
        subprocess.Popen(
            ["xdg-open", url],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )


def open_file_in_default_app(filepath: str | Path) -> None:
    """Open a file with the OS default application."""
    try:
        open_url(str(filepath))
    except OSError:
        logger.warning("Could not open file: %s", filepath, exc_info=True)


def play_error_sound() -> None:
    """Play the OS error/alert sound.  Silent on unsupported platforms."""
    try:
        if IS_WINDOWS:
            import winsound  # type: ignore[import-untyped]
            winsound.MessageBeep(winsound.MB_ICONHAND)
        elif IS_MACOS:
            subprocess.Popen(
                ["afplay", "/System/Library/Sounds/Basso.aiff"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
    except Exception:
        logger.debug("Could not play error sound.", exc_info=True)


# ---- auto-start / login items ------------------------------------------

_AUTOSTART_KEY = r"Software\Microsoft\Windows\CurrentVersion\Run"
_AUTOSTART_NAME = "KCD2ModWatcher"
_LAUNCHD_LABEL = "io.github.kcd2modwatcher"


def _launchd_plist_path() -> Path:
    return Path.home() / "Library" / "LaunchAgents" / f"{_LAUNCHD_LABEL}.plist"


def _xdg_desktop_path() -> Path:
    config_home = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    return config_home / "autostart" / "kcd2-mod-watcher.desktop"


def register_autostart() -> bool:
    """Register the watcher to start at login.  Returns True on success."""
    exe = sys.executable

    if IS_WINDOWS:
        try:
            import winreg  # type: ignore[import-untyped]
            with winreg.OpenKey(
                winreg.HKEY_CURRENT_USER, _AUTOSTART_KEY, 0, winreg.KEY_SET_VALUE
            ) as key:
                winreg.SetValueEx(key, _AUTOSTART_NAME, 0, winreg.REG_SZ, f'"{exe}" -m modwatch')
            logger.info("Registered Windows autostart.")
            return True
        except OSError:
            logger.exception("Failed to register Windows autostart.")
            return False

    if IS_MACOS:
        plist_path = _launchd_plist_path()
        plist_content = f"""\
<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN"
  "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>Label</key>
    <string>{_LAUNCHD_LABEL}</string>
    <key>ProgramArguments</key>
    <array>
        <string>{exe}</string>
        <string>-m</string>
        <string>modwatch</string>
    </array>
    <key>RunAtLoad</key>
    <true/>
</dict>
</plist>
"""
        try:
            plist_path.parent.mkdir(parents=True, exist_ok=True)
            plist_path.write_text(plist_content, encoding="utf-8")
            logger.info("Created launchd plist at %s", plist_path)
            return True
        except OSError:
            logger.exception("Failed to create launchd plist.")
            return False

    if IS_LINUX:
        desktop_path = _xdg_desktop_path()
        desktop_content = f"""\
[Desktop Entry]
Type=Application
Name=KCD2 Mod Watcher
Exec={exe} -m modwatch
Hidden=false
NoDisplay=false
X-GNOME-Autostart-enabled=true
"""
        try:
            desktop_path.parent.mkdir(parents=True, exist_ok=True)
            desktop_path.write_text(desktop_content, encoding="utf-8")
            logger.info("Created autostart desktop entry at %s", desktop_path)
            return True
        except OSError:
            logger.exception("Failed to create autostart desktop entry.")
            return False

    return False


def unregister_autostart() -> bool:
    """Remove the watcher from login items.  Returns True on success."""
    if IS_WINDOWS:
        try:
            import winreg
            with winreg.OpenKey(
                winreg.HKEY_CURRENT_USER, _AUTOSTART_KEY, 0, winreg.KEY_SET_VALUE
            ) as key:
                winreg.DeleteValue(key, _AUTOSTART_NAME)
            logger.info("Removed Windows autostart.")
            return True
        except FileNotFoundError:
            return True  # already absent
        except OSError:
            logger.exception("Failed to remove Windows autostart.")
            return False

    target = _launchd_plist_path() if IS_MACOS else _xdg_desktop_path()
    if IS_MACOS or IS_LINUX:
        try:
            target.unlink(missing_ok=True)
            return True
        except OSError:
            logger.exception("Failed to remove autostart entry %s", target)
            return False

    return False
