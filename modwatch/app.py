"""
Main application controller for KCD2 Mod Watcher.

Ties together configuration, the game watcher, the event feed, the
system tray, global hotkeys, spoken announcements and the wx window.

Threading: the watcher and the tray each run on their own daemon
thread.  Everything that touches wx happens on the main thread, either
from the event pump timer or through ``wx.CallAfter``.
"""

import logging
import logging.handlers
import os
import sys

import wx

from modwatch import __app_name__, __version__
from modwatch.config import Config, get_log_path
from modwatch.events import EventLog, WatchEvent
from modwatch.hotkeys import GlobalHotkeys
from modwatch.launcher import GameLauncher
from modwatch.notify import announcer
from modwatch.platform_utils import (
    open_file_in_default_app,
    play_error_sound,
    register_autostart,
    unregister_autostart,
)
from modwatch.process import GameProcessController
from modwatch.tool import RepackTool
from modwatch.tray import COLOR_BUSY, COLOR_ERROR, COLOR_WATCHING, SysTray
from modwatch.ui import MainWindow
from modwatch.watcher import GameWatcher

logger = logging.getLogger(__name__)

_PUMP_INTERVAL_MS = 500


class _EventPump(wx.Timer):
    """Main-thread timer that drains the watcher's event queue."""

    def __init__(self, callback):
        super().__init__()
        self._callback = callback

    def Notify(self) -> None:
        self._callback()


class App:
    """
    Central orchestrator.

    Implements the TrayCallbacks protocol expected by SysTray.
    """

    title = __app_name__

    def __init__(self) -> None:
        self._wx = wx.App(False)

        self.config = Config()
        self.events = EventLog()
        self.tool = RepackTool()
        self.watcher = GameWatcher(
            controller=GameProcessController(),
            tool=self.tool,
            launcher=GameLauncher(),
            events=self.events,
        )
        self.quitting = False

        self._window = MainWindow(self)
        self._tray = SysTray(self, title=__app_name__)
        self._pump = _EventPump(self._drain_events)

        cfg = self.config
        self._hotkeys = GlobalHotkeys(
            {
                "show_window": (cfg.hotkey_show_window, self.on_show_window),
                "repack_now": (cfg.hotkey_repack_now, self.on_repack_now),
                "quit": (cfg.hotkey_quit, self.on_quit),
            }
        )
        announcer.enabled = cfg.speak_notifications
        self._last_tray_state: tuple[str, str] | None = None
        self._draining = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Start watcher, tray and hotkeys, then enter the wx main loop."""
        self._setup_logging()
        logger.info("%s %s starting.", __app_name__, __version__)

        self._sync_autostart()
        self._window.build_hidden()

        folder = self.config.mod_folder
        if folder and os.path.isdir(folder):
            self.watcher.set_watch_target(folder)
        elif folder:
            logger.warning("Configured mod folder no longer exists: %s", folder)

        if not self.tool.is_installed():
            logger.warning("PAK tool not found at %s", self.tool.executable)

        self.watcher.start()
        self._tray.start()
        self._hotkeys.register()
        self._pump.Start(_PUMP_INTERVAL_MS)

        if not self.config.is_configured() or not self.config.start_minimized:
            self._window.show()

        announcer.speak(f"{__app_name__} is running.")
        self._wx.MainLoop()

    def _shutdown(self) -> None:
        logger.info("Shutting down…")
        self.quitting = True
        self._pump.Stop()
        self._hotkeys.unregister()
        self.watcher.stop()
        self._tray.stop()
        self._window.destroy()
        self._wx.ExitMainLoop()

    # ------------------------------------------------------------------
    # Actions used by the window
    # ------------------------------------------------------------------

    def save_watch_target(self, folder: str) -> bool:
        """Persist *folder* and re-arm the watcher.  Returns True on success."""
        try:
            self.watcher.set_watch_target(folder)
        except FileNotFoundError as exc:
            logger.error("Cannot watch folder: %s", exc)
            return False
        self.config.mod_folder = folder
        self.config.save()
        self._drain_events()
        return True

    def apply_options(
        self,
        start_minimized: bool,
        start_with_windows: bool,
        speak_notifications: bool,
        play_sound_on_error: bool,
    ) -> None:
        cfg = self.config
        autostart_changed = cfg.start_with_windows != start_with_windows
        cfg.start_minimized = start_minimized
        cfg.start_with_windows = start_with_windows
        cfg.speak_notifications = speak_notifications
        cfg.play_sound_on_error = play_sound_on_error
        cfg.save()
        announcer.enabled = speak_notifications
        if autostart_changed:
            self._sync_autostart()

    def hotkey_hint(self) -> str:
        return self._hotkeys.describe()

    def get_status_summary(self) -> str:
        """Return a short human-readable status string."""
        if not self.config.is_configured():
            return "Not configured. Choose your mod folder."
        if self.watcher.is_busy:
            return "Repacking…"
        state = self.watcher.state
        if state.game_was_running:
            return "Game running"
        if state.skip_first_kill:
            return "Watching (next launch is left alone)"
        if not state.has_repacked_once:
            return "Watching (next launch forces a repack)"
        return "Watching for mod changes"

    # ------------------------------------------------------------------
    # TrayCallbacks implementation (called from the tray/hotkey threads)
    # ------------------------------------------------------------------

    def on_show_window(self) -> None:
        wx.CallAfter(self._window.show)

    def on_repack_now(self) -> None:
        self.watcher.request_repack()

    def on_open_log(self) -> None:
        open_file_in_default_app(get_log_path())

    def on_quit(self) -> None:
        wx.CallAfter(self._shutdown)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _drain_events(self) -> None:
        # A modal alert runs a nested event loop that fires the pump again.
        if self._draining:
            return
        self._draining = True
        try:
            for event in self.events.drain():
                self._window.append_event(event)
                if self.config.speak_notifications:
                    announcer.announce(event)
                if event.alert:
                    self._alert(event)
            self._window.refresh_status()
            self._update_tray_state()
        finally:
            self._draining = False

    def _alert(self, event: WatchEvent) -> None:
        if self.config.play_sound_on_error:
            play_error_sound()
        icon = wx.ICON_ERROR if event.level >= logging.ERROR else wx.ICON_WARNING
        wx.MessageBox(event.message, __app_name__, wx.OK | icon, self._window.frame)

    def _update_tray_state(self) -> None:
        if not self.config.is_configured():
            color = COLOR_ERROR
        elif self.watcher.is_busy:
            color = COLOR_BUSY
        else:
            color = COLOR_WATCHING
        tooltip = f"{__app_name__}: {self.get_status_summary()}"
        if (color, tooltip) != self._last_tray_state:
            self._tray.update(color, tooltip)
            self._last_tray_state = (color, tooltip)

    def _sync_autostart(self) -> None:
        if self.config.start_with_windows:
            register_autostart()
        else:
            unregister_autostart()

    def _setup_logging(self) -> None:
        """Configure rotating file log and stderr handler."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

        fh = logging.handlers.RotatingFileHandler(
            str(get_log_path()),
            maxBytes=self.config.max_log_size_mb * 1024 * 1024,
            backupCount=self.config.log_backup_count,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(fmt)
        root_logger.addHandler(fh)

        if sys.stderr is not None:  # pythonw has no stderr
            sh = logging.StreamHandler(sys.stderr)
            sh.setLevel(level)
            sh.setFormatter(fmt)
            root_logger.addHandler(sh)
