"""Status window for KCD2 Mod Watcher, built with wxPython.

One frame holds the mod folder picker, the current watcher status, the
activity feed and a few options.  Closing or minimising the frame hides
it to the tray; the application keeps running.

wxPython uses native widgets, so every control with an explicit name is
announced correctly by JAWS/NVDA/VoiceOver.
"""

import logging
import os
from typing import TYPE_CHECKING

import wx

from modwatch.config import get_log_path
from modwatch.events import WatchEvent
from modwatch.platform_utils import open_file_in_default_app

if TYPE_CHECKING:
    from modwatch.app import App

logger = logging.getLogger(__name__)

ERROR_FG = wx.Colour(196, 0, 26)
SUCCESS_FG = wx.Colour(10, 110, 10)
BUSY_FG = wx.Colour(150, 90, 0)

# Activity feed is trimmed to this many lines.
_MAX_FEED_LINES = 500


class MainWindow:
    """The single application window (created once, shown and hidden)."""

    def __init__(self, app: "App"):
        self._app = app
        self._win: wx.Frame | None = None
        self._folder_ctrl: wx.TextCtrl | None = None
        self._status_label: wx.StaticText | None = None
        self._feed: wx.TextCtrl | None = None
        self._hint_label: wx.StaticText | None = None
        self._feed_lines = 0

    @property
    def frame(self) -> "wx.Frame | None":
        return self._win

    def show(self) -> None:
        """Show, restore and focus the window."""
        if self._win is None:
            self._build()
        if self._win is None:
            return
        self._win.Show()
        self._win.Iconize(False)
        self._win.Raise()
        wx.CallAfter(self._win.SetFocus)

    def hide(self) -> None:
        if self._win:
            self._win.Hide()

    def destroy(self) -> None:
        if self._win:
            self._win.Destroy()
            self._win = None

    def build_hidden(self) -> None:
        """Create the frame without showing it, so the feed records from startup."""
        if self._win is None:
            self._build()

    def _build(self) -> None:
        cfg = self._app.config

        self._win = wx.Frame(
            None,
            title=self._app.title,
            size=(720, 560),
            style=wx.DEFAULT_FRAME_STYLE,
        )
        self._win.SetMinSize((560, 420))
        self._win.Bind(wx.EVT_CLOSE, self._on_close_event)
        self._win.Bind(wx.EVT_ICONIZE, self._on_iconize)
        self._win.Bind(wx.EVT_CHAR_HOOK, self._on_char_hook)

        panel = wx.Panel(self._win)
        main_sizer = wx.BoxSizer(wx.VERTICAL)

        # ---- Mod folder ----
        folder_box = wx.StaticBox(panel, label="Mod folder")
        folder_sizer = wx.StaticBoxSizer(folder_box, wx.HORIZONTAL)

        self._folder_ctrl = wx.TextCtrl(panel, value=cfg.mod_folder)
        self._folder_ctrl.SetName("Mod folder")
        folder_sizer.Add(self._folder_ctrl, proportion=1, flag=wx.EXPAND | wx.ALL, border=5)

        browse_btn = wx.Button(panel, label="&Browse…")
        browse_btn.Bind(wx.EVT_BUTTON, self._on_browse)
        folder_sizer.Add(browse_btn, flag=wx.TOP | wx.BOTTOM, border=5)

        save_btn = wx.Button(panel, label="&Save")
        save_btn.Bind(wx.EVT_BUTTON, self._on_save)
        folder_sizer.Add(save_btn, flag=wx.ALL, border=5)

        main_sizer.Add(folder_sizer, flag=wx.EXPAND | wx.ALL, border=10)

        # ---- Status ----
        self._status_label = wx.StaticText(panel, label="Initializing…")
        self._status_label.SetName("Watcher status")
        main_sizer.Add(self._status_label, flag=wx.LEFT | wx.RIGHT | wx.BOTTOM, border=10)

        self._hint_label = wx.StaticText(panel, label=self._app.hotkey_hint())
        self._hint_label.SetForegroundColour(wx.Colour(110, 110, 110))
        main_sizer.Add(self._hint_label, flag=wx.LEFT | wx.RIGHT | wx.BOTTOM, border=10)

        # ---- Activity feed ----
        main_sizer.Add(wx.StaticText(panel, label="Activity:"), flag=wx.LEFT | wx.RIGHT, border=10)
        self._feed = wx.TextCtrl(
            panel,
            style=wx.TE_MULTILINE | wx.TE_READONLY | wx.TE_RICH2 | wx.HSCROLL,
        )
        self._feed.SetName("Activity log")
        self._feed.SetFont(
            wx.Font(9, wx.FONTFAMILY_TELETYPE, wx.FONTSTYLE_NORMAL, wx.FONTWEIGHT_NORMAL)
        )
        main_sizer.Add(
            self._feed,
            proportion=1,
            flag=wx.EXPAND | wx.LEFT | wx.RIGHT | wx.BOTTOM,
            border=10,
        )

        # ---- Options ----
        opt_sizer = wx.BoxSizer(wx.HORIZONTAL)
        self._minimized_cb = wx.CheckBox(panel, label="Start &minimized")
        self._minimized_cb.SetValue(cfg.start_minimized)
        self._startup_cb = wx.CheckBox(panel, label="Start at &login")
        self._startup_cb.SetValue(cfg.start_with_windows)
        self._speak_cb = wx.CheckBox(panel, label="S&peak notifications")
        self._speak_cb.SetValue(cfg.speak_notifications)
        self._sound_cb = wx.CheckBox(panel, label="Sound on &errors")
        self._sound_cb.SetValue(cfg.play_sound_on_error)
        for cb in (self._minimized_cb, self._startup_cb, self._speak_cb, self._sound_cb):
            cb.Bind(wx.EVT_CHECKBOX, self._on_option_changed)
            opt_sizer.Add(cb, flag=wx.RIGHT, border=12)
        main_sizer.Add(opt_sizer, flag=wx.LEFT | wx.RIGHT | wx.BOTTOM, border=10)

        # ---- Buttons ----
        btn_sizer = wx.BoxSizer(wx.HORIZONTAL)

        repack_btn = wx.Button(panel, label="&Repack Now")
        repack_btn.Bind(wx.EVT_BUTTON, lambda e: self._app.on_repack_now())
        btn_sizer.Add(repack_btn, flag=wx.RIGHT, border=8)

        log_btn = wx.Button(panel, label="View &Log")
        log_btn.Bind(wx.EVT_BUTTON, self._on_open_log)
        btn_sizer.Add(log_btn, flag=wx.RIGHT, border=8)

        hide_btn = wx.Button(panel, label="&Hide")
        hide_btn.Bind(wx.EVT_BUTTON, lambda e: self.hide())
        btn_sizer.Add(hide_btn)

        main_sizer.Add(btn_sizer, flag=wx.ALIGN_CENTER_HORIZONTAL | wx.BOTTOM, border=10)

        panel.SetSizer(main_sizer)
        self.refresh_status()

    # ---- feed / status ----

    def append_event(self, event: WatchEvent) -> None:
        if not self._feed:
            return
        if self._feed_lines >= _MAX_FEED_LINES:
            # Drop the oldest line.
            end = self._feed.GetLineLength(0) + 1
            self._feed.Remove(0, end)
            self._feed_lines -= 1
        if event.level >= logging.ERROR:
            self._feed.SetDefaultStyle(wx.TextAttr(ERROR_FG))
        else:
            self._feed.SetDefaultStyle(
                wx.TextAttr(wx.SystemSettings.GetColour(wx.SYS_COLOUR_WINDOWTEXT))
            )
        self._feed.AppendText(event.format_line() + "\n")
        self._feed_lines += 1

    def refresh_status(self) -> None:
        if not self._status_label:
            return
        summary = self._app.get_status_summary()
        if not self._app.config.is_configured():
            colour = ERROR_FG
        elif self._app.watcher.is_busy:
            colour = BUSY_FG
        else:
            colour = SUCCESS_FG
        self._status_label.SetLabel(summary)
        self._status_label.SetForegroundColour(colour)

    # ---- event handlers ----

    def _on_browse(self, event: wx.CommandEvent) -> None:
        if self._folder_ctrl is None:
            return
        dlg = wx.DirDialog(
            self._win,
            "Select your KCD2 mod folder (must contain mod.manifest)",
            defaultPath=self._folder_ctrl.GetValue() or "",
            style=wx.DD_DEFAULT_STYLE | wx.DD_DIR_MUST_EXIST,
        )
        if dlg.ShowModal() == wx.ID_OK:
            self._folder_ctrl.SetValue(dlg.GetPath())
        dlg.Destroy()

    def _on_save(self, event: wx.CommandEvent) -> None:
        if self._folder_ctrl is None:
            return
        folder = self._folder_ctrl.GetValue().strip()
        if not folder or not os.path.isdir(folder):
            wx.MessageBox(
                "That folder doesn't exist.",
                "Error",
                wx.OK | wx.ICON_ERROR,
                self._win,
            )
            return
        if self._app.save_watch_target(folder):
            wx.MessageBox(
                "Mod path saved.",
                self._app.title,
                wx.OK | wx.ICON_INFORMATION,
                self._win,
            )
        self.refresh_status()

    def _on_option_changed(self, event: wx.CommandEvent) -> None:
        self._app.apply_options(
            start_minimized=self._minimized_cb.GetValue(),
            start_with_windows=self._startup_cb.GetValue(),
            speak_notifications=self._speak_cb.GetValue(),
            play_sound_on_error=self._sound_cb.GetValue(),
        )

    def _on_open_log(self, event: wx.CommandEvent) -> None:
        log_path = get_log_path()
        if log_path.exists():
            open_file_in_default_app(log_path)
        else:
            wx.MessageBox(
                "No log file exists yet.",
                "Log File",
                wx.OK | wx.ICON_INFORMATION,
                self._win,
            )

    def _on_char_hook(self, event: wx.KeyEvent) -> None:
        if event.GetKeyCode() == wx.WXK_ESCAPE:
            self.hide()
        else:
            event.Skip()

    def _on_iconize(self, event: wx.IconizeEvent) -> None:
        # Minimise to tray.
        if event.IsIconized():
            self.hide()
        event.Skip()

    def _on_close_event(self, event: wx.CloseEvent) -> None:
        if event.CanVeto() and not self._app.quitting:
            event.Veto()
            self.hide()
            return
        event.Skip()
