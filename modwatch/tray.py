"""System tray icon for KCD2 Mod Watcher.

The watcher lives in the tray; the menu opens the status window,
queues a manual repack, opens the log and quits.  The icon colour
tracks the watcher state.
"""

import contextlib
import logging
import threading
from typing import Any, Protocol

import pystray
from PIL import Image, ImageDraw
from PIL.Image import Image as PILImage

logger = logging.getLogger(__name__)

COLOR_WATCHING = "#0A6E0A"
COLOR_BUSY = "#C77700"
COLOR_ERROR = "#C4001A"


class TrayCallbacks(Protocol):
    """Callback interface expected from the tray icon owner."""

    def on_show_window(self) -> None: ...

    def on_repack_now(self) -> None: ...

    def on_open_log(self) -> None: ...

    def on_quit(self) -> None: ...

    def get_status_summary(self) -> str: ...


def _create_icon_image(color: str = COLOR_WATCHING, size: int = 64) -> PILImage:
    """Rounded square in *color* with a white package glyph."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle([(2, 2), (size - 2, size - 2)], radius=10, fill=color)
    m = size // 4
    draw.rectangle([(m, m + 4), (size - m, size - m)], fill="white")
    draw.line([(m, m + 12), (size - m, m + 12)], fill=color, width=3)
    return img


class SysTray:
    """Owns the pystray icon, which runs its own event loop on a daemon thread."""

    def __init__(self, callbacks: TrayCallbacks, title: str):
        self._callbacks = callbacks
        self._title = title
        self._icon: Any | None = None
        self._thread: threading.Thread | None = None
        self._color = ""

    def _build_menu(self) -> pystray.Menu:
        status_text = self._callbacks.get_status_summary()
        return pystray.Menu(
            pystray.MenuItem(f"{self._title}: {status_text}", None, enabled=False),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(
                "Show Window", lambda: self._callbacks.on_show_window(), default=True
            ),
            pystray.MenuItem("Repack Now", lambda: self._callbacks.on_repack_now()),
            pystray.MenuItem("View Log", lambda: self._callbacks.on_open_log()),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Exit", lambda: self._callbacks.on_quit()),
        )

    def start(self) -> None:
        icon = pystray.Icon(
            name="KCD2ModWatcher",
            icon=_create_icon_image(),
            title=self._title,
            menu=self._build_menu(),
        )
        self._icon = icon
        self._color = COLOR_WATCHING
        self._thread = threading.Thread(target=icon.run, daemon=True, name="SysTray")
        self._thread.start()
        logger.info("System tray icon started.")

    def stop(self) -> None:
        if self._icon:
            with contextlib.suppress(Exception):
                self._icon.stop()
            self._icon = None
        logger.info("System tray icon stopped.")

    def update(self, color: str, tooltip: str) -> None:
        """Refresh colour, tooltip and menu; the icon image is only rebuilt on change."""
        if not self._icon:
            return
        if color != self._color:
            self._icon.icon = _create_icon_image(color)
            self._color = color
        self._icon.title = tooltip
        self._icon.menu = self._build_menu()
        self._icon.update_menu()
