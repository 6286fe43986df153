"""
Headless runner for KCD2 Mod Watcher.

Runs the game watcher without the window, tray icon or hotkeys and
prints the activity feed to stdout:

    python -m modwatch --headless      (blocks until Ctrl-C)

The mod folder comes from the same config file the GUI writes.
"""

import logging
import signal
import sys
import time

from modwatch.config import Config, get_log_path
from modwatch.events import EventLog
from modwatch.launcher import GameLauncher
from modwatch.process import GameProcessController
from modwatch.tool import RepackTool
from modwatch.watcher import GameWatcher

logger = logging.getLogger(__name__)

_FEED_POLL_SECONDS = 1.0


def build_watcher(cfg: Config, events: EventLog) -> GameWatcher:
    """Create a watcher wired to the real process, tool and launcher."""
    if not cfg.is_configured():
        logger.error("Cannot start: mod folder not configured or missing (%s).", cfg.mod_folder or "unset")
        raise RuntimeError(f"Mod folder is not configured. Edit {cfg.path} or run the GUI once.")

    watcher = GameWatcher(
        controller=GameProcessController(),
        tool=RepackTool(),
        launcher=GameLauncher(),
        events=events,
    )
    watcher.set_watch_target(cfg.mod_folder)
    return watcher


def run_foreground() -> int:
    """Run the watcher until SIGINT/SIGTERM.  Returns a process exit code."""
    logging.basicConfig(
        filename=str(get_log_path()),
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    cfg = Config()
    events = EventLog()
    try:
        watcher = build_watcher(cfg, events)
    except RuntimeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    stop = False

    def _handler(sig, frame):
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)

    watcher.start()
    print(f"Watching {cfg.mod_folder} (press Ctrl-C to stop)…")
    try:
        while not stop:
            for event in events.drain():
                print(event.format_line(), flush=True)
            time.sleep(_FEED_POLL_SECONDS)
    finally:
        watcher.stop()
        for event in events.drain():
            print(event.format_line())
    print("Watcher stopped.")
    return 0
