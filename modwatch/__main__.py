"""Entry point for KCD2 Mod Watcher.

Usage:
    python -m modwatch              Launch the tray application
    python -m modwatch --headless   Run the watcher in the console only
"""

import sys


def main() -> None:
    """Launch the GUI app or the headless runner."""
    if len(sys.argv) > 1 and sys.argv[1] in ("--headless", "headless"):
        from modwatch.service import run_foreground

        sys.exit(run_foreground())
    else:
        from modwatch.app import App

        app = App()
        app.run()


if __name__ == "__main__":
    main()
