"""KCD2 Mod Watcher: repack Kingdom Come: Deliverance II mods on game launch.

Sits in the system tray, notices when the game starts, and if the mod
folder changed since the last launch closes the game, runs the KCD2-PAK
repack tool and starts the game again through Steam.
"""

__version__ = "1.1.0"
__app_name__ = "KCD2 Mod Watcher"
