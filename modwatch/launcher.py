"""Relaunch the game through Steam."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from modwatch import platform_utils

logger = logging.getLogger(__name__)

STEAM_APP_ID = 1771300
STEAM_LAUNCH_URL = f"steam://rungameid/{STEAM_APP_ID}"


@dataclass(frozen=True)
class LaunchResult:
    ok: bool
    reason: str = ""


class GameLauncher:
    """Fire-and-forget launch of a store-protocol URL."""

    def __init__(self, url: str = STEAM_LAUNCH_URL):
        self.url = url

    def launch(self) -> LaunchResult:
        try:
            platform_utils.open_url(self.url)
        except OSError as exc:
            logger.debug("Launch of %s failed", self.url, exc_info=True)
            return LaunchResult(False, str(exc) or exc.__class__.__name__)
        return LaunchResult(True)
