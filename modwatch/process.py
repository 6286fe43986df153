"""Detection and termination of the game process."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)

GAME_PROCESS_NAME = "KingdomCome"
_KILL_WAIT_SECONDS = 10.0


@dataclass(frozen=True)
class TerminateResult:
    ok: bool
    reason: str = ""


class GameProcessController:
    """Find the running game by exact process name and force-kill it.

    Windows reports image names with their ``.exe`` suffix, so both
    ``KingdomCome`` and ``KingdomCome.exe`` match.  Matching is
    case-sensitive.
    """

    def __init__(
        self,
        process_name: str = GAME_PROCESS_NAME,
        kill_wait: float = _KILL_WAIT_SECONDS,
    ):
        self.process_name = process_name
        self._kill_wait = kill_wait

    def matches(self, name: str | None) -> bool:
        if not name:
            return False
        return name == self.process_name or name == f"{self.process_name}.exe"

    def find_running(self) -> psutil.Process | None:
        """Return the first process whose name matches, or None."""
        for proc in psutil.process_iter(["name"]):
            if self.matches(proc.info.get("name")):
                return proc
        return None

    def terminate(self, proc: psutil.Process) -> TerminateResult:
        """Kill *proc* and wait for it to exit."""
        pid = proc.pid
        try:
            proc.kill()
            proc.wait(timeout=self._kill_wait)
        except psutil.NoSuchProcess:
            return TerminateResult(False, f"process {pid} already exited")
        except psutil.AccessDenied:
            return TerminateResult(False, f"access denied to process {pid}")
        except psutil.TimeoutExpired:
            return TerminateResult(
                False, f"process {pid} still running {self._kill_wait:g}s after kill"
            )
        except OSError as exc:
            return TerminateResult(False, str(exc))
        logger.debug("Process %d terminated.", pid)
        return TerminateResult(True)
