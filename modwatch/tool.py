"""
External repack tool invocation.

``run_tool`` launches an executable without a console window, waits a
bounded amount of time and force-kills it on timeout.  It never raises:
every failure is folded into the returned :class:`ToolOutcome`.

``RepackTool`` knows where the KCD2-PAK tool lives and prepares its
``.nopause`` sentinel before each run.
"""

from __future__ import annotations

import contextlib
import logging
import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from modwatch.platform_utils import get_local_data_dir, hidden_process_kwargs

logger = logging.getLogger(__name__)

TOOL_DIR_NAME = "KCD2-PAK"
TOOL_EXE_NAME = "KCD2-PAK.exe"
# Presence of this file in the tool root stops the tool waiting for a keypress.
SENTINEL_NAME = ".nopause"
REPACK_TIMEOUT = 30.0

# Grace period for a killed tool process to be reaped.
_KILL_REAP_TIMEOUT = 5.0


class ToolStatus(str, Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    LAUNCH_FAILED = "launch_failed"


@dataclass(frozen=True)
class ToolOutcome:
    """Result of one tool invocation."""

    status: ToolStatus
    exit_code: int | None = None
    error: str = ""
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is ToolStatus.COMPLETED and self.exit_code == 0


def run_tool(
    executable: str | Path,
    args: Sequence[str] = (),
    timeout: float = REPACK_TIMEOUT,
) -> ToolOutcome:
    """Run *executable* with *args*, waiting at most *timeout* seconds."""
    exe = Path(executable)
    try:
        found = exe.is_file()
    except OSError as exc:
        return ToolOutcome(ToolStatus.LAUNCH_FAILED, error=str(exc))
    if not found:
        return ToolOutcome(ToolStatus.LAUNCH_FAILED, error=f"Executable not found: {exe}")

    started = time.monotonic()
    try:
        proc = subprocess.Popen(
            [str(exe), *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            cwd=str(exe.parent),
            **hidden_process_kwargs(),
        )
    except OSError as exc:
        return ToolOutcome(ToolStatus.LAUNCH_FAILED, error=str(exc))

    logger.info("Started %s (pid %d)", exe.name, proc.pid)
    try:
        code = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        with contextlib.suppress(OSError):
            proc.kill()
        with contextlib.suppress(subprocess.TimeoutExpired):
            proc.wait(timeout=_KILL_REAP_TIMEOUT)
        return ToolOutcome(
            ToolStatus.TIMED_OUT,
            error=f"No exit after {timeout:g}s",
            duration=time.monotonic() - started,
        )

    return ToolOutcome(
        ToolStatus.COMPLETED,
        exit_code=code,
        duration=time.monotonic() - started,
    )


class RepackTool:
    """
    The KCD2-PAK repack tool installed under the local data directory.

    Parameters
    ----------
    root : Path, optional
        Tool root containing ``current/`` and the sentinel file.
        Defaults to ``<local-data>/KCD2-PAK``.
    timeout : float
        Seconds to wait before the tool is force-killed.
    executable_name : str
        File name of the tool inside ``current/``.
    """

    def __init__(
        self,
        root: Path | None = None,
        timeout: float = REPACK_TIMEOUT,
        executable_name: str = TOOL_EXE_NAME,
    ):
        self.root = root or get_local_data_dir() / TOOL_DIR_NAME
        self.timeout = timeout
        self._executable_name = executable_name

    @property
    def executable(self) -> Path:
        return self.root / "current" / self._executable_name

    @property
    def sentinel(self) -> Path:
        return self.root / SENTINEL_NAME

    def is_installed(self) -> bool:
        return self.executable.is_file()

    def ensure_sentinel(self) -> bool:
        """Create the sentinel file if absent.  Returns True if it exists afterwards."""
        try:
            if self.sentinel.exists():
                return True
            self.sentinel.touch()
        except OSError as exc:
            logger.warning("%s creation failed: %s", SENTINEL_NAME, exc)
            return False
        logger.info("Created %s file.", SENTINEL_NAME)
        return True

    def run(self, folder: str) -> ToolOutcome:
        """Repack *folder*.  Never raises."""
        self.ensure_sentinel()
        try:
            installed = self.is_installed()
        except OSError as exc:
            logger.error("Cannot inspect PAK tool at %s: %s", self.executable, exc)
            return ToolOutcome(ToolStatus.LAUNCH_FAILED, error=str(exc))
        if not installed:
            logger.error("PAK tool not found at %s", self.executable)
            return ToolOutcome(
                ToolStatus.LAUNCH_FAILED,
                error=f"PAK tool not found at {self.executable}",
            )
        return run_tool(self.executable, [folder], self.timeout)
