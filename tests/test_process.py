from __future__ import annotations

import psutil
import pytest

from modwatch import process as process_module
from modwatch.process import GameProcessController


class _StubProcess:
    def __init__(self, name: str | None, pid: int = 4242, *, kill_error: Exception | None = None,
                 wait_error: Exception | None = None) -> None:
        self.info = {"name": name}
        self.pid = pid
        self.killed = False
        self._kill_error = kill_error
        self._wait_error = wait_error

    def kill(self) -> None:
        if self._kill_error:
            raise self._kill_error
        self.killed = True

    def wait(self, timeout: float | None = None) -> int:
        if self._wait_error:
            raise self._wait_error
        return 0


def _patch_processes(monkeypatch: pytest.MonkeyPatch, procs: list[_StubProcess]) -> None:
    monkeypatch.setattr(process_module.psutil, "process_iter", lambda attrs=None: iter(procs))


def test_find_running_matches_exact_name(monkeypatch: pytest.MonkeyPatch) -> None:
    game = _StubProcess("KingdomCome.exe", pid=7)
    _patch_processes(monkeypatch, [_StubProcess("steam.exe"), _StubProcess(None), game])

    assert GameProcessController().find_running() is game


def test_find_running_accepts_name_without_suffix(monkeypatch: pytest.MonkeyPatch) -> None:
    game = _StubProcess("KingdomCome")
    _patch_processes(monkeypatch, [game])

    assert GameProcessController().find_running() is game


@pytest.mark.parametrize("name", ["kingdomcome.exe", "KingdomComeLauncher.exe", "KingdomCome.exe.bak"])
def test_find_running_is_exact_and_case_sensitive(monkeypatch: pytest.MonkeyPatch, name: str) -> None:
    _patch_processes(monkeypatch, [_StubProcess(name)])

    assert GameProcessController().find_running() is None


def test_terminate_success() -> None:
    proc = _StubProcess("KingdomCome.exe")

    result = GameProcessController().terminate(proc)

    assert result.ok
    assert proc.killed


@pytest.mark.parametrize(
    ("error", "fragment"),
    [
        (psutil.AccessDenied(4242), "access denied"),
        (psutil.NoSuchProcess(4242), "already exited"),
        (OSError("kill failed"), "kill failed"),
    ],
)
def test_terminate_failures_are_reported(error: Exception, fragment: str) -> None:
    result = GameProcessController().terminate(_StubProcess("KingdomCome.exe", kill_error=error))

    assert not result.ok
    assert fragment in result.reason


def test_terminate_reports_process_that_survives_kill() -> None:
    proc = _StubProcess("KingdomCome.exe", wait_error=psutil.TimeoutExpired(1.0, pid=4242))

    result = GameProcessController(kill_wait=1.0).terminate(proc)

    assert not result.ok
    assert "still running" in result.reason
