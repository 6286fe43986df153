from __future__ import annotations

from pathlib import Path

import pytest

from modwatch.events import EventLog
from modwatch.launcher import LaunchResult
from modwatch.process import TerminateResult
from modwatch.tool import ToolOutcome, ToolStatus
from modwatch.watcher import GameWatcher


class FakeController:
    """Scriptable stand-in for the game process controller."""

    def __init__(self) -> None:
        self.running = False
        self.kill_ok = True
        self.kill_reason = "access denied"
        self.terminated = 0

    def find_running(self) -> object | None:
        return object() if self.running else None

    def terminate(self, proc: object) -> TerminateResult:
        self.terminated += 1
        if not self.kill_ok:
            return TerminateResult(False, self.kill_reason)
        self.running = False
        return TerminateResult(True)


class FakeTool:
    def __init__(self, outcome: ToolOutcome | None = None) -> None:
        self.calls: list[str] = []
        self.outcome = outcome or ToolOutcome(ToolStatus.COMPLETED, exit_code=0)

    def run(self, folder: str) -> ToolOutcome:
        self.calls.append(folder)
        return self.outcome


class FakeLauncher:
    def __init__(self, ok: bool = True) -> None:
        self.launches = 0
        self.ok = ok

    def launch(self) -> LaunchResult:
        self.launches += 1
        return LaunchResult(True) if self.ok else LaunchResult(False, "no steam")


class Rig:
    """A watcher wired to fakes, plus handles on each fake."""

    def __init__(self, folder: Path) -> None:
        self.folder = folder
        self.controller = FakeController()
        self.tool = FakeTool()
        self.launcher = FakeLauncher()
        self.events = EventLog()
        self.watcher = GameWatcher(
            controller=self.controller,
            tool=self.tool,
            launcher=self.launcher,
            events=self.events,
            poll_interval=0.01,
        )

    def tick(self, running: bool):
        self.controller.running = running
        return self.watcher.poll_once()

    def messages(self) -> list[str]:
        return [e.message for e in self.events.drain()]


@pytest.fixture
def mod_folder(tmp_path: Path) -> Path:
    folder = tmp_path / "mods" / "my_mod"
    (folder / "Data").mkdir(parents=True)
    (folder / "mod.manifest").write_text("<modding_manifest/>", encoding="utf-8")
    (folder / "Data" / "tables.xml").write_bytes(b"<table>1</table>")
    return folder


@pytest.fixture
def rig(mod_folder: Path) -> Rig:
    r = Rig(mod_folder)
    r.watcher.set_watch_target(str(mod_folder))
    r.events.drain()
    return r
