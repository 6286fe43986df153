from __future__ import annotations

import logging
import re

import pytest

from modwatch.events import EventKind, EventLog


def test_drain_returns_events_in_order() -> None:
    log = EventLog()
    log.emit(EventKind.INFO, "one")
    log.emit(EventKind.NO_CHANGES, "two")

    drained = log.drain()

    assert [e.message for e in drained] == ["one", "two"]
    assert drained[1].kind is EventKind.NO_CHANGES
    assert log.drain() == []


def test_full_queue_drops_oldest() -> None:
    log = EventLog(maxsize=2)
    for i in range(4):
        log.emit(EventKind.INFO, str(i))

    assert [e.message for e in log.drain()] == ["2", "3"]


def test_drain_limit() -> None:
    log = EventLog()
    for i in range(5):
        log.emit(EventKind.INFO, str(i))

    assert len(log.drain(limit=3)) == 3
    assert len(log) == 2


def test_format_line_is_timestamped() -> None:
    event = EventLog().emit(EventKind.INFO, "Steam launch triggered.")

    assert re.fullmatch(r"\[\d\d:\d\d:\d\d\] Steam launch triggered\.", event.format_line())


def test_events_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="modwatch.events"):
        EventLog().emit(EventKind.REPACK_FAILED, "Repack failed: boom", level=logging.ERROR, alert=True)

    assert ("modwatch.events", logging.ERROR, "Repack failed: boom") in caplog.record_tuples
