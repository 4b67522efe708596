from __future__ import annotations

import logging

import pytest

from models import HistoryEntry, WritingSession
from services.history_recorder import HistoryRecorder
from services.store import sessions


@pytest.fixture(autouse=True)
def _clear_sessions() -> None:
    sessions.clear()
    yield
    sessions.clear()


def _session(session_id: str = "abc123") -> WritingSession:
    session = WritingSession(id=session_id)
    sessions[session_id] = session
    return session


def test_record_appends_every_snapshot() -> None:
    session = _session()
    recorder = HistoryRecorder()

    recorder.record(session.id, "h", now_ms=10)
    recorder.record(session.id, "he", now_ms=20)
    entry = recorder.record(session.id, "h", now_ms=35)

    assert entry == HistoryEntry(value="h", time=35)
    assert session.history == [
        HistoryEntry(value="h", time=10),
        HistoryEntry(value="he", time=20),
        HistoryEntry(value="h", time=35),
    ]


def test_record_keeps_identical_values() -> None:
    session = _session()
    recorder = HistoryRecorder()
    recorder.record(session.id, "same", now_ms=1)
    recorder.record(session.id, "same", now_ms=2)
    assert len(session.history) == 2


def test_record_clamps_time_going_backwards(caplog: pytest.LogCaptureFixture) -> None:
    session = _session()
    recorder = HistoryRecorder()
    recorder.record(session.id, "a", now_ms=500)
    with caplog.at_level(logging.WARNING):
        entry = recorder.record(session.id, "ab", now_ms=100)
    assert entry is not None
    assert entry.time == 500
    assert "Timing anomaly" in caplog.text


def test_record_defaults_to_monotonic_clock() -> None:
    session = _session()
    recorder = HistoryRecorder()
    first = recorder.record(session.id, "a")
    second = recorder.record(session.id, "ab")
    assert first is not None and second is not None
    assert second.time >= first.time


def test_record_no_session_is_noop() -> None:
    recorder = HistoryRecorder()
    assert recorder.record("missing-session", "text") is None
