from __future__ import annotations

import asyncio

import pytest

from models import HistoryEntry, ReplayStatus, WritingSession
from services.replay import ReplayScheduler, step_delays
from services.session_hub import session_hub
from services.store import sessions

HISTORY = [
    HistoryEntry(value="a", time=0),
    HistoryEntry(value="ab", time=40),
    HistoryEntry(value="abc", time=300),
]


@pytest.fixture(autouse=True)
def _clear_sessions() -> None:
    sessions.clear()
    yield
    sessions.clear()


def _session(session_id: str = "replay-1", history: list[HistoryEntry] | None = None) -> WritingSession:
    session = WritingSession(id=session_id, text="abc", history=list(HISTORY if history is None else history))
    sessions[session_id] = session
    return session


def test_step_delays_first_fixed_then_capped_deltas() -> None:
    assert step_delays(HISTORY) == [100, 40, 200]
    assert step_delays([HistoryEntry("x", 50), HistoryEntry("y", 10)]) == [100, 0]
    assert step_delays([]) == []


@pytest.mark.asyncio
async def test_replay_steps_through_history_in_order() -> None:
    session = _session()
    sleeps: list[float] = []
    steps: list[tuple[int, str]] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    scheduler = ReplayScheduler(sleep=_sleep, on_step=lambda sid, i, entry: steps.append((i, entry.value)))
    assert scheduler.start(session.id) is True
    assert session.text == ""
    assert session.replay_status is ReplayStatus.REPLAYING
    assert scheduler.is_replaying(session.id)

    await scheduler.join(session.id)

    assert sleeps == [0.1, 0.04, 0.2]
    assert steps == [(0, "a"), (1, "ab"), (2, "abc")]
    assert session.text == "abc"
    assert session.replay_cursor == 3
    assert session.replay_status is ReplayStatus.IDLE
    assert session.history == HISTORY


@pytest.mark.asyncio
async def test_stop_cancels_pending_steps() -> None:
    session = _session()
    gate = asyncio.Event()
    sleeps: list[float] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) > 1:
            await gate.wait()

    scheduler = ReplayScheduler(sleep=_sleep)
    scheduler.start(session.id)
    while len(sleeps) < 2:
        await asyncio.sleep(0)

    assert scheduler.stop(session.id) is True
    gate.set()
    await scheduler.join(session.id)
    await asyncio.sleep(0)

    assert session.text == "a"
    assert session.replay_cursor == 1
    assert session.replay_status is ReplayStatus.IDLE
    assert scheduler.stop(session.id) is False


@pytest.mark.asyncio
async def test_empty_history_is_noop() -> None:
    session = _session(history=[])
    scheduler = ReplayScheduler()
    assert scheduler.start(session.id) is False
    assert session.text == "abc"
    assert session.replay_status is ReplayStatus.IDLE
    assert scheduler.start("missing") is False


@pytest.mark.asyncio
async def test_restart_supersedes_running_replay() -> None:
    session = _session()

    async def _sleep(_seconds: float) -> None:
        await asyncio.sleep(0)

    scheduler = ReplayScheduler(sleep=_sleep)
    scheduler.start(session.id)
    await asyncio.sleep(0)
    scheduler.start(session.id)
    await scheduler.join(session.id)

    assert session.text == "abc"
    assert session.replay_status is ReplayStatus.IDLE


@pytest.mark.asyncio
async def test_replay_publishes_steps_and_finish() -> None:
    session = _session("replay-hub")

    async def _sleep(_seconds: float) -> None:
        return None

    scheduler = ReplayScheduler(sleep=_sleep)
    q = session_hub.subscribe(session.id)
    try:
        scheduler.start(session.id)
        await scheduler.join(session.id)
        payloads = [await asyncio.wait_for(q.get(), timeout=0.5) for _ in range(len(HISTORY) + 1)]
    finally:
        session_hub.unsubscribe(session.id, q)

    assert [p["type"] for p in payloads] == ["replay_step", "replay_step", "replay_step", "replay_finished"]
    assert [p.get("text") for p in payloads[:3]] == ["a", "ab", "abc"]
    assert payloads[-1]["steps"] == 3


@pytest.mark.asyncio
async def test_stop_publishes_replay_stopped() -> None:
    session = _session("replay-stop")
    gate = asyncio.Event()

    async def _sleep(_seconds: float) -> None:
        await gate.wait()

    scheduler = ReplayScheduler(sleep=_sleep)
    q = session_hub.subscribe(session.id)
    try:
        scheduler.start(session.id)
        await asyncio.sleep(0)
        scheduler.stop(session.id)
        event = await asyncio.wait_for(q.get(), timeout=0.5)
    finally:
        session_hub.unsubscribe(session.id, q)

    assert event == {"type": "replay_stopped", "cursor": 0}
    assert session_hub.snapshot(session.id) == []
