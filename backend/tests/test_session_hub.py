from __future__ import annotations

import asyncio

import pytest

from models import Annotation, AnnotationSource, HistoryEntry
from services.session_hub import SessionHub


def _auto(phrase: str) -> Annotation:
    return Annotation(phrase=phrase, color="rgba(234, 88, 12, 0.85)", source=AnnotationSource.AUTO, score=1.0)


@pytest.mark.asyncio
async def test_session_hub_fans_out_to_subscribers() -> None:
    hub = SessionHub()
    session_id = "fanout-session"

    first = hub.subscribe(session_id)
    second = hub.subscribe(session_id)
    assert hub.subscriber_count(session_id) == 2

    hub.publish_replay_step(session_id, 0, HistoryEntry(value="a", time=0))

    for q in (first, second):
        event = await asyncio.wait_for(q.get(), timeout=0.5)
        assert event == {"type": "replay_step", "index": 0, "text": "a", "time": 0}

    hub.unsubscribe(session_id, first)
    hub.unsubscribe(session_id, second)
    assert hub.subscriber_count(session_id) == 0


@pytest.mark.asyncio
async def test_session_hub_drops_oldest_when_full() -> None:
    hub = SessionHub(maxsize=2)
    q = hub.subscribe("slow")
    for index in range(3):
        await hub.publish("slow", {"type": "replay_step", "index": index})

    assert [q.get_nowait()["index"], q.get_nowait()["index"]] == [1, 2]
    hub.unsubscribe("slow", q)


@pytest.mark.asyncio
async def test_late_subscriber_gets_latest_auto_annotations_and_replay_step() -> None:
    hub = SessionHub()
    hub.publish_auto_annotations("late", [_auto("Wonderful")])
    hub.publish_auto_annotations("late", [_auto("Brilliant")])
    hub.publish_replay_step("late", 0, HistoryEntry(value="a", time=0))
    hub.publish_replay_step("late", 1, HistoryEntry(value="ab", time=40))
    await asyncio.sleep(0)

    q = hub.subscribe("late")
    auto = q.get_nowait()
    step = q.get_nowait()

    assert auto["type"] == "auto_annotations"
    assert [a["phrase"] for a in auto["annotations"]] == ["Brilliant"]
    assert auto["annotations"][0]["source"] == "auto"
    assert step == {"type": "replay_step", "index": 1, "text": "ab", "time": 40}
    assert q.empty()
    hub.unsubscribe("late", q)


@pytest.mark.asyncio
async def test_replay_end_clears_replay_snapshot() -> None:
    hub = SessionHub()
    hub.publish_replay_step("done", 0, HistoryEntry(value="a", time=0))
    hub.publish_replay_finished("done", 1)
    hub.publish_replay_step("stopped", 0, HistoryEntry(value="a", time=0))
    hub.publish_replay_stopped("stopped", 1)
    await asyncio.sleep(0)

    assert hub.snapshot("done") == []
    assert hub.snapshot("stopped") == []


def test_forget_drops_snapshot() -> None:
    hub = SessionHub()
    hub.publish_auto_annotations("gone", [_auto("great")])
    assert len(hub.snapshot("gone")) == 1
    hub.forget("gone")
    assert hub.snapshot("gone") == []


@pytest.mark.asyncio
async def test_pending_publishes_are_held_until_done() -> None:
    hub = SessionHub()
    q = hub.subscribe("held")
    hub.publish_replay_finished("held", 3)
    assert len(hub._pending) == 1

    event = await asyncio.wait_for(q.get(), timeout=0.5)
    await asyncio.sleep(0)

    assert event == {"type": "replay_finished", "steps": 3}
    assert hub._pending == set()
    hub.unsubscribe("held", q)


def test_publish_without_loop_still_updates_snapshot() -> None:
    hub = SessionHub()
    hub.publish_auto_annotations("no-loop", [])
    assert hub.snapshot("no-loop") == [{"type": "auto_annotations", "annotations": []}]
    assert hub._pending == set()
