"""
Per-session event fan-out for the events WebSocket.

Events (all carry a "type" key):
  {"type": "replay_step", "index": int, "text": str, "time": int}
  {"type": "replay_finished", "steps": int}
  {"type": "replay_stopped", "cursor": int}
  {"type": "auto_annotations", "annotations": [...]}

The hub also keeps the latest auto-annotation list and, while a replay runs,
its latest step. A subscriber that connects late starts from that snapshot
instead of an empty stream.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from models import Annotation, HistoryEntry

logger = logging.getLogger(__name__)

Event = dict[str, Any]
EventQueue = asyncio.Queue[Event]


def annotation_payload(annotation: Annotation) -> dict[str, Any]:
    return {
        "phrase": annotation.phrase,
        "phrase_key": annotation.phrase_key,
        "color": annotation.color,
        "source": annotation.source.value,
        "score": annotation.score,
    }


def _offer(q: EventQueue, event: Event) -> None:
    # Full queue: the oldest event goes.
    if q.full():
        q.get_nowait()
    q.put_nowait(event)


class SessionHub:
    def __init__(self, *, maxsize: int = 64) -> None:
        self._maxsize = maxsize
        self._queues: dict[str, list[EventQueue]] = {}
        self._auto: dict[str, Event] = {}
        self._replay: dict[str, Event] = {}
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(self, session_id: str) -> EventQueue:
        """New queue for session_id, pre-loaded with the current snapshot."""
        q: EventQueue = asyncio.Queue(maxsize=self._maxsize)
        for event in self.snapshot(session_id):
            _offer(q, event)
        self._queues.setdefault(session_id, []).append(q)
        return q

    def unsubscribe(self, session_id: str, q: EventQueue) -> None:
        queues = self._queues.get(session_id)
        if queues is None:
            return
        if q in queues:
            queues.remove(q)
        if not queues:
            del self._queues[session_id]

    def subscriber_count(self, session_id: str) -> int:
        return len(self._queues.get(session_id, ()))

    def snapshot(self, session_id: str) -> list[Event]:
        return [e for e in (self._auto.get(session_id), self._replay.get(session_id)) if e is not None]

    def forget(self, session_id: str) -> None:
        """Drop remembered state; live subscribers stay attached."""
        self._auto.pop(session_id, None)
        self._replay.pop(session_id, None)

    async def publish(self, session_id: str, event: Event) -> None:
        for q in list(self._queues.get(session_id, ())):
            _offer(q, event)

    def publish_nowait(self, session_id: str, event: Event) -> None:
        """Deliver from sync code; without a running loop there is nobody listening."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.publish(session_id, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def publish_replay_step(self, session_id: str, index: int, entry: HistoryEntry) -> None:
        event = {"type": "replay_step", "index": index, "text": entry.value, "time": entry.time}
        self._replay[session_id] = event
        self.publish_nowait(session_id, event)

    def publish_replay_finished(self, session_id: str, steps: int) -> None:
        self._replay.pop(session_id, None)
        self.publish_nowait(session_id, {"type": "replay_finished", "steps": steps})

    def publish_replay_stopped(self, session_id: str, cursor: int) -> None:
        self._replay.pop(session_id, None)
        self.publish_nowait(session_id, {"type": "replay_stopped", "cursor": cursor})

    def publish_auto_annotations(self, session_id: str, annotations: Iterable[Annotation]) -> None:
        event = {
            "type": "auto_annotations",
            "annotations": [annotation_payload(a) for a in annotations],
        }
        self._auto[session_id] = event
        logger.debug("[session_hub] auto_annotations session=%s count=%d", session_id, len(event["annotations"]))
        self.publish_nowait(session_id, event)


session_hub = SessionHub()
