"""Time-scaled replay of a session's recorded history."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from models import HistoryEntry, ReplayStatus
from services.auto_annotator import auto_annotator
from services.session_hub import session_hub
from services.store import sessions

logger = logging.getLogger(__name__)

FIRST_DELAY_MS = 100
MAX_STEP_DELAY_MS = 200

SleepFn = Callable[[float], Awaitable[None]]
StepHook = Callable[[str, int, HistoryEntry], None]


class ReplayInProgressError(RuntimeError):
    """Raised when something other than the scheduler writes text during replay."""


def step_delay_ms(history: Sequence[HistoryEntry], index: int) -> int:
    if index == 0:
        return FIRST_DELAY_MS
    delta = history[index].time - history[index - 1].time
    return min(MAX_STEP_DELAY_MS, max(0, delta))


def step_delays(history: Sequence[HistoryEntry]) -> list[int]:
    return [step_delay_ms(history, i) for i in range(len(history))]


class ReplayScheduler:
    """
    Step a session's text through its history on the event loop.

    One task per session. The task owns ``session.text`` while the session is
    REPLAYING; stop() cancels it at its pending delay so no queued step lands
    afterwards. Replay never appends to history.
    """

    def __init__(
        self,
        *,
        sleep: SleepFn | None = None,
        on_step: StepHook | None = None,
    ) -> None:
        self._sleep = sleep or asyncio.sleep
        self._on_step = on_step
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def is_replaying(self, session_id: str) -> bool:
        session = sessions.get(session_id)
        return session is not None and session.replay_status is ReplayStatus.REPLAYING

    def start(self, session_id: str) -> bool:
        """Begin replay; a missing session or empty history is a silent no-op."""
        session = sessions.get(session_id)
        if session is None or not session.history:
            logger.info("[replay] Nothing to replay for session %s", session_id)
            return False

        loop = asyncio.get_running_loop()
        self.stop(session_id)
        snapshot = list(session.history)
        session.replay_cursor = 0
        session.text = ""
        session.replay_status = ReplayStatus.REPLAYING
        self._tasks[session_id] = loop.create_task(self._run(session_id, snapshot))
        logger.info("[replay] Started session=%s steps=%d", session_id, len(snapshot))
        return True

    def stop(self, session_id: str) -> bool:
        """Cancel a running replay. Returns False when nothing was replaying."""
        task = self._tasks.pop(session_id, None)
        session = sessions.get(session_id)
        was_replaying = session is not None and session.replay_status is ReplayStatus.REPLAYING
        if task is not None and not task.done():
            task.cancel()
        if session is not None:
            session.replay_status = ReplayStatus.IDLE
        if was_replaying:
            session_hub.publish_replay_stopped(session_id, session.replay_cursor)
            logger.info("[replay] Stopped session=%s", session_id)
        return was_replaying

    async def join(self, session_id: str) -> None:
        task = self._tasks.get(session_id)
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self, session_id: str, snapshot: list[HistoryEntry]) -> None:
        me = asyncio.current_task()
        try:
            for index, entry in enumerate(snapshot):
                await self._sleep(step_delay_ms(snapshot, index) / 1000.0)
                session = sessions.get(session_id)
                if session is None or session.replay_status is not ReplayStatus.REPLAYING:
                    return
                self._apply_step(session_id, index, entry)
            session = sessions.get(session_id)
            if session is not None:
                session.replay_status = ReplayStatus.IDLE
            session_hub.publish_replay_finished(session_id, len(snapshot))
            logger.info("[replay] Finished session=%s steps=%d", session_id, len(snapshot))
        finally:
            if self._tasks.get(session_id) is me:
                self._tasks.pop(session_id, None)

    def _apply_step(self, session_id: str, index: int, entry: HistoryEntry) -> None:
        session = sessions[session_id]
        session.text = entry.value
        session.replay_cursor = index + 1
        session_hub.publish_replay_step(session_id, index, entry)
        if self._on_step is not None:
            self._on_step(session_id, index, entry)


def _recompute_auto_annotations(session_id: str, _index: int, _entry: HistoryEntry) -> None:
    auto_annotator.schedule(session_id)


# Singleton scheduler; replayed text feeds the debounced auto-annotation loop.
replay_scheduler = ReplayScheduler(on_step=_recompute_auto_annotations)
