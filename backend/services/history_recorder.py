"""Edit timeline capture."""

from __future__ import annotations

import logging
import time

from models import HistoryEntry
from services.store import sessions

logger = logging.getLogger(__name__)


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class HistoryRecorder:
    """
    Append one immutable snapshot per committed edit to a session's history.

    Nothing is deduplicated or debounced: replay needs every intermediate
    state, including edits that shrink the text.
    """

    def __init__(self) -> None:
        self._sessions_logged: set[str] = set()

    def record(
        self,
        session_id: str,
        value: str,
        *,
        now_ms: int | None = None,
    ) -> HistoryEntry | None:
        """
        Append a HistoryEntry to the session's history and return it.

        - time defaults to the monotonic clock in milliseconds
        - a time earlier than the previous entry is raised to it
        """
        session = sessions.get(session_id)
        if session is None:
            logger.warning(
                "[history_recorder] Session %s not found; dropping edit of %d chars",
                session_id,
                len(value),
            )
            return None

        timestamp = monotonic_ms() if now_ms is None else int(now_ms)
        if session.history and timestamp < session.history[-1].time:
            logger.warning(
                "[history_recorder] Timing anomaly in session %s: %d < previous %d; clamping",
                session_id,
                timestamp,
                session.history[-1].time,
            )
            timestamp = session.history[-1].time

        entry = HistoryEntry(value=value, time=timestamp)
        session.history.append(entry)
        if session_id not in self._sessions_logged:
            self._sessions_logged.add(session_id)
            logger.info("[history_recorder] First edit recorded for session %s", session_id)
        logger.debug(
            "[history_recorder] Recorded: session=%s entries=%d time=%d len=%d",
            session_id,
            len(session.history),
            entry.time,
            len(entry.value),
        )
        return entry

    def forget(self, session_id: str) -> None:
        self._sessions_logged.discard(session_id)


# Singleton recorder used by the session controller.
history_recorder = HistoryRecorder()
