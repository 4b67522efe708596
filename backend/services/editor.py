"""
Session controller: the one place that mutates a WritingSession.

Direct edits, phrase marking, auto-annotation toggles and clearing all go
through here so history, replay ownership and the auto-annotation loop stay
consistent.
"""

from __future__ import annotations

import logging
import secrets

from models import (
    AnalysisResult,
    Annotation,
    AnnotationSource,
    DocumentMode,
    HistoryEntry,
    ReplayStatus,
    Span,
    WritingSession,
)
from services.auto_annotator import auto_annotator
from services.connotation import connotation_scorer
from services.history_recorder import history_recorder
from services.metrics import run_analysis
from services.render import collect_annotations, render_spans
from services.replay import ReplayInProgressError, replay_scheduler
from services.session_hub import session_hub
from services.store import sessions

logger = logging.getLogger(__name__)

# No 0/O, 1/I/l so ids survive being read aloud or retyped.
_SESSION_ALPHABET = "23456789abcdefghjkmnpqrstuvwxyz"
_SESSION_ID_LENGTH = 12

# Used for a user marking whose connotation is neutral (would render transparent).
USER_DEFAULT_COLOR = "rgba(250, 204, 21, 0.45)"


def _generate_session_id() -> str:
    return "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(_SESSION_ID_LENGTH))


def create_session(mode: DocumentMode = DocumentMode.MANUSCRIPT) -> WritingSession:
    session_id = _generate_session_id()
    while session_id in sessions:
        session_id = _generate_session_id()
    session = WritingSession(id=session_id, mode=mode)
    sessions[session_id] = session
    logger.info("[editor] Session created: session_id=%s mode=%s", session_id, mode.value)
    return session


def apply_edit(session: WritingSession, value: str, *, now_ms: int | None = None) -> HistoryEntry | None:
    """
    Commit a direct user edit: set the text, record a snapshot, schedule auto-annotation.

    While a replay owns the text the edit cancels the replay and is rejected.
    """
    if session.replay_status is ReplayStatus.REPLAYING:
        replay_scheduler.stop(session.id)
        raise ReplayInProgressError(f"session {session.id} is replaying; edit rejected")

    session.text = value
    entry = history_recorder.record(session.id, value, now_ms=now_ms)
    if session.auto_annotate:
        auto_annotator.schedule(session.id)
    return entry


def mark_phrase(session: WritingSession, phrase: str, *, color: str | None = None) -> Annotation | None:
    """Add a user annotation. Blank or already-marked phrases are a no-op (None)."""
    phrase = (phrase or "").strip()
    if not phrase:
        return None
    key = phrase.lower()
    if key in session.user_annotations:
        return None

    score = connotation_scorer.score(phrase)
    if color is None:
        color = connotation_scorer.color_of(score).css if score != 0.0 else USER_DEFAULT_COLOR
    annotation = Annotation(phrase=phrase, color=color, source=AnnotationSource.USER, score=score)
    session.user_annotations[key] = annotation
    logger.info("[editor] Marked phrase session=%s phrase=%r score=%.2f", session.id, phrase, score)
    if session.auto_annotate:
        auto_annotator.schedule(session.id)
    return annotation


def unmark_phrase(session: WritingSession, phrase: str) -> bool:
    removed = session.user_annotations.pop((phrase or "").strip().lower(), None)
    if removed is None:
        return False
    logger.info("[editor] Unmarked phrase session=%s phrase=%r", session.id, removed.phrase)
    if session.auto_annotate:
        auto_annotator.schedule(session.id)
    return True


def set_auto_annotate(
    session: WritingSession,
    *,
    enabled: bool,
    use_remote: bool | None = None,
) -> None:
    """Toggle the auto source. Disabling discards pending work and clears the auto list."""
    session.auto_annotate = enabled
    if use_remote is not None:
        session.use_remote_extraction = use_remote
    if enabled:
        auto_annotator.schedule(session.id)
    else:
        auto_annotator.cancel(session.id)
        session.auto_annotations = []
        session_hub.publish_auto_annotations(session.id, [])
    logger.info(
        "[editor] Auto-annotate session=%s enabled=%s remote=%s",
        session.id,
        enabled,
        session.use_remote_extraction,
    )


def render_session(session: WritingSession, caret: int | None = None) -> tuple[list[Span], Annotation | None]:
    annotations, live = collect_annotations(session, caret)
    return render_spans(session.text, annotations), live


def analyze_session(session: WritingSession) -> AnalysisResult | None:
    return run_analysis(session.history)


def clear_session(session: WritingSession) -> None:
    """Reset text, history, annotations and replay state; the session id survives."""
    replay_scheduler.stop(session.id)
    auto_annotator.forget(session.id)
    history_recorder.forget(session.id)
    session_hub.forget(session.id)
    session.text = ""
    session.history = []
    session.user_annotations = {}
    session.auto_annotations = []
    session.replay_cursor = 0
    session.replay_status = ReplayStatus.IDLE
    logger.info("[editor] Session cleared: session_id=%s", session.id)
