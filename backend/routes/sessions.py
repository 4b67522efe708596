"""Session REST API: edits, annotations, render, analysis and export."""

import json
import logging

from fastapi import APIRouter, HTTPException, Query, Response

from app.models import (
    AnalysisOut,
    AnalysisResponse,
    AnnotationOut,
    AutoAnnotateRequest,
    EditRequest,
    HistoryEntryOut,
    MarkPhraseRequest,
    RenderResponse,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionReadResponse,
    SpanOut,
)
from models import DocumentMode, WritingSession
from services import editor
from services.export import export_csv, export_json
from services.metrics import speed_series
from services.replay import ReplayInProgressError
from services.store import sessions

router = APIRouter(tags=["sessions"])
logger = logging.getLogger(__name__)


def get_session_or_404(session_id: str) -> WritingSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _read_response(session: WritingSession) -> SessionReadResponse:
    return SessionReadResponse(
        session_id=session.id,
        mode=session.mode,
        created_at=session.created_at,
        text=session.text,
        history_length=len(session.history),
        replay_status=session.replay_status,
        replay_cursor=session.replay_cursor,
        auto_annotate=session.auto_annotate,
        use_remote_extraction=session.use_remote_extraction,
        user_annotations=[AnnotationOut.from_annotation(a) for a in session.user_annotations.values()],
        auto_annotations=[AnnotationOut.from_annotation(a) for a in session.auto_annotations],
    )


@router.post("/sessions", response_model=SessionCreateResponse, status_code=201)
def create_session(body: SessionCreateRequest | None = None) -> SessionCreateResponse:
    """Create a writing session."""
    mode = body.mode if body is not None else DocumentMode.MANUSCRIPT
    session = editor.create_session(mode)
    logger.info("[sessions] POST /sessions → 201 session_id=%s", session.id)
    return SessionCreateResponse(
        session_id=session.id,
        mode=session.mode,
        events_url=f"/api/ws/sessions/{session.id}/events",
    )


@router.get("/sessions/{session_id}", response_model=SessionReadResponse)
def get_session(session_id: str) -> SessionReadResponse:
    return _read_response(get_session_or_404(session_id))


@router.post("/sessions/{session_id}/clear", response_model=SessionReadResponse)
async def clear_session(session_id: str) -> SessionReadResponse:
    session = get_session_or_404(session_id)
    editor.clear_session(session)
    return _read_response(session)


@router.put("/sessions/{session_id}/text", response_model=HistoryEntryOut)
async def edit_text(session_id: str, body: EditRequest) -> HistoryEntryOut:
    """Commit a direct edit. Rejected with 409 while a replay owns the text."""
    session = get_session_or_404(session_id)
    try:
        entry = editor.apply_edit(session, body.value)
    except ReplayInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return HistoryEntryOut.from_entry(entry)


@router.post("/sessions/{session_id}/annotations", response_model=AnnotationOut, status_code=201)
async def mark_phrase(session_id: str, body: MarkPhraseRequest, response: Response) -> AnnotationOut:
    session = get_session_or_404(session_id)
    if not body.phrase.strip():
        raise HTTPException(status_code=400, detail="phrase must not be blank")
    annotation = editor.mark_phrase(session, body.phrase, color=body.color)
    if annotation is None:
        # Already marked: no-op, hand back the existing one.
        response.status_code = 200
        annotation = session.user_annotations[body.phrase.strip().lower()]
    return AnnotationOut.from_annotation(annotation)


@router.delete("/sessions/{session_id}/annotations/{phrase}", status_code=204)
async def unmark_phrase(session_id: str, phrase: str) -> Response:
    session = get_session_or_404(session_id)
    if not editor.unmark_phrase(session, phrase):
        raise HTTPException(status_code=404, detail="Phrase not marked")
    return Response(status_code=204)


@router.put("/sessions/{session_id}/auto-annotate", response_model=SessionReadResponse)
async def set_auto_annotate(session_id: str, body: AutoAnnotateRequest) -> SessionReadResponse:
    session = get_session_or_404(session_id)
    editor.set_auto_annotate(session, enabled=body.enabled, use_remote=body.use_remote)
    return _read_response(session)


@router.get("/sessions/{session_id}/render", response_model=RenderResponse)
def render(
    session_id: str,
    caret: int | None = Query(None, ge=0, description="Caret offset for the live annotation"),
) -> RenderResponse:
    session = get_session_or_404(session_id)
    spans, live = editor.render_session(session, caret)
    return RenderResponse(
        spans=[SpanOut.from_span(s) for s in spans],
        live=AnnotationOut.from_annotation(live) if live is not None else None,
    )


@router.get("/sessions/{session_id}/analysis", response_model=AnalysisResponse)
def get_analysis(session_id: str) -> AnalysisResponse:
    session = get_session_or_404(session_id)
    result = editor.analyze_session(session)
    return AnalysisResponse(
        analysis=AnalysisOut.from_result(result) if result is not None else None,
        speeds=speed_series(session.history),
    )


@router.get("/sessions/{session_id}/export.json")
def download_json(session_id: str) -> Response:
    session = get_session_or_404(session_id)
    return Response(
        content=json.dumps(export_json(session), indent=2),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="infraread-session.json"'},
    )


@router.get("/sessions/{session_id}/export.csv")
def download_csv(session_id: str) -> Response:
    session = get_session_or_404(session_id)
    return Response(
        content=export_csv(session.history),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="infraread-history.csv"'},
    )
