"""Replay control: start/stop stepping a session's text through its history."""

import logging

from fastapi import APIRouter

from app.models import ReplayResponse
from routes.sessions import get_session_or_404
from services.replay import replay_scheduler

router = APIRouter(tags=["replay"])
logger = logging.getLogger(__name__)


@router.post("/sessions/{session_id}/replay", response_model=ReplayResponse, status_code=202)
async def start_replay(session_id: str) -> ReplayResponse:
    """
    Start replay. An empty history is not an error: started is False and
    nothing changes. Steps stream over the session events WebSocket.
    """
    session = get_session_or_404(session_id)
    started = replay_scheduler.start(session_id)
    return ReplayResponse(
        started=started,
        replay_status=session.replay_status,
        steps=len(session.history) if started else 0,
    )


@router.delete("/sessions/{session_id}/replay", response_model=ReplayResponse)
async def stop_replay(session_id: str) -> ReplayResponse:
    session = get_session_or_404(session_id)
    stopped = replay_scheduler.stop(session_id)
    return ReplayResponse(stopped=stopped, replay_status=session.replay_status)
