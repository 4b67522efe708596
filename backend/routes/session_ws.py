from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket

from services.session_hub import session_hub
from services.store import sessions

router = APIRouter(tags=["events"])
logger = logging.getLogger(__name__)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Inbound messages are ignored; only the close matters.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws/sessions/{session_id}/events")
async def ws_session_events(websocket: WebSocket, session_id: str) -> None:
    """
    Stream replay steps and auto-annotation updates to the frontend.

    Payload schema (see SessionHub):
      {"type": "replay_step", "index": int, "text": str, "time": int}
      {"type": "replay_finished", "steps": int}
      {"type": "auto_annotations", "annotations": [...]}
    """
    logger.info("[session_ws] Client connecting for session_id=%r", session_id)
    await websocket.accept()
    if session_id not in sessions:
        await websocket.send_json({"type": "error", "detail": "Session not found"})
        await websocket.close()
        return

    q = session_hub.subscribe(session_id)
    logger.info("[session_ws] Subscribed session_id=%r", session_id)
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        while True:
            next_payload = asyncio.create_task(q.get())
            done, _ = await asyncio.wait({next_payload, disconnected}, return_when=asyncio.FIRST_COMPLETED)
            if disconnected in done:
                next_payload.cancel()
                logger.info("[session_ws] Client disconnected session_id=%r", session_id)
                return
            payload: dict[str, Any] = next_payload.result()
            await websocket.send_json(payload)
    finally:
        disconnected.cancel()
        session_hub.unsubscribe(session_id, q)
