import logging

from fastapi import APIRouter, HTTPException

from app.models import TranslateRequest, TranslateResponse
from services.translation import MAX_QUERY_LENGTH, translator

router = APIRouter(tags=["translate"])
logger = logging.getLogger(__name__)


@router.post("/translate", response_model=TranslateResponse)
async def translate(body: TranslateRequest) -> TranslateResponse:
    """Translate through proxy → LibreTranslate → static word map."""
    if not body.q.strip():
        raise HTTPException(status_code=400, detail="Missing text (q) to translate")
    if len(body.q) > MAX_QUERY_LENGTH:
        raise HTTPException(status_code=413, detail=f"Text too long, max {MAX_QUERY_LENGTH} characters")
    result = await translator.translate(body.q, source=body.source, target=body.target)
    logger.info("[translate] %d chars via %s", len(body.q), result.provider)
    return TranslateResponse(translated_text=result.text, provider=result.provider)
