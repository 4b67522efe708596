"""Three-tier translation: proxy, then LibreTranslate, then a static word map."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from services import settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
MAX_QUERY_LENGTH = 20000

FALLBACK_DICTIONARY = {
    "hello": "hola",
    "world": "mundo",
    "love": "amor",
    "happy": "feliz",
    "sad": "triste",
    "good": "bueno",
    "bad": "malo",
}

_CHUNK_RE = re.compile(r"\w+|\W+")


@dataclass(frozen=True)
class TranslationResult:
    text: str
    provider: str              # proxy | libretranslate | fallback


def fallback_translate(q: str, dictionary: dict[str, str] | None = None) -> str:
    """Swap known words, keep every other chunk (including separators) as-is."""
    if not q:
        return ""
    table = FALLBACK_DICTIONARY if dictionary is None else dictionary
    return "".join(table.get(chunk.lower(), chunk) for chunk in _CHUNK_RE.findall(q))


def _translated_text(body: Any) -> str:
    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        for key in ("translatedText", "translation", "translated"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    raise ValueError(f"no translated text in response: {str(body)[:200]}")


class Translator:
    def __init__(
        self,
        *,
        proxy_url: str | None = None,
        libre_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._proxy_url = proxy_url
        self._libre_url = libre_url
        self._timeout = timeout
        self._transport = transport

    async def _post(self, url: str, payload: dict[str, Any]) -> str:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(url, json=payload)
        resp.raise_for_status()
        return _translated_text(resp.json())

    async def _call_proxy(self, q: str, source: str, target: str) -> str | None:
        url = self._proxy_url or settings.get_translate_proxy_url()
        if not url:
            logger.debug("[translation] No proxy configured; skipping tier.")
            return None
        return await self._post(url, {"q": q, "source": source, "target": target})

    async def _call_libre(self, q: str, source: str, target: str) -> str:
        url = self._libre_url or settings.get_libretranslate_url()
        return await self._post(url, {"q": q, "source": source or "auto", "target": target, "format": "text"})

    async def translate(self, q: str, source: str = "auto", target: str = "es") -> TranslationResult:
        """
        Try each tier in order; network or body errors move on to the next.

        The static tier never fails, so callers always get a result.
        """
        try:
            out = await self._call_proxy(q, source, target)
            if out is not None:
                return TranslationResult(text=out, provider="proxy")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("[translation] Proxy translate failed, falling back: %s", exc, exc_info=True)

        try:
            out = await self._call_libre(q, source, target)
            return TranslationResult(text=out, provider="libretranslate")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("[translation] LibreTranslate failed, falling back: %s", exc, exc_info=True)

        logger.info("[translation] Using static word map for %d chars", len(q))
        return TranslationResult(text=fallback_translate(q), provider="fallback")


translator = Translator()
