"""Client and tolerant response parser for the remote phrase-extraction service."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Union

import httpx

from services.connotation import clamp_score

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

_SCORE_JUNK_RE = re.compile(r"[^\d.-]")


@dataclass(frozen=True)
class ExtractedPhrase:
    phrase: str
    score: float               # clamped to [-1, 1]


@dataclass(frozen=True)
class ParsedPhrases:
    phrases: list[ExtractedPhrase]


@dataclass(frozen=True)
class MalformedResponse:
    raw: str
    reason: str


ParseResult = Union[ParsedPhrases, MalformedResponse]


def first_balanced_brackets(raw: str) -> str | None:
    """
    Return the first balanced ``[...]`` substring of raw, or None.

    Brackets inside JSON string literals are ignored.
    """
    start = raw.find("[")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(raw)):
        ch = raw[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return raw[start : i + 1]
    return None


def _coerce_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        salvaged = _SCORE_JUNK_RE.sub("", str(value if value is not None else "0"))
        try:
            score = float(salvaged)
        except ValueError:
            score = 0.0
    return clamp_score(score)


def _coerce_phrases(items: list[Any]) -> list[ExtractedPhrase]:
    phrases: list[ExtractedPhrase] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        phrase = str(item.get("phrase") or "").strip()
        if not phrase:
            continue
        phrases.append(ExtractedPhrase(phrase=phrase, score=_coerce_score(item.get("score"))))
    return phrases


def _unwrap(payload: Any) -> list[Any] | None:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("phrases"), list):
        return payload["phrases"]
    return None


def _parsed(raw: str, items: list[Any], max_phrases: int) -> ParseResult:
    phrases = _coerce_phrases(items)
    if items and not phrases:
        return MalformedResponse(raw=raw, reason="no valid phrase items")
    return ParsedPhrases(phrases[:max_phrases])


def parse_phrase_response(raw: str, *, max_phrases: int = 20) -> ParseResult:
    """
    Parse a collaborator response body.

    Attempts, in order: strict JSON (``{"phrases": [...]}`` or a bare list),
    then the first balanced ``[...]`` substring. Anything else is Malformed.
    A non-empty list with no usable ``{phrase, score}`` item is Malformed too.
    """
    try:
        items = _unwrap(json.loads(raw))
    except (json.JSONDecodeError, TypeError):
        items = None
    if items is not None:
        return _parsed(raw, items, max_phrases)

    sliced = first_balanced_brackets(raw or "")
    if sliced is None:
        return MalformedResponse(raw=raw, reason="no JSON array found")
    try:
        items = _unwrap(json.loads(sliced))
    except json.JSONDecodeError:
        return MalformedResponse(raw=raw, reason="bracketed slice is not valid JSON")
    if items is None:
        return MalformedResponse(raw=raw, reason="expected a list of phrases")
    return _parsed(raw, items, max_phrases)


class PhraseExtractionClient:
    """
    POST ``{text, max_phrases}`` to the extraction service.

    Transport and HTTP status errors propagate as ``httpx.HTTPError`` so the
    caller can fall back; body problems come back as MalformedResponse.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    async def extract(self, text: str, *, max_phrases: int = 20) -> ParseResult:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(self._url, json={"text": text, "max_phrases": max_phrases})
        resp.raise_for_status()
        result = parse_phrase_response(resp.text, max_phrases=max_phrases)
        if isinstance(result, MalformedResponse):
            logger.warning(
                "[phrase_extraction] Malformed response from %s (%s): %.80s",
                self._url,
                result.reason,
                result.raw,
            )
        return result
