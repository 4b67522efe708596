"""Automatic annotation source: keyphrases scored by connotation, debounced per session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection, Iterable

import httpx

from models import Annotation, AnnotationSource
from services import settings
from services.connotation import ConnotationScorer, connotation_scorer
from services.keyphrase import extract_key_phrases, first_occurrence
from services.phrase_extraction import MalformedResponse, PhraseExtractionClient
from services.session_hub import session_hub
from services.store import sessions

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class AutoAnnotator:
    """
    Produce the ``auto`` annotation list for a session.

    Every trigger (edit, toggle, marked-phrase change) bumps a per-session
    generation and restarts a debounce timer. A recompute result is applied
    only while its generation is still current and auto-annotation is still
    enabled; the list is always replaced wholesale.
    """

    def __init__(
        self,
        *,
        scorer: ConnotationScorer | None = None,
        client: PhraseExtractionClient | None = None,
        debounce_ms: int | None = None,
        max_phrases: int | None = None,
        include_neutral: bool = False,
        sleep: SleepFn | None = None,
    ) -> None:
        self._scorer = scorer or connotation_scorer
        self._client = client
        self._debounce_ms = debounce_ms
        self._max_phrases = max_phrases
        self._include_neutral = include_neutral
        self._sleep = sleep or asyncio.sleep
        self._generations: dict[str, int] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def debounce_ms(self) -> int:
        return self._debounce_ms if self._debounce_ms is not None else settings.get_debounce_ms()

    @property
    def max_phrases(self) -> int:
        return self._max_phrases if self._max_phrases is not None else settings.get_max_phrases()

    def _remote_client(self) -> PhraseExtractionClient | None:
        if self._client is not None:
            return self._client
        url = settings.get_phrase_extraction_url()
        return PhraseExtractionClient(url) if url else None

    def _build(self, phrase: str, score: float) -> Annotation:
        return Annotation(
            phrase=phrase,
            color=self._scorer.color_of(score).css,
            source=AnnotationSource.AUTO,
            score=score,
        )

    def _select(self, scored: Iterable[tuple[str, float]], user_keys: Collection[str]) -> list[Annotation]:
        annotations: list[Annotation] = []
        seen: set[str] = set()
        for phrase, score in scored:
            key = phrase.lower()
            if key in user_keys or key in seen:
                continue
            if score == 0.0 and not self._include_neutral:
                continue
            seen.add(key)
            annotations.append(self._build(phrase, score))
            if len(annotations) >= self.max_phrases:
                break
        return annotations

    def annotate_locally(self, text: str, user_keys: Collection[str] = ()) -> list[Annotation]:
        ranked = extract_key_phrases(text)
        # keyphrases come back lowercased; annotate with the text as written
        scored = (
            (first_occurrence(text, kp.phrase) or kp.phrase, self._scorer.score(kp.phrase)) for kp in ranked
        )
        return self._select(scored, user_keys)

    async def compute(
        self,
        text: str,
        user_keys: Collection[str] = (),
        *,
        use_remote: bool = False,
    ) -> list[Annotation]:
        """Remote extraction when enabled and configured; local extraction on any failure."""
        client = self._remote_client() if use_remote else None
        if client is None:
            return self.annotate_locally(text, user_keys)

        try:
            result = await client.extract(text, max_phrases=self.max_phrases)
        except httpx.HTTPError as exc:
            logger.warning(
                "[auto_annotator] Phrase extraction request failed (%s); using local extractor.",
                exc,
                exc_info=True,
            )
            return self.annotate_locally(text, user_keys)

        if isinstance(result, MalformedResponse):
            logger.warning("[auto_annotator] Malformed extraction response; using local extractor.")
            return self.annotate_locally(text, user_keys)
        return self._select(((p.phrase, p.score) for p in result.phrases), user_keys)

    def generation(self, session_id: str) -> int:
        return self._generations.get(session_id, 0)

    def _bump(self, session_id: str) -> int:
        generation = self.generation(session_id) + 1
        self._generations[session_id] = generation
        task = self._tasks.pop(session_id, None)
        if task is not None and not task.done():
            task.cancel()
        return generation

    def schedule(self, session_id: str) -> int:
        """
        Restart the debounce timer for a session and return the new generation.

        Without a running event loop the recompute runs inline with the local
        extractor.
        """
        generation = self._bump(session_id)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._recompute_inline(session_id)
            return generation
        self._tasks[session_id] = loop.create_task(self._debounced(session_id, generation))
        return generation

    def cancel(self, session_id: str) -> None:
        """Supersede any pending or in-flight recompute for the session."""
        self._bump(session_id)

    def forget(self, session_id: str) -> None:
        self.cancel(session_id)
        self._generations.pop(session_id, None)

    async def join(self, session_id: str) -> None:
        task = self._tasks.get(session_id)
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _debounced(self, session_id: str, generation: int) -> None:
        try:
            await self._sleep(self.debounce_ms / 1000.0)
            await self.recompute(session_id, generation)
        finally:
            if self._tasks.get(session_id) is asyncio.current_task():
                self._tasks.pop(session_id, None)

    async def recompute(self, session_id: str, generation: int | None = None) -> bool:
        """Compute and apply auto annotations; False when superseded or disabled."""
        generation = self.generation(session_id) if generation is None else generation
        session = sessions.get(session_id)
        if session is None or not session.auto_annotate:
            return False

        annotations = await self.compute(
            session.text,
            set(session.user_annotations),
            use_remote=session.use_remote_extraction,
        )

        if generation != self.generation(session_id) or not session.auto_annotate:
            logger.info(
                "[auto_annotator] Discarding stale result for session %s (generation %d, current %d)",
                session_id,
                generation,
                self.generation(session_id),
            )
            return False
        self._apply(session_id, annotations)
        return True

    def _recompute_inline(self, session_id: str) -> None:
        session = sessions.get(session_id)
        if session is None or not session.auto_annotate:
            return
        self._apply(session_id, self.annotate_locally(session.text, set(session.user_annotations)))

    def _apply(self, session_id: str, annotations: list[Annotation]) -> None:
        session = sessions.get(session_id)
        if session is None:
            return
        session.auto_annotations = list(annotations)
        logger.debug(
            "[auto_annotator] Applied %d auto annotations to session %s",
            len(annotations),
            session_id,
        )
        session_hub.publish_auto_annotations(session_id, annotations)


# Singleton annotator used by the session controller and replay.
auto_annotator = AutoAnnotator()
