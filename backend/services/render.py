"""
Annotation merge/render engine.

Turns the current text plus user, live and auto annotations into an ordered
span sequence that partitions the text exactly. At each token start the
longest boundary-respecting phrase wins; equal lengths go to the source with
the higher precedence (user > live > auto), then to the smaller phrase key.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from models import Annotation, AnnotationSource, Span, WritingSession
from services.connotation import ConnotationScorer, connotation_scorer

BOUNDARY_PUNCTUATION = frozenset(".,;:!?\"'()[]{}<>/\\-–—…«»“”‘’*_~`")


def is_boundary(text: str, index: int) -> bool:
    """True when index is off either end of text, or points at whitespace or boundary punctuation."""
    if index < 0 or index >= len(text):
        return True
    ch = text[index]
    return ch.isspace() or ch in BOUNDARY_PUNCTUATION


def match_at(text: str, index: int, annotation: Annotation) -> int:
    """Length of annotation's phrase matched at index, or 0."""
    phrase = annotation.phrase
    length = len(phrase)
    if length == 0 or index + length > len(text):
        return 0
    if text[index : index + length].lower() != annotation.phrase_key:
        return 0
    if not is_boundary(text, index - 1) or not is_boundary(text, index + length):
        return 0
    return length


def _rank(length: int, annotation: Annotation) -> tuple[int, int, str, str]:
    # min() over this key: longest, then highest precedence, then lexicographic
    return (-length, -annotation.source.precedence, annotation.phrase_key, annotation.phrase)


def best_match(text: str, index: int, annotations: Iterable[Annotation]) -> tuple[int, Annotation] | None:
    best: tuple[int, Annotation] | None = None
    for annotation in annotations:
        length = match_at(text, index, annotation)
        if length == 0:
            continue
        if best is None or _rank(length, annotation) < _rank(*best):
            best = (length, annotation)
    return best


def render_spans(text: str, annotations: Sequence[Annotation]) -> list[Span]:
    candidates = [a for a in annotations if a.phrase]
    spans: list[Span] = []
    i = 0
    n = len(text)
    while i < n:
        if text[i].isspace():
            spans.append(Span(start=i, end=i + 1, text=text[i]))
            i += 1
            continue

        match = best_match(text, i, candidates)
        if match is not None:
            length, annotation = match
            spans.append(Span(start=i, end=i + length, text=text[i : i + length], annotation=annotation))
            i += length
            continue

        j = i
        while j < n and not text[j].isspace():
            j += 1
        spans.append(Span(start=i, end=j, text=text[i:j]))
        i = j
    return spans


def enclosing_token(text: str, caret: int) -> str:
    """The run of non-whitespace characters touching the caret, trimmed."""
    caret = max(0, min(caret, len(text)))
    start = caret
    while start > 0 and not text[start - 1].isspace():
        start -= 1
    end = caret
    while end < len(text) and not text[end].isspace():
        end += 1
    return text[start:end].strip()


def derive_live_annotation(
    text: str,
    caret: int | None,
    user_keys: Collection[str] = (),
    scorer: ConnotationScorer | None = None,
) -> Annotation | None:
    """Transient annotation for the word under the caret, unless the user already marked it."""
    if caret is None:
        return None
    token = enclosing_token(text, caret)
    if not token or token.lower() in user_keys:
        return None
    scorer = scorer or connotation_scorer
    score = scorer.score(token)
    return Annotation(
        phrase=token,
        color=scorer.color_of(score).css,
        source=AnnotationSource.LIVE,
        score=score,
    )


def collect_annotations(
    session: WritingSession,
    caret: int | None = None,
    scorer: ConnotationScorer | None = None,
) -> tuple[list[Annotation], Annotation | None]:
    """User, live and auto annotations for one render pass, plus the live one on its own."""
    live = derive_live_annotation(session.text, caret, session.user_annotations.keys(), scorer)
    annotations = list(session.user_annotations.values())
    if live is not None:
        annotations.append(live)
    annotations.extend(session.auto_annotations)
    return annotations, live
