"""
Keyphrase extraction: stopword-bounded n-grams ranked with RAKE-style
degree/frequency token scores.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

DEFAULT_STOPWORDS = frozenset(
    {
        "a", "an", "the", "and", "or", "but", "if", "then", "else", "on", "in",
        "at", "by", "for", "with", "to", "of", "is", "are", "was", "were", "be",
        "been", "it", "this", "that", "these", "those", "as", "from", "i", "you",
        "we", "they", "he", "she", "me", "him", "her", "them", "my", "your",
        "our", "their",
    }
)

_WORD_RE = re.compile(r"(?:[^\W_]|')+")
# whole-word guards: no letter or digit on either side, and no apostrophe joining one
_LEFT_EDGE = r"(?<![^\W_])(?<![^\W_]['’])"
_RIGHT_EDGE = r"(?![^\W_])(?!['’][^\W_])"


@dataclass(frozen=True)
class KeyPhrase:
    phrase: str                # lowercased, tokens joined by single spaces
    score: float               # sum of token scores
    count: int                 # whole-word occurrences in the source text


def normalize_text(text: str | None) -> str:
    return (text or "").lower().replace("’", "'")


def tokenize_words(text: str | None) -> list[str]:
    tokens = (m.group(0).strip("'") for m in _WORD_RE.finditer(normalize_text(text)))
    return [t for t in tokens if t]


def build_candidates(
    words: list[str],
    max_n: int = 2,
    stopwords: Iterable[str] = DEFAULT_STOPWORDS,
) -> list[tuple[str, ...]]:
    """Every contiguous n-gram up to max_n that neither starts nor ends with a stopword."""
    stop = stopwords if isinstance(stopwords, (set, frozenset)) else set(stopwords)
    candidates: list[tuple[str, ...]] = []
    for i in range(len(words)):
        for n in range(1, max_n + 1):
            if i + n > len(words):
                break
            gram = tuple(words[i : i + n])
            if gram[0] in stop or gram[-1] in stop:
                continue
            candidates.append(gram)
    return candidates


def score_tokens(candidates: list[tuple[str, ...]]) -> dict[str, float]:
    """(degree + frequency) / frequency per token."""
    frequency: Counter[str] = Counter()
    degree: Counter[str] = Counter()
    for gram in candidates:
        for word in gram:
            frequency[word] += 1
            degree[word] += len(gram) - 1
    return {word: (degree[word] + freq) / freq for word, freq in frequency.items()}


def _phrase_pattern(phrase: str) -> re.Pattern[str] | None:
    words = phrase.split()
    if not words:
        return None
    body = r"\s+".join(re.escape(w).replace("'", "['’]") for w in words)
    return re.compile(_LEFT_EDGE + body + _RIGHT_EDGE, re.IGNORECASE)


def count_occurrences(text: str | None, phrase: str) -> int:
    pattern = _phrase_pattern(phrase)
    if pattern is None:
        return 0
    return len(pattern.findall(normalize_text(text)))


def first_occurrence(text: str | None, phrase: str) -> str | None:
    """The phrase as first written in text (original case, single spaces), or None."""
    pattern = _phrase_pattern(phrase)
    if pattern is None:
        return None
    match = pattern.search(text or "")
    if match is None:
        return None
    return " ".join(match.group(0).split())


def extract_key_phrases(
    text: str | None,
    *,
    max_n: int = 2,
    min_score: float = 0.5,
    min_count: int = 1,
    stopwords: Iterable[str] = DEFAULT_STOPWORDS,
) -> list[KeyPhrase]:
    if max_n < 1:
        raise ValueError(f"max_n must be >= 1, got {max_n}")

    words = tokenize_words(text)
    if not words:
        return []
    candidates = build_candidates(words, max_n, stopwords)
    if not candidates:
        return []

    token_scores = score_tokens(candidates)
    phrase_scores: dict[str, float] = {}
    for gram in candidates:
        phrase = " ".join(gram)
        if phrase not in phrase_scores:
            phrase_scores[phrase] = round(sum(token_scores[w] for w in gram), 3)

    results: list[KeyPhrase] = []
    for phrase, score in phrase_scores.items():
        count = count_occurrences(text, phrase)
        if count >= min_count and score >= min_score:
            results.append(KeyPhrase(phrase=phrase, score=score, count=count))

    results.sort(key=lambda r: (-r.score, -r.count, -len(r.phrase), r.phrase))
    return results
