"""Lexicon-based connotation scoring and score → color mapping."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping

from models import Rgba

# Bounded word -> score table in [-1, 1]. Multi-word keys are exact phrase hits.
DEFAULT_LEXICON: dict[str, float] = {
    "excellent": 1.0,
    "wonderful": 1.0,
    "brilliant": 1.0,
    "amazing": 0.75,
    "great": 0.75,
    "joy": 0.75,
    "love": 0.75,
    "delightful": 0.75,
    "beautiful": 0.75,
    "inspired": 0.75,
    "proud": 0.5,
    "good": 0.5,
    "happy": 0.5,
    "calm": 0.5,
    "relaxed": 0.5,
    "energetic": 0.5,
    "hope": 0.5,
    "hopeful": 0.5,
    "kind": 0.5,
    "warm": 0.5,
    "bright": 0.5,
    "gentle": 0.5,
    "safe": 0.5,
    "free": 0.5,
    "win": 0.5,
    "focus": 0.25,
    "fine": 0.25,
    "okay": 0.25,
    "steady": 0.25,
    "clear": 0.25,
    "neutral": 0.0,
    "meh": 0.0,
    "tired": -0.25,
    "bored": -0.25,
    "slow": -0.25,
    "cold": -0.25,
    "confused": -0.25,
    "bad": -0.5,
    "sad": -0.5,
    "anxious": -0.5,
    "frustrating": -0.5,
    "lonely": -0.5,
    "afraid": -0.5,
    "worried": -0.5,
    "lost": -0.5,
    "hurt": -0.5,
    "fail": -0.5,
    "angry": -0.75,
    "panic": -0.75,
    "stressful": -0.75,
    "awful": -0.75,
    "terrible": -0.75,
    "broken": -0.75,
    "hate": -1.0,
    "horrible": -1.0,
    "miserable": -1.0,
    "not bad": 0.25,
    "well done": 0.75,
    "give up": -0.5,
}

TRANSPARENT = Rgba(0, 0, 0, 0.0)

COLOR_BANDS = 4
# (pale, saturated) endpoints per ramp
POSITIVE_RAMP = ((254, 243, 199), (234, 88, 12))
NEGATIVE_RAMP = ((219, 234, 254), (29, 78, 216))
MIN_ALPHA = 0.25
MAX_ALPHA = 0.85

_EDGE_PUNCT_RE = re.compile(r"^[^\w']+|[^\w']+$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_SUFFIX_RE = re.compile(r"(ing|ed|s)$")


def clamp_score(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(-1.0, min(1.0, float(value)))


def color_of(score: float) -> Rgba:
    """
    Map a connotation score to a display color.

    0 is transparent. Nonzero magnitudes are banded, then interpolated between
    the pale and saturated end of the warm (positive) or cool (negative) ramp;
    alpha grows with the band.
    """
    value = clamp_score(score)
    magnitude = abs(value)
    if magnitude == 0.0:
        return TRANSPARENT

    band = min(COLOR_BANDS, math.ceil(magnitude * COLOR_BANDS))
    t = (band - 1) / (COLOR_BANDS - 1)
    pale, saturated = POSITIVE_RAMP if value > 0 else NEGATIVE_RAMP
    red, green, blue = (round(p + (s - p) * t) for p, s in zip(pale, saturated))
    alpha = round(MIN_ALPHA + (MAX_ALPHA - MIN_ALPHA) * t, 3)
    return Rgba(red, green, blue, alpha)


class ConnotationScorer:
    def __init__(self, lexicon: Mapping[str, float] | None = None) -> None:
        source = DEFAULT_LEXICON if lexicon is None else lexicon
        self._lexicon = {k.lower(): clamp_score(v) for k, v in source.items()}

    def lookup(self, token: str) -> float | None:
        """Score of a single token, trying a light stem when the exact form is missing."""
        low = token.lower()
        if low in self._lexicon:
            return self._lexicon[low]
        stem = _SUFFIX_RE.sub("", _NON_ALNUM_RE.sub("", low))
        if stem and stem in self._lexicon:
            return self._lexicon[stem]
        return None

    def score(self, phrase: str) -> float:
        low = (phrase or "").strip().lower()
        if not low:
            return 0.0
        if low in self._lexicon:
            return self._lexicon[low]

        known: list[float] = []
        for raw in low.split():
            token = _EDGE_PUNCT_RE.sub("", raw)
            if not token:
                continue
            value = self.lookup(token)
            if value is not None:
                known.append(value)
        if not known:
            return 0.0
        return clamp_score(sum(known) / len(known))

    def color_of(self, score: float) -> Rgba:
        return color_of(score)


connotation_scorer = ConnotationScorer()
