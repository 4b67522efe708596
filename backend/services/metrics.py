"""Session metrics: reduce an edit history into flow/stress/energy indices."""

from __future__ import annotations

import math
from collections.abc import Sequence

from models import BURST_THRESHOLD_MS, PAUSE_THRESHOLD_MS, AnalysisResult, HistoryEntry


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def speed_series(history: Sequence[HistoryEntry]) -> list[int]:
    """Milliseconds between consecutive snapshots; out-of-order pairs count as 0."""
    return [max(0, cur.time - prev.time) for prev, cur in zip(history, history[1:])]


def run_analysis(history: Sequence[HistoryEntry]) -> AnalysisResult | None:
    """
    Recompute the full analysis from history.

    An empty history has nothing to analyze and yields None.
    """
    if not history:
        return None

    total = len(history)
    duration_ms = history[-1].time - history[0].time if total >= 2 else 0
    deltas = speed_series(history)
    deletions = sum(1 for prev, cur in zip(history, history[1:]) if len(cur.value) < len(prev.value))

    avg_speed = _round_half_up(sum(deltas) / len(deltas)) if deltas else 0
    bursts = sum(1 for d in deltas if d < BURST_THRESHOLD_MS)
    pauses = sum(1 for d in deltas if d > PAUSE_THRESHOLD_MS)

    return AnalysisResult(
        duration_ms=max(0, duration_ms),
        avg_speed=avg_speed,
        bursts=bursts,
        pauses=pauses,
        deletions=deletions,
        flow_index=_clamp_percent(100 - avg_speed / 10),
        stress_index=_clamp_percent(deletions / total * 100),
        energy_index=_clamp_percent(bursts / total * 100),
    )
