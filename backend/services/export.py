"""JSON and CSV dumps of a session timeline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from models import HistoryEntry, WritingSession
from services.metrics import run_analysis


def export_json(session: WritingSession) -> dict[str, Any]:
    """{"history": [{"value", "time"}, ...], "analysis": {...} | None}"""
    analysis = run_analysis(session.history)
    return {
        "history": [{"value": e.value, "time": e.time} for e in session.history],
        "analysis": asdict(analysis) if analysis is not None else None,
    }


def _csv_value(value: str) -> str:
    escaped = value.replace('"', '""').replace("\r\n", "\\n").replace("\n", "\\n")
    return f'"{escaped}"'


def export_csv(history: Sequence[HistoryEntry]) -> str:
    """
    ``time,value`` rows. Quotes in values are doubled and newlines become the
    two characters ``\\n`` so every snapshot stays on one line.
    """
    if not history:
        return ""
    rows = ["time,value"]
    rows.extend(f"{entry.time},{_csv_value(entry.value)}" for entry in history)
    return "\n".join(rows)
