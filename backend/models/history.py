from dataclasses import dataclass


@dataclass(frozen=True)
class HistoryEntry:
    value: str                 # full text snapshot after the edit
    time: int                  # monotonic milliseconds
