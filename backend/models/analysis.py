from dataclasses import dataclass


@dataclass
class AnalysisResult:
    duration_ms: int           # last timestamp - first timestamp
    avg_speed: int             # mean ms between snapshots
    bursts: int                # steps faster than BURST_THRESHOLD_MS
    pauses: int                # steps slower than PAUSE_THRESHOLD_MS
    deletions: int             # steps where the text got shorter
    flow_index: float          # 0–100
    stress_index: float        # 0–100
    energy_index: float        # 0–100


BURST_THRESHOLD_MS = 120       # deltas below this count as bursts
PAUSE_THRESHOLD_MS = 600       # deltas above this count as pauses
