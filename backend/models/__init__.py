from .analysis import BURST_THRESHOLD_MS, PAUSE_THRESHOLD_MS, AnalysisResult
from .annotation import SOURCE_PRECEDENCE, Annotation, AnnotationSource, Rgba, Span
from .history import HistoryEntry
from .session import DocumentMode, ReplayStatus, WritingSession

__all__ = [
    "WritingSession",
    "ReplayStatus",
    "DocumentMode",
    "HistoryEntry",
    "Annotation",
    "AnnotationSource",
    "SOURCE_PRECEDENCE",
    "Rgba",
    "Span",
    "AnalysisResult",
    "BURST_THRESHOLD_MS",
    "PAUSE_THRESHOLD_MS",
]
