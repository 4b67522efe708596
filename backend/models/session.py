from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .annotation import Annotation
from .history import HistoryEntry


class ReplayStatus(str, Enum):
    IDLE = "idle"
    REPLAYING = "replaying"


class DocumentMode(str, Enum):
    MANUSCRIPT = "manuscript"
    ESSAY = "essay"
    JOURNAL = "journal"
    POEM = "poem"


@dataclass
class WritingSession:
    id: str                                # url-safe token
    mode: DocumentMode = DocumentMode.MANUSCRIPT
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    text: str = ""
    history: list[HistoryEntry] = field(default_factory=list)
    user_annotations: dict[str, Annotation] = field(default_factory=dict)  # keyed by phrase_key
    auto_annotations: list[Annotation] = field(default_factory=list)
    auto_annotate: bool = True
    use_remote_extraction: bool = False
    replay_status: ReplayStatus = ReplayStatus.IDLE
    replay_cursor: int = 0
