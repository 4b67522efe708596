from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models import (
    AnalysisResult,
    Annotation,
    AnnotationSource,
    DocumentMode,
    HistoryEntry,
    ReplayStatus,
    Span,
)


class AnnotationOut(BaseModel):
    phrase: str
    phrase_key: str
    color: str
    source: AnnotationSource
    score: float | None = None

    @classmethod
    def from_annotation(cls, annotation: Annotation) -> "AnnotationOut":
        return cls(
            phrase=annotation.phrase,
            phrase_key=annotation.phrase_key,
            color=annotation.color,
            source=annotation.source,
            score=annotation.score,
        )


class HistoryEntryOut(BaseModel):
    value: str
    time: int

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistoryEntryOut":
        return cls(value=entry.value, time=entry.time)


class SessionCreateRequest(BaseModel):
    mode: DocumentMode = DocumentMode.MANUSCRIPT


class SessionCreateResponse(BaseModel):
    session_id: str
    mode: DocumentMode
    events_url: str


class SessionReadResponse(BaseModel):
    session_id: str
    mode: DocumentMode
    created_at: datetime
    text: str
    history_length: int
    replay_status: ReplayStatus
    replay_cursor: int
    auto_annotate: bool
    use_remote_extraction: bool
    user_annotations: list[AnnotationOut]
    auto_annotations: list[AnnotationOut]


class EditRequest(BaseModel):
    value: str


class MarkPhraseRequest(BaseModel):
    phrase: str = Field(..., min_length=1)
    color: str | None = None


class AutoAnnotateRequest(BaseModel):
    enabled: bool
    use_remote: bool | None = None


class SpanOut(BaseModel):
    start: int
    end: int
    text: str
    source: AnnotationSource | None = None
    phrase: str | None = None
    color: str | None = None
    score: float | None = None

    @classmethod
    def from_span(cls, span: Span) -> "SpanOut":
        annotation = span.annotation
        if annotation is None:
            return cls(start=span.start, end=span.end, text=span.text)
        return cls(
            start=span.start,
            end=span.end,
            text=span.text,
            source=annotation.source,
            phrase=annotation.phrase,
            color=annotation.color,
            score=annotation.score,
        )


class RenderResponse(BaseModel):
    spans: list[SpanOut]
    live: AnnotationOut | None = None


class AnalysisOut(BaseModel):
    duration_ms: int
    avg_speed: int
    bursts: int
    pauses: int
    deletions: int
    flow_index: float
    stress_index: float
    energy_index: float

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisOut":
        return cls(**vars(result))


class AnalysisResponse(BaseModel):
    analysis: AnalysisOut | None = None
    speeds: list[int] = Field(default_factory=list)


class ReplayResponse(BaseModel):
    started: bool = False
    stopped: bool = False
    replay_status: ReplayStatus
    steps: int = 0


class TranslateRequest(BaseModel):
    q: str
    source: str = "auto"
    target: str = "es"


class TranslateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    translated_text: str = Field(alias="translatedText")
    provider: str
