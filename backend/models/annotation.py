from dataclasses import dataclass
from enum import Enum


class AnnotationSource(str, Enum):
    USER = "user"
    LIVE = "live"
    AUTO = "auto"

    @property
    def precedence(self) -> int:
        return SOURCE_PRECEDENCE[self]


SOURCE_PRECEDENCE = {
    AnnotationSource.USER: 3,
    AnnotationSource.LIVE: 2,
    AnnotationSource.AUTO: 1,
}


@dataclass(frozen=True)
class Rgba:
    red: int
    green: int
    blue: int
    alpha: float               # 0.0 is fully transparent

    @property
    def css(self) -> str:
        return f"rgba({self.red}, {self.green}, {self.blue}, {self.alpha:g})"

    def __str__(self) -> str:
        return self.css


@dataclass(frozen=True)
class Annotation:
    phrase: str                # original case, trimmed
    color: str                 # css rgba(...)
    source: AnnotationSource
    score: float | None = None  # connotation in [-1, 1]

    @property
    def phrase_key(self) -> str:
        return self.phrase.lower()


@dataclass(frozen=True)
class Span:
    start: int
    end: int
    text: str
    annotation: Annotation | None = None

    @property
    def is_whitespace(self) -> bool:
        return self.text.isspace()
