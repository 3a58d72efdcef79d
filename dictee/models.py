"""Data models for dictation documents and playback results."""

import math
from dataclasses import dataclass, field
from datetime import datetime

from dictee.constants import DEFAULT_TITLE, DEFAULT_LANGUAGE
from dictee.errors import InvalidDocument


@dataclass
class DictationDocument:
    title: str = DEFAULT_TITLE
    language: str = DEFAULT_LANGUAGE
    sentences: list[str] = field(default_factory=list)
    id: str | int | None = None               # owned by the document store
    created_at: datetime | None = None        # stamped by the document store
    updated_at: datetime | None = None

    def validation_errors(self) -> dict[str, str]:
        """Return field -> message for every rule the document breaks."""
        errors = {}
        if not self.title or not self.title.strip():
            errors["title"] = "A title is required"
        if not any(s and s.strip() for s in self.sentences):
            errors["sentences"] = "At least one sentence is required"
        return errors

    @property
    def is_playable(self) -> bool:
        return not self.validation_errors()


def validate_document(doc: DictationDocument) -> None:
    """Raise InvalidDocument unless doc has a title and a non-blank sentence."""
    errors = doc.validation_errors()
    if errors:
        raise InvalidDocument(errors)


@dataclass(frozen=True)
class PlaybackResult:
    sentence: str      # reference text
    answer: str        # what the user submitted
    is_correct: bool


@dataclass(frozen=True)
class Score:
    correct: int = 0
    total: int = 0

    @property
    def percentage(self) -> int:
        """Rounded success rate, halves rounded up; 0 before any answer."""
        if self.total <= 0:
            return 0
        return math.floor(100 * self.correct / self.total + 0.5)

    def record(self, is_correct: bool) -> "Score":
        return Score(correct=self.correct + (1 if is_correct else 0), total=self.total + 1)


@dataclass
class Transcript:
    title: str
    language: str
    results: list[PlaybackResult | None]
    score: Score
    finished: bool

    @property
    def percentage(self) -> int:
        return self.score.percentage

    def to_dict(self) -> dict:
        """JSON-ready view of the transcript."""
        return {
            "title": self.title,
            "language": self.language,
            "finished": self.finished,
            "score": {
                "correct": self.score.correct,
                "total": self.score.total,
                "percentage": self.percentage,
            },
            "results": [
                None if r is None else {
                    "sentence": r.sentence,
                    "answer": r.answer,
                    "is_correct": r.is_correct,
                }
                for r in self.results
            ],
        }
