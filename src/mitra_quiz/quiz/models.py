"""Data records shared by the question pipeline and the quiz session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.config import (
    MAX_DURATION,
    MAX_QUESTIONS,
    MIN_DURATION,
    MIN_QUESTIONS,
)

OPTION_COUNT = 4


@dataclass(frozen=True)
class QuizQuestion:
    """A single four-option multiple-choice question.

    ``id`` is the 1-based position inside its batch. Instances are only built
    by the parser or the fallback loader, both of which validate first.
    """

    id: int
    question: str
    options: tuple[str, ...]
    correct_answer: str

    def is_correct(self, answer: str) -> bool:
        return answer == self.correct_answer

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }


@dataclass(frozen=True)
class QuizConfig:
    """User choices captured by the setup form."""

    topic: str
    num_questions: int = 5
    duration: int = 5
    instructions: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.topic, str) or not self.topic.strip():
            raise ValueError("topic must be a non-empty string")
        for name in ("num_questions", "duration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
        if not (MIN_QUESTIONS <= self.num_questions <= MAX_QUESTIONS):
            raise ValueError(
                f"num_questions must be between {MIN_QUESTIONS} "
                f"and {MAX_QUESTIONS}"
            )
        if not (MIN_DURATION <= self.duration <= MAX_DURATION):
            raise ValueError(
                f"duration must be between {MIN_DURATION} and "
                f"{MAX_DURATION} minutes"
            )

    @property
    def duration_seconds(self) -> int:
        return self.duration * 60


@dataclass(frozen=True)
class QuestionOutcome:
    """How one question was answered once the quiz is over."""

    question: QuizQuestion
    selected: str

    @property
    def answered(self) -> bool:
        return bool(self.selected)

    @property
    def is_correct(self) -> bool:
        return self.question.is_correct(self.selected)


@dataclass(frozen=True)
class QuizResult:
    """Scored summary of a finished session."""

    topic: str
    score: int
    outcomes: list[QuestionOutcome] = field(default_factory=list)
    timed_out: bool = False

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def answered(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.answered)

    @property
    def accuracy(self) -> float:
        if not self.outcomes:
            return 0.0
        return self.score / self.total
