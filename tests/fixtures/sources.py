"""Question sources for driving a QuizSession without a model."""

from __future__ import annotations

import threading
from typing import List, Optional

from mitra_quiz.quiz.models import QuizQuestion


class StaticSource:
    """Question source returning a fixed batch, or failing on demand."""

    def __init__(
        self,
        questions: Optional[List[QuizQuestion]] = None,
        *,
        error: Optional[Exception] = None,
    ) -> None:
        self.questions = questions or []
        self.error = error
        self.calls: list[tuple[str, int, Optional[str]]] = []

    def fetch_questions(self, topic, count, instructions=None):
        self.calls.append((topic, count, instructions))
        if self.error is not None:
            raise self.error
        return list(self.questions[:count])


class BlockingSource(StaticSource):
    """Static source whose fetch waits until ``release`` is set."""

    def __init__(self, questions=None, *, error=None) -> None:
        super().__init__(questions, error=error)
        self.started = threading.Event()
        self.release = threading.Event()

    def fetch_questions(self, topic, count, instructions=None):
        self.started.set()
        self.release.wait(timeout=5)
        return super().fetch_questions(topic, count, instructions)


def make_questions(count: int) -> List[QuizQuestion]:
    return [
        QuizQuestion(
            id=index,
            question=f"Question {index}?",
            options=(f"A{index}", f"B{index}", f"C{index}", f"D{index}"),
            correct_answer=f"B{index}",
        )
        for index in range(1, count + 1)
    ]
