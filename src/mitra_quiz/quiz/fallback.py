"""Bundled sample questions used when generation fails."""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from typing import List

from .models import QuizQuestion
from .parser import parse_response

FALLBACK_MESSAGE = (
    "Failed to generate questions. Using sample questions instead."
)


@lru_cache(maxsize=1)
def _bundled_questions() -> tuple[QuizQuestion, ...]:
    text = (
        resources.files("mitra_quiz")
        .joinpath("data", "sample_questions.json")
        .read_text(encoding="utf-8")
    )
    # Same validation path as model output, so a bad edit fails loudly.
    return tuple(parse_response(text))


def available_fallback_count() -> int:
    return len(_bundled_questions())


def fallback_questions(count: int) -> List[QuizQuestion]:
    """Return the first ``count`` sample questions (fewer if not enough)."""

    if count <= 0:
        return []
    return list(_bundled_questions()[:count])
