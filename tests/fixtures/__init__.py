"""Shared testing fixtures for the mitra_quiz test suite."""

from .model import (  # noqa: F401
    GEOGRAPHY_QUESTIONS,
    FakeModelClient,
    ManualHandle,
    ManualScheduler,
    fenced,
    questions_payload,
)
from .sources import BlockingSource, StaticSource, make_questions  # noqa: F401

__all__ = [
    "BlockingSource",
    "FakeModelClient",
    "GEOGRAPHY_QUESTIONS",
    "ManualHandle",
    "ManualScheduler",
    "StaticSource",
    "fenced",
    "make_questions",
    "questions_payload",
]
