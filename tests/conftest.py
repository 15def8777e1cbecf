from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from fixtures import (  # noqa: E402
    FakeModelClient,
    ManualScheduler,
    StaticSource,
)

from mitra_quiz.quiz.generator import (  # noqa: E402
    GenerationError,
    GenerationFailure,
    QuestionSource,
)


@pytest.fixture
def fake_client() -> FakeModelClient:
    """Model client double; queue responses before fetching."""

    return FakeModelClient()


@pytest.fixture
def source(fake_client: FakeModelClient) -> QuestionSource:
    return QuestionSource(fake_client)


@pytest.fixture
def failing_source() -> StaticSource:
    return StaticSource(
        error=GenerationError(GenerationFailure.TRANSPORT, "offline")
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path) -> None:
    """Keep tests away from real credentials, config and log dirs."""

    for name in ("GOOGLE_API_KEY", "OPENAI_API_KEY", "MITRA_QUIZ_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MITRA_QUIZ_HOME", str(tmp_path / "home"))
