"""Turn free-form model output into validated quiz questions.

The model is asked for a bare JSON object but frequently wraps it in prose or
Markdown fences, so the first decodable JSON object in the text is used. The
batch is accepted only if every question passes validation.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .models import OPTION_COUNT, QuizQuestion

__all__ = [
    "ParseError",
    "ParseFailure",
    "ParseOutcome",
    "extract_json_object",
    "parse_response",
    "try_parse_response",
    "validate_question",
]

logger = logging.getLogger(__name__)

_DECODER = json.JSONDecoder()


class ParseFailure(enum.Enum):
    NO_JSON_FOUND = "no JSON object found in response"
    MALFORMED_JSON = "response contains malformed JSON"
    MISSING_QUESTIONS_ARRAY = "response has no 'questions' array"
    SCHEMA_VIOLATION = "question failed validation"


class ParseError(RuntimeError):
    """Raised when model output cannot be turned into a question batch."""

    def __init__(self, reason: ParseFailure, detail: str = "") -> None:
        message = reason.value if not detail else f"{reason.value}: {detail}"
        super().__init__(message)
        self.reason = reason
        self.detail = detail


@dataclass(frozen=True)
class ParseOutcome:
    """Either the parsed questions or the error that prevented them."""

    questions: Optional[List[QuizQuestion]] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_json_object(raw_text: str) -> dict[str, Any]:
    """Return the first JSON object embedded in ``raw_text``.

    Each ``{`` is tried as a starting point in order; the first one that
    decodes to an object wins. Text with no ``{`` at all is reported as
    NO_JSON_FOUND, text whose braces never decode as MALFORMED_JSON.
    """

    text = raw_text or ""
    start = text.find("{")
    if start < 0:
        raise ParseError(ParseFailure.NO_JSON_FOUND)
    first_error: Optional[json.JSONDecodeError] = None
    while start >= 0:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError as exc:
            first_error = first_error or exc
        else:
            if isinstance(value, dict):
                return value
        start = text.find("{", start + 1)
    detail = str(first_error) if first_error else ""
    raise ParseError(ParseFailure.MALFORMED_JSON, detail)


def validate_question(item: Any) -> None:
    """Validate one raw question dict from the model.

    Requirements: non-empty ``question`` text, ``options`` a list of exactly
    four distinct non-empty strings, ``correctAnswer`` equal to one of them.
    Raises ValueError describing the first problem found.
    """

    if not isinstance(item, dict):
        raise ValueError("question must be an object")
    text = item.get("question")
    if not isinstance(text, str) or not text.strip():
        raise ValueError("question text is required")
    options = item.get("options")
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        raise ValueError(f"options must be a list of {OPTION_COUNT} entries")
    if not all(isinstance(opt, str) and opt.strip() for opt in options):
        raise ValueError("options must be non-empty strings")
    if len(set(options)) != len(options):
        raise ValueError("options must be distinct")
    answer = item.get("correctAnswer")
    if not isinstance(answer, str) or answer not in options:
        raise ValueError("correctAnswer must match one of the options")


def parse_response(raw_text: str) -> List[QuizQuestion]:
    """Parse model output into questions numbered 1..n.

    Any ``id`` supplied by the model is ignored.
    """

    payload = extract_json_object(raw_text)
    items = payload.get("questions")
    if not isinstance(items, list):
        raise ParseError(ParseFailure.MISSING_QUESTIONS_ARRAY)

    questions: List[QuizQuestion] = []
    for position, item in enumerate(items, start=1):
        try:
            validate_question(item)
        except ValueError as exc:
            raise ParseError(
                ParseFailure.SCHEMA_VIOLATION, f"question {position}: {exc}"
            ) from exc
        questions.append(
            QuizQuestion(
                id=position,
                question=item["question"],
                options=tuple(item["options"]),
                correct_answer=item["correctAnswer"],
            )
        )
    return questions


def try_parse_response(raw_text: str) -> ParseOutcome:
    """Non-raising variant of :func:`parse_response`."""

    try:
        return ParseOutcome(questions=parse_response(raw_text))
    except ParseError as exc:
        logger.warning(
            "Failed to parse model response",
            extra={"reason": exc.reason.name, "detail": exc.detail},
        )
        return ParseOutcome(error=exc)
