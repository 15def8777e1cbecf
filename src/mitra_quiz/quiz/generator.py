"""Question source backed by a generative model.

:class:`QuestionSource` owns prompt construction and the call to the model
client; parsing is delegated to :mod:`mitra_quiz.quiz.parser`. Every failure
mode is reported as a single :class:`GenerationError`, so callers have one
exception to catch before falling back to bundled questions.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, List, Optional

from ..core.ai import GenerationSettings, QuestionClient, load_client
from .models import OPTION_COUNT, QuizQuestion
from .parser import ParseError, try_parse_response

__all__ = [
    "GenerationError",
    "GenerationFailure",
    "QuestionSource",
    "build_prompt",
    "generate_quiz_questions",
]

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], QuestionClient]


class GenerationFailure(enum.Enum):
    EMPTY_RESPONSE = "model returned an empty response"
    TRANSPORT = "model service request failed"
    INVALID_RESPONSE = "model response was not a valid question set"


class GenerationError(RuntimeError):
    """Raised when no valid question batch could be produced."""

    def __init__(
        self,
        reason: GenerationFailure,
        detail: str = "",
        *,
        parse_error: Optional[ParseError] = None,
    ) -> None:
        message = f"Failed to generate quiz questions: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.reason = reason
        self.detail = detail
        self.parse_error = parse_error


def build_prompt(
    topic: str, count: int, instructions: Optional[str] = None
) -> str:
    """Build the instruction asking the model for ``count`` questions."""

    guidance = ""
    if instructions and instructions.strip():
        guidance = (
            "\nAdditional guidance from the quiz taker:\n"
            f"{instructions.strip()}\n"
        )
    return (
        f"Generate {count} multiple choice questions about {topic}.\n"
        "Return ONLY a valid JSON object with this exact structure:\n"
        "{\n"
        '  "questions": [\n'
        "    {\n"
        '      "id": 1,\n'
        '      "question": "What is...",\n'
        '      "options": ["option1", "option2", "option3", "option4"],\n'
        '      "correctAnswer": "option2"\n'
        "    }\n"
        "  ]\n"
        "}\n"
        "Requirements:\n"
        "- The correctAnswer MUST exactly match one of the options\n"
        f"- Each question MUST have exactly {OPTION_COUNT} distinct options\n"
        f"- Return exactly {count} questions\n"
        "- Return ONLY the JSON, no other text or explanations\n"
        "- Ensure the JSON is properly formatted and valid\n"
        f"{guidance}"
    )


class QuestionSource:
    """Produce validated question batches from a model client.

    ``client`` may be injected directly; otherwise ``client_factory`` (by
    default :func:`load_client`) is called on first use. A factory failure,
    such as a missing API key, is reported as a transport error.
    """

    def __init__(
        self,
        client: Optional[QuestionClient] = None,
        *,
        settings: Optional[GenerationSettings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._client = client
        self._client_factory = client_factory or load_client
        self.settings = settings or GenerationSettings()

    def _resolve_client(self) -> QuestionClient:
        if self._client is None:
            try:
                self._client = self._client_factory()
            except Exception as exc:
                raise GenerationError(
                    GenerationFailure.TRANSPORT, str(exc)
                ) from exc
        return self._client

    def fetch_questions(
        self,
        topic: str,
        count: int,
        instructions: Optional[str] = None,
    ) -> List[QuizQuestion]:
        """Return ``count`` (or fewer) validated questions about ``topic``."""

        try:
            return self._fetch(topic, count, instructions)
        except GenerationError as exc:
            logger.error(
                "Question generation failed",
                extra={
                    "topic": topic,
                    "count": count,
                    "reason": exc.reason.name,
                    "detail": exc.detail,
                },
            )
            raise

    def _fetch(
        self, topic: str, count: int, instructions: Optional[str]
    ) -> List[QuizQuestion]:
        client = self._resolve_client()
        prompt = build_prompt(topic, count, instructions)
        try:
            text = client.generate(prompt, self.settings)
        except Exception as exc:
            raise GenerationError(
                GenerationFailure.TRANSPORT, str(exc) or type(exc).__name__
            ) from exc

        if not text or not text.strip():
            raise GenerationError(GenerationFailure.EMPTY_RESPONSE)
        logger.debug("Raw model response", extra={"raw_response": text})

        outcome = try_parse_response(text)
        if not outcome.ok:
            logger.debug(
                "Unparseable model response", extra={"raw_response": text}
            )
            raise GenerationError(
                GenerationFailure.INVALID_RESPONSE,
                str(outcome.error),
                parse_error=outcome.error,
            )
        questions = outcome.questions or []
        if not questions:
            raise GenerationError(
                GenerationFailure.INVALID_RESPONSE, "no questions returned"
            )
        if len(questions) != count:
            logger.warning(
                "Model returned a different number of questions",
                extra={"requested": count, "received": len(questions)},
            )
        return questions[:count]


async def generate_quiz_questions(
    topic: str,
    num_questions: int,
    *,
    source: Optional[QuestionSource] = None,
    instructions: Optional[str] = None,
) -> List[QuizQuestion]:
    """Awaitable wrapper running :meth:`QuestionSource.fetch_questions`.

    The blocking SDK call runs in a worker thread so an event loop (the
    Textual UI) stays responsive. Raises :class:`GenerationError`.
    """

    resolved = source or QuestionSource()
    return await asyncio.to_thread(
        resolved.fetch_questions, topic, num_questions, instructions
    )
