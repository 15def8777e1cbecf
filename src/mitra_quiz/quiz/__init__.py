from .models import QuizConfig, QuizQuestion, QuizResult, QuestionOutcome
from .parser import (
    ParseError,
    ParseFailure,
    ParseOutcome,
    parse_response,
    try_parse_response,
    validate_question,
)
from .generator import (
    GenerationError,
    GenerationFailure,
    QuestionSource,
    build_prompt,
    generate_quiz_questions,
)
from .fallback import FALLBACK_MESSAGE, fallback_questions
from .timer import Countdown
from .session import Phase, QuizSession, SessionError, SessionState
from .report import format_time, render_results
from .view import QuizApp

__all__ = [
    "QuizConfig",
    "QuizQuestion",
    "QuizResult",
    "QuestionOutcome",
    "ParseError",
    "ParseFailure",
    "ParseOutcome",
    "parse_response",
    "try_parse_response",
    "validate_question",
    "GenerationError",
    "GenerationFailure",
    "QuestionSource",
    "build_prompt",
    "generate_quiz_questions",
    "FALLBACK_MESSAGE",
    "fallback_questions",
    "Countdown",
    "Phase",
    "QuizSession",
    "SessionError",
    "SessionState",
    "format_time",
    "render_results",
    "QuizApp",
]
