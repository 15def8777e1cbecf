"""Timed multiple-choice quizzes generated by a language model."""

from .quiz import (
    GenerationError,
    ParseError,
    QuestionSource,
    QuizApp,
    QuizConfig,
    QuizQuestion,
    QuizSession,
    generate_quiz_questions,
    parse_response,
)

__all__ = [
    "GenerationError",
    "ParseError",
    "QuestionSource",
    "QuizApp",
    "QuizConfig",
    "QuizQuestion",
    "QuizSession",
    "generate_quiz_questions",
    "parse_response",
]
