"""Quiz session state machine.

A session moves ``SETUP -> ACTIVE -> RESULTS`` and back to ``SETUP`` via
:meth:`QuizSession.restart` (from any phase; from ACTIVE it is the abandon
path). All mutation happens through the methods below, each running to
completion on the caller's thread; the only suspension point is the
generation call inside :meth:`QuizSession.submit_config`.

Calling an operation in the wrong phase raises :class:`SessionError`. Those
are programming errors: the view disables the matching controls instead of
handling them.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence

from .fallback import FALLBACK_MESSAGE, fallback_questions
from .generator import GenerationError
from .models import QuestionOutcome, QuizConfig, QuizQuestion, QuizResult
from .timer import Countdown

__all__ = [
    "Phase",
    "QuizSession",
    "SessionError",
    "SessionState",
]

logger = logging.getLogger(__name__)

Listener = Callable[["SessionState"], None]
FallbackProvider = Callable[[int], List[QuizQuestion]]


class SupportsFetch(Protocol):
    def fetch_questions(
        self, topic: str, count: int, instructions: Optional[str] = None
    ) -> List[QuizQuestion]:
        ...


class Phase(enum.Enum):
    SETUP = "setup"
    ACTIVE = "active"
    RESULTS = "results"


class SessionError(RuntimeError):
    """Raised when an operation is not legal in the current phase."""


@dataclass
class SessionState:
    """Mutable session state; read it, mutate it only through QuizSession."""

    phase: Phase = Phase.SETUP
    config: Optional[QuizConfig] = None
    questions: List[QuizQuestion] = field(default_factory=list)
    current_index: int = 0
    selected_answers: List[str] = field(default_factory=list)
    score: int = 0
    seconds_remaining: int = 0
    timer_running: bool = False
    last_error: Optional[str] = None
    loading: bool = False
    timed_out: bool = False

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def current_answer(self) -> str:
        if not self.selected_answers:
            return ""
        return self.selected_answers[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index >= self.total_questions - 1

    @property
    def can_go_next(self) -> bool:
        """Next/Finish needs an answer for the current question."""
        return self.phase is Phase.ACTIVE and bool(self.current_answer)

    @property
    def can_go_previous(self) -> bool:
        return self.phase is Phase.ACTIVE and self.current_index > 0

    @property
    def answered_count(self) -> int:
        return sum(1 for answer in self.selected_answers if answer)

    @property
    def progress(self) -> float:
        if not self.questions:
            return 0.0
        return (self.current_index + 1) / self.total_questions


class QuizSession:
    """Drive one quiz from configuration through results.

    ``source`` produces questions (normally a
    :class:`~mitra_quiz.quiz.generator.QuestionSource`). ``countdown`` is the
    timer coupled to the ACTIVE phase; pass one without a scheduler in tests
    and call ``countdown.tick()`` to simulate time.
    """

    def __init__(
        self,
        source: SupportsFetch,
        *,
        countdown: Optional[Countdown] = None,
        fallback: FallbackProvider = fallback_questions,
    ) -> None:
        self._source = source
        self._fallback = fallback
        self._countdown = countdown or Countdown()
        self._countdown.on_tick = self._on_tick
        self._countdown.on_expire = self._on_expire
        self._listeners: List[Listener] = []
        self._epoch = 0
        self._state = SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def countdown(self) -> Countdown:
        return self._countdown

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after each change; returns an unsubscribe."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- transitions -----------------------------------------------------

    def start_setup(self) -> None:
        """Reset everything and return to SETUP. Legal from any phase."""

        previous = self._state.phase
        self._countdown.reset()
        # Invalidates any generation still in flight for the old session.
        self._epoch += 1
        self._state = SessionState()
        logger.info("Session reset", extra={"from_phase": previous.value})
        self._notify()

    def restart(self) -> None:
        """Abandon (from ACTIVE) or start over (from RESULTS)."""

        self.start_setup()

    async def submit_config(self, config: QuizConfig) -> bool:
        """Fetch questions for ``config`` and enter ACTIVE.

        A :class:`GenerationError` never escapes: the bundled sample
        questions are used instead and ``last_error`` carries a short notice.
        Returns False when the session was reset while the request was in
        flight, in which case the late result is discarded.
        """

        self._require(Phase.SETUP, "submit_config")
        if self._state.loading:
            raise SessionError("Questions are already being generated.")

        epoch = self._epoch
        self._state.last_error = None
        self._state.loading = True
        self._notify()

        error: Optional[str] = None
        try:
            questions = await asyncio.to_thread(
                self._source.fetch_questions,
                config.topic,
                config.num_questions,
                config.instructions,
            )
        except GenerationError as exc:
            logger.warning(
                "Falling back to sample questions",
                extra={"reason": exc.reason.name, "detail": exc.detail},
            )
            questions = self._fallback(config.num_questions)
            error = FALLBACK_MESSAGE
        finally:
            if epoch == self._epoch:
                self._state.loading = False

        if epoch != self._epoch:
            logger.info("Discarding questions for an abandoned session")
            return False
        self._activate(config, questions, error)
        return True

    def _activate(
        self,
        config: QuizConfig,
        questions: Sequence[QuizQuestion],
        error: Optional[str],
    ) -> None:
        state = self._state
        state.config = config
        state.questions = list(questions)
        state.selected_answers = [""] * len(state.questions)
        state.current_index = 0
        state.score = 0
        state.timed_out = False
        state.last_error = error
        state.seconds_remaining = config.duration_seconds
        state.phase = Phase.ACTIVE
        self._countdown.start(state.seconds_remaining)
        state.timer_running = self._countdown.running
        logger.info(
            "Quiz started",
            extra={
                "topic": config.topic,
                "questions": len(state.questions),
                "seconds": state.seconds_remaining,
                "fallback": error is not None,
            },
        )
        self._notify()

    def select_answer(self, option: str) -> bool:
        """Record ``option`` for the current question.

        Returns False (and changes nothing) when ``option`` is not one of
        the current question's options.
        """

        self._require(Phase.ACTIVE, "select_answer")
        question = self._state.current_question
        if question is None or option not in question.options:
            return False
        if self._state.selected_answers[self._state.current_index] != option:
            self._state.selected_answers[self._state.current_index] = option
            self._notify()
        return True

    def go_next(self) -> None:
        """Advance, or finish when on the last question."""

        self._require(Phase.ACTIVE, "go_next")
        if not self._state.can_go_next:
            raise SessionError("Select an answer before moving on.")
        if self._state.is_last_question:
            self.finish()
            return
        self._state.current_index += 1
        self._notify()

    def go_previous(self) -> None:
        self._require(Phase.ACTIVE, "go_previous")
        if self._state.current_index > 0:
            self._state.current_index -= 1
            self._notify()

    def finish(self, *, timed_out: bool = False) -> QuizResult:
        """Stop the timer, score the answers and enter RESULTS."""

        self._require(Phase.ACTIVE, "finish")
        self._countdown.stop()
        state = self._state
        state.score = sum(
            1
            for question, answer in zip(
                state.questions, state.selected_answers
            )
            if question.is_correct(answer)
        )
        state.timer_running = False
        state.timed_out = timed_out
        state.phase = Phase.RESULTS
        logger.info(
            "Quiz finished",
            extra={
                "score": state.score,
                "total": state.total_questions,
                "timed_out": timed_out,
            },
        )
        self._notify()
        return self.result()

    def result(self) -> QuizResult:
        self._require(Phase.RESULTS, "result")
        state = self._state
        return QuizResult(
            topic=state.config.topic if state.config else "",
            score=state.score,
            outcomes=[
                QuestionOutcome(question=question, selected=answer)
                for question, answer in zip(
                    state.questions, state.selected_answers
                )
            ],
            timed_out=state.timed_out,
        )

    # -- timer callbacks ---------------------------------------------------

    def _on_tick(self, remaining: int) -> None:
        if self._state.phase is not Phase.ACTIVE:
            return
        self._state.seconds_remaining = max(0, remaining)
        self._notify()

    def _on_expire(self) -> None:
        if self._state.phase is Phase.ACTIVE:
            logger.info("Time is up")
            self.finish(timed_out=True)

    # -- helpers -----------------------------------------------------------

    def _require(self, phase: Phase, operation: str) -> None:
        if self._state.phase is not phase:
            raise SessionError(
                f"{operation}() is not allowed in phase "
                f"'{self._state.phase.value}'."
            )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)
