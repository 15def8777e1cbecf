"""Textual front end for a :class:`~mitra_quiz.quiz.session.QuizSession`.

The app holds no quiz logic of its own: it renders ``session.state`` after
every change and maps buttons and key bindings onto session operations,
disabling whatever the current state does not allow.
"""

from __future__ import annotations

from typing import Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.timer import Timer
from textual.widgets import (
    Button,
    ContentSwitcher,
    Footer,
    Header,
    Input,
    Label,
    LoadingIndicator,
    ProgressBar,
    Static,
    TextArea,
)

from ..core.config import (
    MAX_DURATION,
    MAX_QUESTIONS,
    MIN_DURATION,
    MIN_QUESTIONS,
    QuizDefaults,
)
from .models import OPTION_COUNT, QuizConfig, QuizResult
from .report import format_time, results_renderable
from .session import Phase, QuizSession, SessionState


def config_from_form(
    topic: str, num_questions: str, duration: str, instructions: str
) -> QuizConfig:
    """Validate raw form values; raises ValueError with a readable message."""

    if not topic.strip():
        raise ValueError("Please enter a quiz topic.")
    try:
        count = int(num_questions)
        minutes = int(duration)
    except ValueError as exc:
        message = "Question count and duration must be numbers."
        raise ValueError(message) from exc
    if not (MIN_QUESTIONS <= count <= MAX_QUESTIONS):
        raise ValueError(
            f"Number of questions must be {MIN_QUESTIONS}-{MAX_QUESTIONS}."
        )
    if not (MIN_DURATION <= minutes <= MAX_DURATION):
        raise ValueError(
            f"Duration must be {MIN_DURATION}-{MAX_DURATION} minutes."
        )
    return QuizConfig(
        topic=topic.strip(),
        num_questions=count,
        duration=minutes,
        instructions=instructions.strip() or None,
    )


def option_label(index: int, option: str) -> str:
    return f"{index + 1}. {option}"


class QuizApp(App):
    TITLE = "Mitra's Quiz"
    AUTO_FOCUS = "#topic"
    CSS = """
#setup, #results { width: 80; margin: 1 2; }
#setup Input, #setup TextArea { margin-bottom: 1; }
#instructions { height: 6; }
#setup-error, #notice { color: $warning; }
#loading { height: 3; display: none; }
#status { height: 1; margin-bottom: 1; }
#clock { width: 1fr; }
#position { width: auto; }
#question { text-style: bold; margin: 1 0; }
#options Button { width: 100%; margin-bottom: 1; }
#options Button.selected { background: $accent; color: $text; }
#nav { height: auto; }
#nav Button { margin-right: 2; }
"""
    BINDINGS = [
        ("1", "select_option(0)", "Option 1"),
        ("2", "select_option(1)", "Option 2"),
        ("3", "select_option(2)", "Option 3"),
        ("4", "select_option(3)", "Option 4"),
        ("n", "next", "Next"),
        ("p", "prev", "Previous"),
        ("escape", "home", "Home"),
    ]

    def __init__(
        self,
        session: QuizSession,
        *,
        defaults: Optional[QuizDefaults] = None,
    ) -> None:
        super().__init__()
        self.session = session
        self.defaults = defaults or QuizDefaults(
            topic="", num_questions=5, duration=5
        )
        self.last_result: Optional[QuizResult] = None
        self._shown_phase: Optional[Phase] = None
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield Header()
        with ContentSwitcher(initial=Phase.SETUP.value, id="phases"):
            with VerticalScroll(id=Phase.SETUP.value):
                yield Label("Quiz Topic")
                yield Input(
                    value=self.defaults.topic,
                    placeholder="e.g., World Geography, Science, History",
                    id="topic",
                )
                yield Label(
                    f"Number of Questions ({MIN_QUESTIONS}-{MAX_QUESTIONS})"
                )
                yield Input(
                    value=str(self.defaults.num_questions),
                    type="integer",
                    id="num-questions",
                )
                yield Label(
                    f"Duration in minutes ({MIN_DURATION}-{MAX_DURATION})"
                )
                yield Input(
                    value=str(self.defaults.duration),
                    type="integer",
                    id="duration",
                )
                yield Label("Custom Instructions (Optional)")
                yield TextArea(id="instructions")
                yield Static("", id="setup-error")
                yield Button("Start Quiz", id="start", variant="primary")
                yield LoadingIndicator(id="loading")
            with Vertical(id=Phase.ACTIVE.value):
                yield ProgressBar(
                    total=1,
                    show_eta=False,
                    show_percentage=False,
                    id="progress",
                )
                with Horizontal(id="status"):
                    yield Static("", id="clock")
                    yield Static("", id="position")
                yield Static("", id="notice")
                yield Static("", id="question")
                with Vertical(id="options"):
                    for index in range(OPTION_COUNT):
                        yield Button("", id=f"option-{index}")
                with Horizontal(id="nav"):
                    yield Button("Previous", id="prev")
                    yield Button("Next", id="next", variant="primary")
                    yield Button("Home", id="home")
            with VerticalScroll(id=Phase.RESULTS.value):
                yield Static("", id="results-body")
                yield Button(
                    "Create New Quiz", id="new-quiz", variant="primary"
                )
        yield Footer()

    def on_mount(self) -> None:
        self.session.countdown.bind_scheduler(self._schedule)
        self._unsubscribe = self.session.subscribe(self._render_state)
        self._render_state(self.session.state)

    def on_unmount(self) -> None:
        self.session.countdown.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()

    def _schedule(self, interval: float, callback) -> Timer:
        return self.set_interval(interval, callback)

    # -- rendering ---------------------------------------------------------

    def _render_state(self, state: SessionState) -> None:
        entered = state.phase is not self._shown_phase
        self._shown_phase = state.phase
        self.query_one("#phases", ContentSwitcher).current = state.phase.value
        if state.phase is Phase.SETUP:
            self._render_setup(state)
        elif state.phase is Phase.ACTIVE:
            self._render_active(state)
            if entered and state.last_error:
                self.notify(state.last_error, severity="warning")
        else:
            self._render_results(entered)
        if entered:
            self._focus_phase(state.phase)

    def _focus_phase(self, phase: Phase) -> None:
        # Focus left on a hidden widget would swallow the phase's keys.
        target = {
            Phase.SETUP: "#topic",
            Phase.ACTIVE: "#option-0",
            Phase.RESULTS: "#new-quiz",
        }[phase]
        self.query_one(target).focus()

    def _render_setup(self, state: SessionState) -> None:
        self.query_one("#start", Button).disabled = state.loading
        self.query_one("#loading", LoadingIndicator).display = state.loading

    def _render_active(self, state: SessionState) -> None:
        question = state.current_question
        if question is None:
            return
        self.query_one("#progress", ProgressBar).update(
            total=state.total_questions, progress=state.current_index + 1
        )
        self.query_one("#clock", Static).update(
            f"⏱ {format_time(state.seconds_remaining)}"
        )
        self.query_one("#position", Static).update(
            f"Question {state.current_index + 1} of {state.total_questions}"
        )
        self.query_one("#notice", Static).update(state.last_error or "")
        self.query_one("#question", Static).update(question.question)
        for index, option in enumerate(question.options):
            button = self.query_one(f"#option-{index}", Button)
            button.label = option_label(index, option)
            button.set_class(option == state.current_answer, "selected")
        self.query_one("#prev", Button).disabled = not state.can_go_previous
        next_button = self.query_one("#next", Button)
        next_button.label = "Finish" if state.is_last_question else "Next"
        next_button.disabled = not state.can_go_next

    def _render_results(self, entered: bool) -> None:
        if not entered:
            return
        self.last_result = self.session.result()
        self.query_one("#results-body", Static).update(
            results_renderable(self.last_result)
        )

    # -- input -------------------------------------------------------------

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id == "start":
            self._submit_form()
        elif button_id.startswith("option-"):
            self.action_select_option(int(button_id.rsplit("-", 1)[-1]))
        elif button_id == "next":
            self.action_next()
        elif button_id == "prev":
            self.action_prev()
        elif button_id in ("home", "new-quiz"):
            self.action_home()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id in ("topic", "num-questions", "duration"):
            self._submit_form()

    def _submit_form(self) -> None:
        state = self.session.state
        if state.phase is not Phase.SETUP or state.loading:
            return
        error = self.query_one("#setup-error", Static)
        try:
            config = config_from_form(
                self.query_one("#topic", Input).value,
                self.query_one("#num-questions", Input).value,
                self.query_one("#duration", Input).value,
                self.query_one("#instructions", TextArea).text,
            )
        except ValueError as exc:
            error.update(str(exc))
            return
        error.update("")
        self.run_worker(
            self.session.submit_config(config),
            exclusive=True,
            group="generation",
        )

    def check_action(
        self, action: str, parameters: tuple[object, ...]
    ) -> Optional[bool]:
        if action in ("select_option", "next", "prev"):
            return self.session.state.phase is Phase.ACTIVE
        if action == "home":
            return self.session.state.phase is not Phase.SETUP
        return True

    def action_select_option(self, index: int) -> None:
        question = self.session.state.current_question
        if self.session.state.phase is not Phase.ACTIVE or question is None:
            return
        if 0 <= index < len(question.options):
            self.session.select_answer(question.options[index])

    def action_next(self) -> None:
        if self.session.state.can_go_next:
            self.session.go_next()

    def action_prev(self) -> None:
        if self.session.state.can_go_previous:
            self.session.go_previous()

    def action_home(self) -> None:
        if self.session.state.phase is not Phase.SETUP:
            self.session.restart()
