"""Rich renderables for quiz results, shared by the TUI and the CLI."""

from __future__ import annotations

from rich import box
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .models import QuizResult


def format_time(seconds: int) -> str:
    """Format a countdown as ``m:ss``."""

    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def score_line(result: QuizResult) -> Text:
    text = Text.assemble(
        ("You scored ", ""),
        (str(result.score), "bold green" if result.score else "bold red"),
        (f" out of {result.total}", ""),
        (f"  ({result.accuracy * 100:.0f}%)", "dim"),
    )
    if result.timed_out:
        text.append("  Time ran out.", style="yellow")
    return text


def build_results_table(result: QuizResult) -> Table:
    table = Table(
        title="Quiz Results",
        box=box.SIMPLE,
        expand=True,
        show_lines=False,
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Question", overflow="fold")
    table.add_column("Your answer", overflow="fold")
    table.add_column("Correct answer", overflow="fold")
    table.add_column("Result", justify="center")

    for outcome in result.outcomes:
        question = outcome.question
        correct = outcome.is_correct
        your = Text(
            outcome.selected or "(no answer)",
            style="green" if correct else "red",
        )
        table.add_row(
            str(question.id),
            question.question,
            your,
            "" if correct else question.correct_answer,
            "✅" if correct else "❌",
        )
    return table


def results_renderable(result: QuizResult) -> Group:
    return Group(score_line(result), build_results_table(result))


def render_results(console: Console, result: QuizResult) -> None:
    console.print()
    console.rule(Text(f"Quiz: {result.topic}", style="bold magenta"))
    console.print(results_renderable(result))
