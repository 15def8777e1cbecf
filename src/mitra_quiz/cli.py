"""Command-line entry point: ``mitra-quiz init`` and ``mitra-quiz start``."""

from __future__ import annotations

import argparse
import dataclasses
from functools import partial
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from .core.ai import GenerationSettings, load_client
from .core.config import (
    CONFIG_FILENAME,
    MAX_DURATION,
    MAX_QUESTIONS,
    MIN_DURATION,
    MIN_QUESTIONS,
    PROVIDERS,
    AppConfig,
    ConfigError,
    QuizDefaults,
    find_config_path,
    load_config,
    write_template,
)
from .core.logging import configure_logger, default_log_dir
from .quiz.generator import QuestionSource
from .quiz.report import render_results
from .quiz.session import QuizSession
from .quiz.view import QuizApp


def _cmd_init(args: argparse.Namespace, console: Console) -> int:
    target = Path(args.path or CONFIG_FILENAME).expanduser().resolve()
    try:
        write_template(target, overwrite=bool(args.force))
    except ConfigError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 2
    console.print(f"Created config template {target}")
    return 0


def _apply_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    ai = cfg.ai
    if args.provider and args.provider != ai.provider:
        # A model name only makes sense for the provider it was set for.
        ai = dataclasses.replace(ai, provider=args.provider, model="")
    quiz = QuizDefaults(
        topic=args.topic if args.topic is not None else cfg.quiz.topic,
        num_questions=(
            args.num if args.num is not None else cfg.quiz.num_questions
        ),
        duration=(
            args.duration if args.duration is not None else cfg.quiz.duration
        ),
    )
    logging_cfg = cfg.logging
    if args.verbose:
        logging_cfg = dataclasses.replace(logging_cfg, verbose=True)
    return AppConfig(ai=ai, quiz=quiz, logging=logging_cfg)


def _cmd_start(args: argparse.Namespace, console: Console) -> int:
    try:
        cfg = load_config(find_config_path(args.config))
    except ConfigError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 2
    cfg = _apply_overrides(cfg, args)

    logger, log_path = configure_logger(
        "mitra_quiz",
        log_dir=cfg.logging.directory or default_log_dir(),
        level=cfg.logging.level,
        verbose=cfg.logging.verbose,
    )
    logger.info(
        "Starting quiz app",
        extra={"provider": cfg.ai.provider, "model": cfg.ai.model},
    )

    source = QuestionSource(
        settings=GenerationSettings.from_config(cfg.ai),
        client_factory=partial(load_client, cfg.ai.provider, cfg.ai),
    )
    app = QuizApp(QuizSession(source), defaults=cfg.quiz)
    app.run()
    if app.return_code:
        logger.error(
            "Quiz app exited abnormally", extra={"code": app.return_code}
        )
        console.print(
            f"[red]Error:[/] the quiz app crashed. See {log_path}"
        )
        return 1

    if app.last_result is not None:
        render_results(console, app.last_result)
    console.print(f"[dim]Log file: {log_path}[/]")
    return 0


def _bounded_int(low: int, high: int):
    def _parse(raw: str) -> int:
        try:
            value = int(raw)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"not an integer: {raw}") from exc
        if not (low <= value <= high):
            raise argparse.ArgumentTypeError(
                f"must be between {low} and {high}"
            )
        return value

    return _parse


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mitra-quiz",
        description="Timed multiple-choice quizzes generated by AI",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser("init", help="Write a config template")
    sp_init.add_argument("--path", help=f"Target file ({CONFIG_FILENAME})")
    sp_init.add_argument(
        "--force", action="store_true", help="Overwrite an existing file"
    )

    sp_start = sub.add_parser("start", help="Launch the quiz app")
    sp_start.add_argument("--config", help="Path to mitra-quiz.toml")
    sp_start.add_argument("--topic", help="Prefill the quiz topic")
    sp_start.add_argument(
        "--num",
        type=_bounded_int(MIN_QUESTIONS, MAX_QUESTIONS),
        help="Prefill the number of questions (3-20)",
    )
    sp_start.add_argument(
        "--duration",
        type=_bounded_int(MIN_DURATION, MAX_DURATION),
        help="Prefill the duration in minutes (1-30)",
    )
    sp_start.add_argument(
        "--provider", choices=PROVIDERS, help="Override the model provider"
    )
    sp_start.add_argument(
        "--verbose",
        action="store_true",
        help="Also log to stderr at debug level",
    )
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    out = console or Console()
    if args.command == "init":
        return _cmd_init(args, out)
    if args.command == "start":
        return _cmd_start(args, out)
    parser.print_help()  # pragma: no cover - argparse enforces commands
    return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
