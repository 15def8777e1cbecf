"""Logging setup for mitra-quiz.

Records go to a rotating JSON-lines file so generation failures (raw model
output, parse errors) can be inspected after a session without ever being
shown to the quiz taker. A console handler is attached only in verbose mode,
since the Textual UI owns the terminal otherwise.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping

__all__ = [
    "HOME_ENV",
    "JsonLogFormatter",
    "configure_logger",
    "default_log_dir",
]

HOME_ENV = "MITRA_QUIZ_HOME"

_FILE_MARKER = "_mitra_quiz_file"
_CONSOLE_MARKER = "_mitra_quiz_console"

# Attributes present on every LogRecord; anything else came in via ``extra``.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def default_log_dir(env: Mapping[str, str] | None = None) -> Path:
    """Return ``$MITRA_QUIZ_HOME/logs`` or ``~/.mitra-quiz/logs``."""

    source = os.environ if env is None else env
    home = (source.get(HOME_ENV) or "").strip()
    base = Path(home).expanduser() if home else Path.home() / ".mitra-quiz"
    return base / "logs"


def configure_logger(
    name: str = "mitra_quiz",
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Attach the JSON file handler (and console handler when verbose).

    Calling this again reuses the existing handlers, only adjusting levels,
    so repeated ``start`` invocations in one process do not duplicate output.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    directory = _usable_dir(log_dir or default_log_dir())
    log_path = directory / (filename or f"{name.rsplit('.', 1)[-1]}.log")

    handler = _find_handler(logger, _FILE_MARKER)
    if handler is None:
        handler = _open_file_handler(log_path, max_bytes, backup_count)
        logger.addHandler(handler)
    log_path = Path(handler.baseFilename)  # type: ignore[attr-defined]
    handler.setLevel(logging.DEBUG if verbose else _level_from_name(level))

    console = _find_handler(logger, _CONSOLE_MARKER)
    if verbose and console is None:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        setattr(console, _CONSOLE_MARKER, True)
        logger.addHandler(console)
    elif not verbose and console is not None:
        logger.removeHandler(console)
        console.close()

    return logger, log_path


def _level_from_name(level: str) -> int:
    numeric = logging.getLevelName(str(level).upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _find_handler(
    logger: logging.Logger, marker: str
) -> logging.Handler | None:
    for handler in logger.handlers:
        if getattr(handler, marker, False):
            return handler
    return None


def _open_file_handler(
    path: Path, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    try:
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except PermissionError:
        fallback = _usable_dir(_temp_log_dir()) / path.name
        handler = RotatingFileHandler(
            fallback,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    handler.setFormatter(JsonLogFormatter())
    setattr(handler, _FILE_MARKER, True)
    return handler


def _usable_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        path = _temp_log_dir()
        path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _temp_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "mitra-quiz-logs"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)
