"""TOML configuration for mitra-quiz.

User files only override keys that exist in the packaged defaults; anything
else is rejected so typos surface immediately instead of being ignored.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - should never happen
    raise RuntimeError("Python 3.11+ required for tomllib support") from exc

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_PATH_ENV",
    "PROVIDERS",
    "AIConfig",
    "AppConfig",
    "ConfigError",
    "LoggingConfig",
    "QuizDefaults",
    "SafetyConfig",
    "find_config_path",
    "load_config",
    "read_template",
    "write_template",
]

CONFIG_FILENAME = "mitra-quiz.toml"
CONFIG_PATH_ENV = "MITRA_QUIZ_CONFIG"
PROVIDERS = ("gemini", "openai")

MIN_QUESTIONS, MAX_QUESTIONS = 3, 20
MIN_DURATION, MAX_DURATION = 1, 30

_THRESHOLDS = (
    "BLOCK_NONE",
    "BLOCK_ONLY_HIGH",
    "BLOCK_MEDIUM_AND_ABOVE",
    "BLOCK_LOW_AND_ABOVE",
)

_DEFAULTS: Dict[str, Any] = {
    "ai": {
        "provider": "gemini",
        "model": "",
        "temperature": 0.7,
        "top_k": 40,
        "top_p": 0.95,
        "max_output_tokens": 2048,
        "safety": {
            "harassment": "BLOCK_MEDIUM_AND_ABOVE",
            "hate_speech": "BLOCK_MEDIUM_AND_ABOVE",
        },
    },
    "quiz": {
        "topic": "",
        "num_questions": 5,
        "duration": 5,
    },
    "logging": {
        "level": "INFO",
        "directory": "",
        "verbose": False,
    },
}


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class SafetyConfig:
    harassment: str
    hate_speech: str


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    temperature: float
    top_k: int
    top_p: float
    max_output_tokens: int
    safety: SafetyConfig


@dataclass(frozen=True)
class QuizDefaults:
    topic: str
    num_questions: int
    duration: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    directory: Optional[Path]
    verbose: bool


@dataclass(frozen=True)
class AppConfig:
    ai: AIConfig
    quiz: QuizDefaults
    logging: LoggingConfig


def find_config_path(
    explicit: Optional[str] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> Optional[Path]:
    """Resolve the config file: explicit path, env var, then ./mitra-quiz.toml.

    Returns ``None`` when no file is found and defaults should be used. An
    explicit path (argument or env var) that does not exist is an error.
    """

    source = os.environ if env is None else env
    candidate = explicit or (source.get(CONFIG_PATH_ENV) or "").strip()
    if candidate:
        path = Path(candidate).expanduser().resolve()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return path
    local = (cwd or Path.cwd()) / CONFIG_FILENAME
    return local.resolve() if local.is_file() else None


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration, falling back to defaults."""

    data = copy.deepcopy(_DEFAULTS)
    if path is not None:
        try:
            with Path(path).open("rb") as handle:
                raw = tomllib.load(handle)
        except FileNotFoundError as exc:
            raise ConfigError(f"Config file not found: {path}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Failed to parse config TOML: {exc}") from exc
        _merge_dict(data, raw)
    return _build_config(data)


def read_template() -> str:
    """Return the commented configuration template shipped with the package."""

    return (
        resources.files("mitra_quiz")
        .joinpath("data", "template.toml")
        .read_text(encoding="utf-8")
    )


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the configuration template to ``path``."""

    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(read_template(), encoding="utf-8")
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        if isinstance(base[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted, type(value).__name__
                    )
                )
            _merge_dict(base[key], value, path=f"{dotted}.")
        else:
            base[key] = value


def _build_config(data: Mapping[str, Any]) -> AppConfig:
    ai = data["ai"]
    quiz = data["quiz"]
    log = data["logging"]

    provider = _require_string(ai["provider"], field="ai.provider").lower()
    if provider not in PROVIDERS:
        raise ConfigError(
            f"'ai.provider' must be one of: {', '.join(PROVIDERS)}."
        )
    safety = SafetyConfig(
        harassment=_require_threshold(
            ai["safety"]["harassment"], field="ai.safety.harassment"
        ),
        hate_speech=_require_threshold(
            ai["safety"]["hate_speech"], field="ai.safety.hate_speech"
        ),
    )
    ai_config = AIConfig(
        provider=provider,
        model=_require_model(ai["model"]),
        temperature=_require_float_range(
            ai["temperature"], field="ai.temperature", low=0.0, high=2.0
        ),
        top_k=_require_int_range(
            ai["top_k"], field="ai.top_k", low=1, high=1000
        ),
        top_p=_require_float_range(
            ai["top_p"], field="ai.top_p", low=0.0, high=1.0
        ),
        max_output_tokens=_require_int_range(
            ai["max_output_tokens"],
            field="ai.max_output_tokens",
            low=1,
            high=65536,
        ),
        safety=safety,
    )

    topic = quiz["topic"]
    if not isinstance(topic, str):
        raise ConfigError("'quiz.topic' must be a string.")
    defaults = QuizDefaults(
        topic=topic.strip(),
        num_questions=_require_int_range(
            quiz["num_questions"],
            field="quiz.num_questions",
            low=MIN_QUESTIONS,
            high=MAX_QUESTIONS,
        ),
        duration=_require_int_range(
            quiz["duration"],
            field="quiz.duration",
            low=MIN_DURATION,
            high=MAX_DURATION,
        ),
    )

    directory = log["directory"]
    if not isinstance(directory, str):
        raise ConfigError("'logging.directory' must be a string.")
    verbose = log["verbose"]
    if not isinstance(verbose, bool):
        raise ConfigError("'logging.verbose' must be a boolean.")
    logging_config = LoggingConfig(
        level=_require_string(log["level"], field="logging.level").upper(),
        directory=Path(directory).expanduser() if directory.strip() else None,
        verbose=verbose,
    )
    return AppConfig(ai=ai_config, quiz=defaults, logging=logging_config)


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_model(value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError("'ai.model' must be a string.")
    return value.strip()


def _require_threshold(value: Any, *, field: str) -> str:
    text = _require_string(value, field=field).upper()
    if text not in _THRESHOLDS:
        raise ConfigError(
            f"'{field}' must be one of: {', '.join(_THRESHOLDS)}."
        )
    return text


def _require_int_range(value: Any, *, field: str, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{field}' must be an integer.")
    if not (low <= value <= high):
        raise ConfigError(f"'{field}' must be between {low} and {high}.")
    return value


def _require_float_range(
    value: Any, *, field: str, low: float, high: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (low <= number <= high):
        raise ConfigError(f"'{field}' must be between {low} and {high}.")
    return number
