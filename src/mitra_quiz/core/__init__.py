"""Shared helpers: model clients, configuration and logging."""

from __future__ import annotations

from .ai import (
    GeminiClient,
    GenerationSettings,
    OpenAIClient,
    QuestionClient,
    load_client,
)
from .config import (
    AIConfig,
    AppConfig,
    ConfigError,
    LoggingConfig,
    QuizDefaults,
    find_config_path,
    load_config,
    write_template,
)
from .logging import JsonLogFormatter, configure_logger, default_log_dir

__all__ = [
    "GeminiClient",
    "GenerationSettings",
    "OpenAIClient",
    "QuestionClient",
    "load_client",
    "AIConfig",
    "AppConfig",
    "ConfigError",
    "LoggingConfig",
    "QuizDefaults",
    "find_config_path",
    "load_config",
    "write_template",
    "JsonLogFormatter",
    "configure_logger",
    "default_log_dir",
]
