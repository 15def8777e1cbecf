from __future__ import annotations

from pathlib import Path

import pytest

from mitra_quiz.core import config


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_defaults() -> None:
    cfg = config.load_config()

    assert cfg.ai.provider == "gemini"
    assert cfg.ai.model == ""
    assert cfg.ai.temperature == pytest.approx(0.7)
    assert cfg.ai.top_k == 40
    assert cfg.ai.top_p == pytest.approx(0.95)
    assert cfg.ai.max_output_tokens == 2048
    assert cfg.ai.safety.harassment == "BLOCK_MEDIUM_AND_ABOVE"
    assert cfg.ai.safety.hate_speech == "BLOCK_MEDIUM_AND_ABOVE"
    assert cfg.quiz == config.QuizDefaults(
        topic="", num_questions=5, duration=5
    )
    assert cfg.logging.level == "INFO"
    assert cfg.logging.directory is None
    assert cfg.logging.verbose is False


def test_load_config_merges_overrides(tmp_path) -> None:
    path = _write(
        tmp_path / "mitra-quiz.toml",
        """
[ai]
provider = "OpenAI"
model = " gpt-4o "
temperature = 1

[ai.safety]
hate_speech = "block_only_high"

[quiz]
topic = " Astronomy "
num_questions = 10

[logging]
level = "debug"
directory = "~/quiz-logs"
""",
    )

    cfg = config.load_config(path)

    assert cfg.ai.provider == "openai"
    assert cfg.ai.model == "gpt-4o"
    assert cfg.ai.temperature == 1.0
    assert cfg.ai.safety.harassment == "BLOCK_MEDIUM_AND_ABOVE"
    assert cfg.ai.safety.hate_speech == "BLOCK_ONLY_HIGH"
    assert cfg.quiz.topic == "Astronomy"
    assert cfg.quiz.num_questions == 10
    assert cfg.quiz.duration == 5
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.directory == Path("~/quiz-logs").expanduser()


@pytest.mark.parametrize(
    ("body", "fragment"),
    [
        ("[ai]\nmodle = 'x'\n", "Unknown configuration key 'ai.modle'"),
        ("[extra]\nx = 1\n", "Unknown configuration key 'extra'"),
        ("ai = 3\n", "Expected table for 'ai'"),
        ("[ai]\nprovider = 'claude'\n", "'ai.provider' must be one of"),
        ("[ai]\nprovider = ''\n", "'ai.provider' must be a non-empty"),
        ("[ai]\nmodel = 5\n", "'ai.model' must be a string"),
        ("[ai]\ntemperature = 'hot'\n", "'ai.temperature' must be a number"),
        ("[ai]\ntemperature = 2.5\n", "'ai.temperature' must be between"),
        ("[ai]\ntop_k = 0\n", "'ai.top_k' must be between"),
        ("[ai]\ntop_k = 1.5\n", "'ai.top_k' must be an integer"),
        ("[ai]\ntop_p = 1.2\n", "'ai.top_p' must be between"),
        ("[ai]\nmax_output_tokens = true\n", "must be an integer"),
        ("[ai.safety]\nharassment = 'NEVER'\n", "must be one of"),
        ("[quiz]\nnum_questions = 2\n", "'quiz.num_questions'"),
        ("[quiz]\nnum_questions = 21\n", "'quiz.num_questions'"),
        ("[quiz]\nduration = 31\n", "'quiz.duration'"),
        ("[quiz]\ntopic = 4\n", "'quiz.topic' must be a string"),
        ("[logging]\nverbose = 'yes'\n", "must be a boolean"),
        ("[logging]\ndirectory = 1\n", "must be a string"),
        ("not toml = = =\n", "Failed to parse config TOML"),
    ],
)
def test_load_config_rejects_invalid(tmp_path, body, fragment) -> None:
    path = _write(tmp_path / "bad.toml", body)

    with pytest.raises(config.ConfigError) as excinfo:
        config.load_config(path)

    assert fragment in str(excinfo.value)


def test_load_config_missing_file(tmp_path) -> None:
    with pytest.raises(config.ConfigError):
        config.load_config(tmp_path / "missing.toml")


def test_find_config_path_prefers_explicit(tmp_path) -> None:
    explicit = _write(tmp_path / "explicit.toml", "")
    from_env = _write(tmp_path / "env.toml", "")

    found = config.find_config_path(
        str(explicit),
        env={config.CONFIG_PATH_ENV: str(from_env)},
        cwd=tmp_path,
    )

    assert found == explicit.resolve()


def test_find_config_path_uses_env(tmp_path) -> None:
    from_env = _write(tmp_path / "env.toml", "")

    found = config.find_config_path(
        env={config.CONFIG_PATH_ENV: str(from_env)}, cwd=tmp_path
    )

    assert found == from_env.resolve()


def test_find_config_path_uses_working_directory(tmp_path) -> None:
    local = _write(tmp_path / config.CONFIG_FILENAME, "")

    assert config.find_config_path(env={}, cwd=tmp_path) == local.resolve()


def test_find_config_path_none_when_absent(tmp_path) -> None:
    assert config.find_config_path(env={}, cwd=tmp_path) is None


@pytest.mark.parametrize("use_env", [False, True])
def test_find_config_path_missing_explicit_file(tmp_path, use_env) -> None:
    missing = str(tmp_path / "nope.toml")
    explicit = None if use_env else missing
    env = {config.CONFIG_PATH_ENV: missing} if use_env else {}

    with pytest.raises(config.ConfigError):
        config.find_config_path(explicit, env=env, cwd=tmp_path)


def test_template_matches_defaults(tmp_path) -> None:
    path = config.write_template(tmp_path / "nested" / "mitra-quiz.toml")

    assert path.read_text(encoding="utf-8") == config.read_template()
    assert config.load_config(path) == config.load_config()


def test_write_template_refuses_overwrite(tmp_path) -> None:
    path = _write(tmp_path / "mitra-quiz.toml", "# mine\n")

    with pytest.raises(config.ConfigError):
        config.write_template(path)
    assert path.read_text(encoding="utf-8") == "# mine\n"

    config.write_template(path, overwrite=True)
    assert path.read_text(encoding="utf-8") == config.read_template()
