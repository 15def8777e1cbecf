from __future__ import annotations

from types import SimpleNamespace

import pytest
from rich.console import Console

from mitra_quiz import cli
from mitra_quiz.core import config
from mitra_quiz.quiz.models import QuizResult


def _console() -> Console:
    return Console(record=True, width=100, force_terminal=False)


class _FakeApp:
    """Stands in for QuizApp so ``start`` can run headless."""

    instances: list["_FakeApp"] = []
    result = None
    exit_code = 0

    def __init__(self, session, *, defaults=None):
        self.session = session
        self.defaults = defaults
        self.ran = False
        self.last_result = type(self).result
        type(self).instances.append(self)

    def run(self):
        self.ran = True
        self.return_code = type(self).exit_code


@pytest.fixture
def fake_app(monkeypatch, tmp_path):
    _FakeApp.instances = []
    _FakeApp.result = None
    _FakeApp.exit_code = 0
    logged = {}

    def fake_configure(name, **kwargs):
        logged.update(kwargs, name=name)
        logger = SimpleNamespace(
            info=lambda *a, **k: None, error=lambda *a, **k: None
        )
        return logger, tmp_path / "x.log"

    monkeypatch.setattr(cli, "QuizApp", _FakeApp)
    monkeypatch.setattr(cli, "configure_logger", fake_configure)
    monkeypatch.chdir(tmp_path)
    return SimpleNamespace(app=_FakeApp, logged=logged)


def test_init_writes_template(tmp_path) -> None:
    target = tmp_path / "conf" / "mitra-quiz.toml"
    console = _console()

    code = cli.main(["init", "--path", str(target)], console=console)

    assert code == 0
    assert target.read_text(encoding="utf-8") == config.read_template()
    assert "Created config template" in console.export_text()


def test_init_refuses_overwrite_without_force(tmp_path) -> None:
    target = tmp_path / "mitra-quiz.toml"
    target.write_text("# keep\n", encoding="utf-8")
    console = _console()

    code = cli.main(["init", "--path", str(target)], console=console)

    assert code == 2
    assert target.read_text(encoding="utf-8") == "# keep\n"
    assert "Config already exists" in console.export_text()

    code = cli.main(
        ["init", "--path", str(target), "--force"], console=_console()
    )
    assert code == 0
    assert target.read_text(encoding="utf-8") == config.read_template()


def test_init_defaults_to_working_directory(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert cli.main(["init"], console=_console()) == 0
    assert (tmp_path / config.CONFIG_FILENAME).is_file()


@pytest.mark.parametrize(
    "argv",
    [
        ["start", "--num", "2"],
        ["start", "--num", "many"],
        ["start", "--duration", "31"],
        ["start", "--provider", "claude"],
        [],
    ],
)
def test_parser_rejects_bad_arguments(argv) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.build_arg_parser().parse_args(argv)

    assert excinfo.value.code == 2


def test_parser_accepts_start_overrides() -> None:
    args = cli.build_arg_parser().parse_args(
        [
            "start",
            "--topic",
            "Space",
            "--num",
            "20",
            "--duration",
            "1",
            "--provider",
            "openai",
            "--verbose",
        ]
    )

    assert args.topic == "Space"
    assert args.num == 20
    assert args.duration == 1
    assert args.provider == "openai"
    assert args.verbose


def test_start_launches_app_with_config_defaults(fake_app, tmp_path):
    path = tmp_path / "mitra-quiz.toml"
    path.write_text(
        '[quiz]\ntopic = "Biology"\nduration = 10\n'
        '[logging]\nlevel = "debug"\n',
        encoding="utf-8",
    )
    console = _console()

    code = cli.main(["start", "--num", "7"], console=console)

    assert code == 0
    app = fake_app.app.instances[0]
    assert app.ran
    assert app.defaults == config.QuizDefaults(
        topic="Biology", num_questions=7, duration=10
    )
    assert fake_app.logged["name"] == "mitra_quiz"
    assert fake_app.logged["level"] == "DEBUG"
    assert fake_app.logged["verbose"] is False
    assert "Log file:" in console.export_text()


def test_start_prints_results_after_quiz(fake_app):
    fake_app.app.result = QuizResult(topic="Biology", score=0)
    console = _console()

    assert cli.main(["start"], console=console) == 0

    assert "Quiz: Biology" in console.export_text()


def test_start_reports_config_errors(fake_app, tmp_path):
    bad = tmp_path / "bad.toml"
    bad.write_text("[quiz]\nnum_questions = 99\n", encoding="utf-8")
    console = _console()

    code = cli.main(["start", "--config", str(bad)], console=console)

    assert code == 2
    assert "quiz.num_questions" in console.export_text()
    assert fake_app.app.instances == []


def test_start_missing_config_file(fake_app, tmp_path):
    code = cli.main(
        ["start", "--config", str(tmp_path / "absent.toml")],
        console=_console(),
    )

    assert code == 2


def test_apply_overrides_resets_model_on_provider_switch() -> None:
    cfg = config.load_config()
    cfg = cli._apply_overrides(
        cfg,
        SimpleNamespace(
            provider="openai",
            topic=None,
            num=None,
            duration=None,
            verbose=True,
        ),
    )

    assert cfg.ai.provider == "openai"
    assert cfg.ai.model == ""
    assert cfg.logging.verbose is True
    assert cfg.quiz.num_questions == 5


def test_start_reports_app_crash(fake_app):
    fake_app.app.exit_code = 1
    fake_app.app.result = QuizResult(topic="Biology", score=0)
    console = _console()

    assert cli.main(["start"], console=console) == 1

    rendered = console.export_text()
    assert "the quiz app crashed" in rendered
    assert "Quiz: Biology" not in rendered
