from __future__ import annotations

import json
import logging

import pytest

from physics_drill.core import workspace as workspace_mod
from physics_drill.drill import _main
from physics_drill.drill.config import CONFIG_FILENAME

BANK = [
    {
        "id": "gas",
        "kind": "dual_quantity",
        "text": "Gas is compressed slowly.",
        "quantities": ["Pressure", "Volume"],
        "correct": [1, 2],
    },
    {
        "id": "ball",
        "kind": "selection",
        "text": "Which stays constant while falling?",
        "options": [
            {"label": "Speed", "value": 1},
            {"label": "Acceleration", "value": 2},
        ],
        "correct": [2, 0],
    },
]


@pytest.fixture(autouse=True)
def _release_log_handlers():
    yield
    logger = logging.getLogger(_main.LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def bank_file(write_bank):
    return write_bank("bank.json", json.dumps(BANK))


class FakeConsole:
    """Console double feeding scripted input to the drill loop."""

    def __init__(self, commands):
        self._commands = iter(commands)
        self.printed = []

    def input(self, prompt=""):
        return next(self._commands)

    def print(self, *objects, **kwargs):
        self.printed.extend(objects)

    def rule(self, *objects, **kwargs):
        self.printed.extend(objects)


def test_bank_validate_reports_counts(bank_file, capsys):
    assert _main.bank_main(["validate", str(bank_file)]) == 0
    out = capsys.readouterr().out
    assert "2 question(s) OK" in out
    assert "1 two-quantity, 1 selection" in out


def test_bank_validate_rejects_malformed_file(write_bank, capsys):
    broken = write_bank("broken.json", json.dumps([{"id": "x"}]))

    assert _main.bank_main(["validate", str(broken)]) == 2
    assert "Question #1: text is required" in capsys.readouterr().err


def test_bank_list_with_filter(bank_file, capsys):
    assert _main.bank_main(["list", str(bank_file), "--filter", "gas"]) == 0
    out = capsys.readouterr().out
    assert "gas" in out
    assert "ball" not in out

    assert _main.bank_main(["list", str(bank_file), "--filter", "zzz"]) == 1
    assert "No questions match filter." in capsys.readouterr().out


def test_config_init_writes_template(tmp_path, capsys):
    target = tmp_path / "conf" / "drill.toml"

    assert _main.config_main(["init", "--path", str(target)]) == 0
    assert "[session]" in target.read_text(encoding="utf-8")
    assert "Wrote drill config" in capsys.readouterr().out

    assert _main.config_main(["init", "--path", str(target)]) == 1
    assert "already exists" in capsys.readouterr().err
    assert _main.config_main(["init", "--path", str(target), "--force"]) == 0


def test_config_init_defaults_to_workspace(tmp_path):
    workspace = tmp_path / "ws"

    assert _main.config_main(["init", "--workspace", str(workspace)]) == 0

    layout = workspace_mod.ensure_workspace(path=workspace)
    assert (layout.path_for("config") / CONFIG_FILENAME).is_file()


def test_run_requires_a_bank(capsys):
    with pytest.raises(SystemExit) as excinfo:
        _main.run_main([])

    assert excinfo.value.code == 2
    assert "No question bank given" in capsys.readouterr().err


def test_run_rejects_bank_and_sample(bank_file):
    with pytest.raises(SystemExit) as excinfo:
        _main.run_main([str(bank_file), "--sample"])
    assert excinfo.value.code == 2


def test_run_reports_config_errors(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _main.run_main(["--sample", "--config", str(tmp_path / "no.toml")])

    assert excinfo.value.code == 2
    assert "Config file not found" in capsys.readouterr().err


def test_run_reports_bad_bank(write_bank, capsys):
    broken = write_bank("broken.json", "{not json")

    assert _main.run_main([str(broken)]) == 2
    assert "Invalid JSON" in capsys.readouterr().err


def test_run_console_session(monkeypatch, bank_file, _isolated_workspace):
    console = FakeConsole(["1 2", "n", "2", "n", "q"])
    monkeypatch.setattr(_main, "Console", lambda: console)

    assert _main.run_main([str(bank_file), "--log-level", "debug"]) == 0

    log_path = _isolated_workspace / "logs" / "drill.log"
    records = [
        json.loads(line)
        for line in log_path.read_text(encoding="utf-8").splitlines()
    ]
    messages = [record["message"] for record in records]
    assert "Primary pass completed" in messages
    finished = records[messages.index("Drill run finished")]
    assert finished["extra"]["exit_action"] == "finished"
    assert finished["extra"]["percentage"] == 100


def test_run_sample_uses_tui_when_configured(monkeypatch):
    launched = {}

    class FakeApp:
        def __init__(self, bank, **kwargs):
            launched["count"] = len(bank)
            launched.update(kwargs)

        def run(self):
            launched["ran"] = True

    monkeypatch.setattr(_main, "DrillApp", FakeApp)
    monkeypatch.setenv("PHYSICS_DRILL_INTERFACE", "tui")

    assert _main.run_main(["--sample", "--show-answers"]) == 0
    assert launched["ran"] is True
    assert launched["count"] == 6
    assert launched["show_answers"] is True
    assert launched["resolver"].base_path is None


def test_console_flag_overrides_env(monkeypatch, bank_file):
    monkeypatch.setenv("PHYSICS_DRILL_INTERFACE", "tui")
    monkeypatch.setattr(_main, "DrillApp", None)
    console = FakeConsole(["q"])
    monkeypatch.setattr(_main, "Console", lambda: console)

    assert _main.run_main([str(bank_file), "--console"]) == 0
    assert console.printed
