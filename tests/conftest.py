from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import RecordingTicker, dual, selection  # noqa: E402
from physics_drill.core import workspace as workspace_mod  # noqa: E402
from physics_drill.drill.bank import QuestionBank  # noqa: E402


@pytest.fixture
def make_bank() -> Callable[[int], QuestionBank]:
    """Build a bank of ``size`` dual questions whose answer is ``(1, 2)``."""

    def _make(size: int) -> QuestionBank:
        return QuestionBank([dual(index) for index in range(size)])

    return _make


@pytest.fixture
def mixed_bank() -> QuestionBank:
    """Two dual questions, a four-option and a five-option selection."""

    return QuestionBank(
        [
            dual(0, (1, 3)),
            selection(1, (3, 0)),
            dual(2, (2, 2)),
            selection(3, (1, 4), option_count=5),
        ]
    )


@pytest.fixture
def ticker() -> RecordingTicker:
    return RecordingTicker()


@pytest.fixture
def write_bank(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def _isolated_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Keep config and log files for every test under tmp_path."""

    home = tmp_path / "drill-home"
    monkeypatch.setenv(workspace_mod.WORKSPACE_ENV, str(home))
    for key in (
        "PHYSICS_DRILL_CONFIG",
        "PHYSICS_DRILL_BANK",
        "PHYSICS_DRILL_ASSETS",
        "PHYSICS_DRILL_INTERFACE",
        "PHYSICS_DRILL_SHOW_ANSWERS",
        "PHYSICS_DRILL_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    return home
