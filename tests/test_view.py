from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from textual.css.query import NoMatches

from fixtures import RecordingTicker, dual, selection
from physics_drill.drill import view as dv
from physics_drill.drill.bank import QuestionBank
from physics_drill.drill.models import Mode, Notice, Phase


class StubContainer:
    def __init__(self, *children, **kwargs):
        self.id = kwargs.get("id")
        self.children = list(children)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def remove_children(self) -> None:
        self.children.clear()

    def mount(self, *widgets) -> None:
        self.children.extend(widgets)


class StubStatic:
    def __init__(self, text: str = "", id: str | None = None):
        self.text = text
        self.id = id

    def update(self, new: str) -> None:
        self.text = new


class StubButton:
    def __init__(self, label: str, id: str | None = None):
        self.label = label
        self.id = id
        self.classes: set[str] = set()

    def add_class(self, name: str) -> None:
        self.classes.add(name)


class StubEvent:
    def __init__(self, button_id: str):
        self.button = SimpleNamespace(id=button_id)


def _no_matches(selector, _type=None):
    raise NoMatches(selector)


@pytest.fixture
def make_app(monkeypatch: pytest.MonkeyPatch):
    def _make(questions, **kwargs) -> dv.DrillApp:
        app = dv.DrillApp(questions, **kwargs)
        monkeypatch.setattr(app, "query_one", _no_matches)
        return app

    return _make


@pytest.fixture
def stub_widgets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(dv, "Container", StubContainer)
    monkeypatch.setattr(dv, "Horizontal", StubContainer)
    monkeypatch.setattr(dv, "Static", StubStatic)
    monkeypatch.setattr(dv, "Button", StubButton)


def test_empty_bank_compose(stub_widgets) -> None:
    app = dv.DrillApp([])

    rendered = list(app.compose())
    app._update_stage()

    assert app.engine is None
    assert rendered[0].text == "Question bank is empty."
    assert app.header_text() == ""
    assert app.pick_option(1) is None
    assert app.next_question() is None


def test_initial_state_and_header(make_app, make_bank) -> None:
    app = make_app(make_bank(3))

    assert app.current_question().id == "dual-0"
    assert app.header_text() == "Question 1 / 3 · Physics drill · 0:00"
    assert app.notice_text() == ""
    assert app.active_slot == 0


def test_quantity_picks_move_between_slots(make_app) -> None:
    app = make_app(QuestionBank([dual(0, (1, 3))]))

    app.pick_option(1)
    assert app.active_slot == 1
    app.pick_option(3)

    record = app.engine.session.answers[0]
    assert record.answer == (1, 3)
    assert record.is_correct
    assert app.active_slot == 0


def test_invalid_values_are_ignored(make_app) -> None:
    app = make_app(QuestionBank([dual(0)]))

    assert app.pick_option(5) is None
    assert app.engine.session.answers == {}


def test_statement_picks_toggle(make_app) -> None:
    app = make_app(QuestionBank([selection(0, (2, 5), option_count=5)]))

    app.action_pick(2)
    app.action_pick(5)
    app.action_pick(2)

    assert app.engine.session.answers[0].answer == (5, 0)
    assert not app.engine.session.answers[0].is_correct


def test_statement_picks_stop_at_two(make_app) -> None:
    app = make_app(QuestionBank([selection(0, (2, 5), option_count=5)]))

    for value in (2, 5, 3):
        app.action_pick(value)

    assert app.engine.session.answers[0].answer == (2, 5)
    assert app.engine.session.answers[0].is_correct


def test_navigation_notices(make_app, make_bank) -> None:
    app = make_app(make_bank(2))

    assert app.jump_to(4) is Notice.INVALID_NAVIGATION
    assert app.notice_text() == "There is no question at that position."
    assert app.next_question() is None
    assert app.notice_text() == ""
    assert app.prev_question() is None
    assert app.engine.session.cursor == 0


def test_results_review_and_restart(make_app, make_bank) -> None:
    app = make_app(make_bank(3))
    app.pick_option(1)
    app.pick_option(2)
    app.action_next()
    app.action_next()
    app.action_next()

    assert app.engine.phase is Phase.RESULTS
    assert app.header_text() == "Drill results · 0:00"
    assert app.pick_option(1) is Notice.PASS_COMPLETED

    app.action_review()
    assert app.engine.mode is Mode.REVIEW
    assert "Mistake review · 2 questions" in app.header_text()
    assert app.header_text().startswith("Question 2 / 3")

    app.action_restart()
    assert app.engine.mode is Mode.PRIMARY
    assert app.engine.session.answers == {}


def test_review_mid_pass_has_nothing_to_review(make_app, make_bank) -> None:
    app = make_app(make_bank(2))

    assert app.start_review() is Notice.NOTHING_TO_REVIEW


def test_show_answers_default_applies_on_results(make_app, make_bank) -> None:
    app = make_app(make_bank(1), show_answers=True)

    app.next_question()

    assert app.engine.session.show_answers is True
    app.action_toggle_answers()
    assert app.engine.session.show_answers is False


def test_button_presses(make_app, make_bank) -> None:
    app = make_app(make_bank(3))

    app.on_button_pressed(StubEvent("pick-1-2"))
    assert app.engine.session.answers[0].answer == (0, 2)
    app.on_button_pressed(StubEvent("goto-2"))
    assert app.engine.session.cursor == 2
    app.on_button_pressed(StubEvent("prev"))
    assert app.engine.session.cursor == 1
    app.on_button_pressed(StubEvent("next"))
    app.on_button_pressed(StubEvent("next"))
    assert app.engine.phase is Phase.RESULTS
    app.on_button_pressed(StubEvent("answers"))
    assert app.engine.session.show_answers is True
    app.on_button_pressed(StubEvent("review"))
    assert app.engine.mode is Mode.REVIEW
    app.on_button_pressed(StubEvent("restart"))
    assert app.engine.mode is Mode.PRIMARY
    app.on_button_pressed(StubEvent("unknown"))


def test_update_stage_remounts_widgets(
    monkeypatch: pytest.MonkeyPatch, stub_widgets, make_bank
) -> None:
    app = dv.DrillApp(make_bank(2))
    stage = StubContainer(id="stage")
    header = StubStatic(id="header")
    notice = StubStatic(id="notice")
    targets = {"#stage": stage, "#header": header, "#notice": notice}
    monkeypatch.setattr(
        app, "query_one", lambda selector, _type=None: targets[selector]
    )

    app.action_next()

    question_view, grid = stage.children
    assert isinstance(question_view, dv.QuestionView)
    assert question_view.question.id == "dual-1"
    assert [button.id for button in grid.children] == ["goto-0", "goto-1"]
    assert "current" in grid.children[1].classes
    assert header.text.startswith("Question 2 / 2")

    app.engine.tick()
    assert stage.children[0] is question_view
    assert header.text.endswith("0:01")

    app.action_next()
    assert isinstance(stage.children[0], dv.ResultsView)

    app.jump_to(0)
    assert notice.text.startswith("This pass is finished.")


def test_mount_starts_and_unmount_stops_clock(
    monkeypatch: pytest.MonkeyPatch, make_bank
) -> None:
    ticker = RecordingTicker()
    monkeypatch.setattr(
        dv.DrillApp,
        "set_interval",
        lambda self, interval, callback: ticker(interval, callback),
    )
    app = dv.DrillApp(make_bank(2))
    monkeypatch.setattr(app, "query_one", _no_matches)

    app.on_mount()
    ticker.fire(2)
    assert app.engine.session.elapsed_seconds == 2
    assert "0:02" in app.header_text()

    app.on_unmount()
    assert ticker.live == []


def test_switch_slot_action(make_app) -> None:
    app = make_app(QuestionBank([dual(0)]))

    app.action_switch_slot()
    app.pick_option(3)

    assert app.engine.session.answers[0].answer == (0, 3)


def test_question_view_rows_and_hint() -> None:
    view = dv.QuestionView(dual(0), answer=(1, 0))
    rows = view.option_rows()

    assert len(rows) == 6
    assert (0, 1, "increases", True) in rows
    assert (1, 1, "increases", False) in rows
    assert view.hint_text() == "Answered 1 of 2 quantities"

    statements = dv.QuestionView(
        selection(0, option_count=5), answer=(2, 5), figure="img.png"
    )
    selected = [row[1] for row in statements.option_rows() if row[3]]
    assert selected == [2, 5]
    assert statements.hint_text() == "Selected 2 of 2 ✓"
    assert statements.figure == "img.png"


def test_results_view_actions(make_app, make_bank) -> None:
    app = make_app(make_bank(2))
    app.engine.advance()
    app.engine.advance()

    view = dv.ResultsView(app.engine)

    assert view.actions_text().startswith("r: review mistakes")


def test_keyboard_session_in_running_app(make_bank) -> None:
    app = dv.DrillApp(make_bank(3))

    async def drive() -> None:
        async with app.run_test() as pilot:
            await pilot.pause()
            session = app.engine.session
            assert session.mode is Mode.PRIMARY
            assert session.cursor == 0
            assert len(app.query(".grid")) == 1

            await pilot.press("1")
            await pilot.pause()
            assert app.engine.session.answers[0].answer == (1, 0)
            assert app.active_slot == 1

            for cursor in (1, 2):
                await pilot.press("n")
                await pilot.pause()
                assert app.engine.session.cursor == cursor
                assert not app.engine.session.completed
                assert len(app.query(".grid")) == 1
                assert len(app.query(dv.QuestionView)) == 1

            await pilot.press("n")
            await pilot.pause()
            assert app.engine.session.completed
            assert app.engine.phase is Phase.RESULTS
            assert len(app.query(".grid")) == 0
            assert len(app.query("#answer-review")) == 0

            await pilot.press("a")
            await pilot.pause()
            assert app.engine.session.show_answers
            assert len(app.query("#answer-review")) == 1

            await pilot.press("r")
            await pilot.pause()
            session = app.engine.session
            assert session.mode is Mode.REVIEW
            assert session.order == (0, 1, 2)
            assert session.cursor == 0
            assert not session.completed
            assert len(app.query(".grid")) == 1

            await pilot.press("R")
            await pilot.pause()
            session = app.engine.session
            assert session.mode is Mode.PRIMARY
            assert session.cursor == 0
            assert session.answers == {}
            assert not session.completed
            assert len(app.query(dv.QuestionView)) == 1

    asyncio.run(drive())
