from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from textual.app import App, ComposeResult, ScreenStackError
from textual.containers import Container, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Button, Static

from .answers import is_valid_value, pick, selection_hint
from .assets import AssetResolver
from .console import STATUS_STYLES, answers_table, results_overview
from .engine import SessionEngine
from .models import (
    NOTICE_MESSAGES,
    UNSET,
    AnswerPair,
    DualQuantityQuestion,
    Mode,
    Notice,
    Phase,
    Question,
    Session,
)
from .scoring import format_elapsed

OptionRow = Tuple[int, int, str, bool]


class DrillApp(App):
    CSS_PATH = None
    CSS = """
#header { color: $accent; text-style: bold; }
#notice { color: $warning; }
.slot { width: 1fr; }
QuestionView Button.selected { background: $success; color: black; }
.grid Button { min-width: 5; }
.grid Button.correct { background: $success; }
.grid Button.incorrect { background: $error; }
.grid Button.current { text-style: reverse; }
"""
    BINDINGS = [
        ("n", "next", "Next"),
        ("p", "prev", "Prev"),
        ("1", "pick(1)", "Option 1"),
        ("2", "pick(2)", "Option 2"),
        ("3", "pick(3)", "Option 3"),
        ("4", "pick(4)", "Option 4"),
        ("5", "pick(5)", "Option 5"),
        ("s", "switch_slot", "Quantity"),
        ("r", "review", "Review"),
        ("R", "restart", "Restart"),
        ("a", "toggle_answers", "Answers"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        questions: Sequence[Question],
        *,
        resolver: Optional[AssetResolver] = None,
        show_answers: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__()
        self._questions = list(questions)
        self._resolver = resolver
        self._show_answers = show_answers
        self._active_slot = 0
        self._notice: Optional[Notice] = None
        self._last: Optional[Session] = None
        self.engine: Optional[SessionEngine] = None
        if self._questions:
            self.engine = SessionEngine(
                self._questions,
                ticker_factory=self.set_interval,
                logger=logger,
            )
            self.engine.subscribe(self._on_session_change)
            self._last = self.engine.session

    def compose(self) -> ComposeResult:
        if self.engine is None:
            yield Static("Question bank is empty.", id="empty")
            return
        yield Static(self.header_text(), id="header")
        with Container(id="stage"):
            yield from self._stage_widgets()
        yield Static(self.notice_text(), id="notice")
        with Horizontal(id="footer"):
            yield Button("Prev", id="prev")
            yield Button("Next", id="next")
            yield Button("Review", id="review")
            yield Button("Restart", id="restart")
            yield Button("Answers", id="answers")

    def on_mount(self) -> None:
        if self.engine is not None:
            self.engine.start()

    def on_unmount(self) -> None:
        if self.engine is not None:
            self.engine.close()

    # Pure helpers (testable without running the App)
    def current_question(self) -> Question:
        assert self.engine is not None
        return self.engine.current_question

    @property
    def active_slot(self) -> int:
        return self._active_slot

    def header_text(self) -> str:
        if self.engine is None:
            return ""
        session = self.engine.session
        elapsed = format_elapsed(session.elapsed_seconds)
        if session.phase is Phase.RESULTS:
            title = (
                "Mistake review results"
                if session.mode is Mode.REVIEW
                else "Drill results"
            )
            return f"{title} · {elapsed}"
        label = (
            f"Mistake review · {session.total} questions"
            if session.mode is Mode.REVIEW
            else "Physics drill"
        )
        number = self.engine.display_number()
        total = len(self._questions)
        return f"Question {number} / {total} · {label} · {elapsed}"

    def notice_text(self) -> str:
        if self._notice is None:
            return ""
        return NOTICE_MESSAGES[self._notice]

    def pick_option(
        self, value: int, slot: Optional[int] = None
    ) -> Optional[Notice]:
        """Pick ``value`` on the current question.

        For two-quantity questions ``slot`` chooses the quantity; without it
        the active slot is used and focus moves on to the other quantity.
        """
        if self.engine is None:
            return None
        if self.engine.phase is Phase.RESULTS:
            return self._report(Notice.PASS_COMPLETED)
        question = self.current_question()
        if not is_valid_value(question, value):
            return None
        current = self.engine.session.answer_at(self.engine.session.cursor)
        if isinstance(question, DualQuantityQuestion):
            target = self._active_slot if slot is None else slot
            answer = pick(question, current, value, target)
            self._active_slot = 1 - target
        else:
            answer = pick(question, current, value)
        return self._report(self.engine.answer_current(answer))

    def next_question(self) -> Optional[Notice]:
        return self._navigate(self.engine.advance if self.engine else None)

    def prev_question(self) -> Optional[Notice]:
        return self._navigate(self.engine.retreat if self.engine else None)

    def jump_to(self, position: int) -> Optional[Notice]:
        if self.engine is None:
            return None
        self._active_slot = 0
        return self._report(self.engine.jump_to(position))

    def start_review(self) -> Optional[Notice]:
        return self._navigate(
            self.engine.start_review if self.engine else None
        )

    def restart_drill(self) -> Optional[Notice]:
        return self._navigate(self.engine.restart if self.engine else None)

    def toggle_answers(self) -> None:
        if self.engine is not None:
            self.engine.toggle_show_answers()

    def action_next(self) -> None:
        self.next_question()

    def action_prev(self) -> None:
        self.prev_question()

    def action_pick(self, value: int) -> None:
        self.pick_option(value)

    def action_switch_slot(self) -> None:
        self._active_slot = 1 - self._active_slot
        self._update_stage()

    def action_review(self) -> None:
        self.start_review()

    def action_restart(self) -> None:
        self.restart_drill()

    def action_toggle_answers(self) -> None:
        self.toggle_answers()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("pick-"):
            _, slot, value = bid.split("-")
            self.pick_option(int(value), int(slot))
        elif bid.startswith("goto-"):
            self.jump_to(int(bid[len("goto-"):]))
        elif bid == "next":
            self.action_next()
        elif bid == "prev":
            self.action_prev()
        elif bid == "review":
            self.action_review()
        elif bid == "restart":
            self.action_restart()
        elif bid == "answers":
            self.action_toggle_answers()

    def _navigate(self, step) -> Optional[Notice]:
        if step is None:
            return None
        self._active_slot = 0
        return self._report(step())

    def _report(self, notice: Optional[Notice]) -> Optional[Notice]:
        if notice != self._notice:
            self._notice = notice
            self._update_text("#notice", self.notice_text())
        return notice

    def _on_session_change(self, session: Session) -> None:
        previous, self._last = self._last, session
        entered_results = (
            previous is not None
            and previous.phase is Phase.IN_PROGRESS
            and session.phase is Phase.RESULTS
        )
        if (
            entered_results
            and self._show_answers
            and not session.show_answers
        ):
            assert self.engine is not None
            self.engine.toggle_show_answers()
            return
        if previous is not None and _only_clock_changed(previous, session):
            self._update_text("#header", self.header_text())
            return
        self._update_stage()

    def _stage_widgets(self) -> List[Widget]:
        assert self.engine is not None
        session = self.engine.session
        if session.phase is Phase.RESULTS:
            return [ResultsView(self.engine)]
        question = self.current_question()
        figure = None
        if self._resolver is not None and question.image:
            located = self._resolver.locate(question.image)
            figure = str(located) if located is not None else None
        grid = Horizontal(
            *[
                _grid_button(self.engine, position, status.value)
                for position, status in enumerate(self.engine.status_grid())
            ],
            classes="grid",
        )
        return [
            QuestionView(
                question,
                answer=session.answer_at(session.cursor),
                active_slot=self._active_slot,
                figure=figure,
            ),
            grid,
        ]

    def _update_stage(self) -> None:
        if self.engine is None:
            return
        try:
            stage = self.query_one("#stage", Container)
        except (NoMatches, ScreenStackError):
            return
        # Removal completes later, so stage children must not carry ids.
        stage.remove_children()
        stage.mount(*self._stage_widgets())
        self._update_text("#header", self.header_text())

    def _update_text(self, selector: str, text: str) -> None:
        try:
            widget = self.query_one(selector, Static)
        except (NoMatches, ScreenStackError):
            return
        widget.update(text)


class QuestionView(Widget):
    """Question text, optional figure and the answer buttons."""

    def __init__(
        self,
        question: Question,
        *,
        answer: AnswerPair,
        active_slot: int = 0,
        figure: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.question = question
        self.answer = answer
        self.active_slot = active_slot
        self.figure = figure

    def compose(self) -> ComposeResult:
        yield Static(self.question.text, id="question-text")
        if self.figure:
            yield Static(f"Figure: {self.figure}", id="figure")
        if isinstance(self.question, DualQuantityQuestion):
            with Horizontal(id="choices"):
                for slot, name in enumerate(self.question.quantities):
                    marker = "▶ " if slot == self.active_slot else ""
                    with Vertical(classes="slot"):
                        yield Static(f"{marker}{name}")
                        for row in self.option_rows():
                            if row[0] == slot:
                                yield _option_button(row)
        else:
            with Vertical(id="choices"):
                for row in self.option_rows():
                    yield _option_button(row)
        yield Static(self.hint_text(), id="hint")

    def option_rows(self) -> List[OptionRow]:
        """(slot, value, label, selected) for every answer button."""

        rows: List[OptionRow] = []
        if isinstance(self.question, DualQuantityQuestion):
            for slot in (0, 1):
                for option in self.question.options:
                    selected = self.answer[slot] == option.value
                    rows.append((slot, option.value, option.label, selected))
            return rows
        for option in self.question.options:
            selected = option.value != UNSET and option.value in self.answer
            rows.append((0, option.value, option.label, selected))
        return rows

    def hint_text(self) -> str:
        return selection_hint(self.question, self.answer)


class ResultsView(Widget):
    """Score overview plus the optional answer review list."""

    def __init__(self, engine: SessionEngine) -> None:
        super().__init__()
        self.engine = engine

    def compose(self) -> ComposeResult:
        summary = self.engine.score()
        if summary is None:
            return
        yield Static(results_overview(self.engine, summary), id="overview")
        if self.engine.session.show_answers:
            yield Static(answers_table(self.engine), id="answer-review")
        yield Static(self.actions_text(), id="actions")

    def actions_text(self) -> str:
        session = self.engine.session
        actions = ["a: show/hide answers", "R: restart"]
        if session.mode is Mode.PRIMARY and session.mistake_indices:
            actions.insert(0, "r: review mistakes")
        return " · ".join(actions)


def _option_button(row: OptionRow) -> Button:
    slot, value, label, selected = row
    button = Button(f"{value}) {label}", id=f"pick-{slot}-{value}")
    if selected:
        button.add_class("selected")
    return button


def _grid_button(
    engine: SessionEngine, position: int, status: str
) -> Button:
    label = str(engine.display_number(position))
    button = Button(label, id=f"goto-{position}")
    button.add_class(status)
    return button


def _only_clock_changed(before: Session, after: Session) -> bool:
    return replace(before, elapsed_seconds=after.elapsed_seconds) == after
