"""Rich-powered drill loop.

The loop renders the engine's current state, reads one command per prompt,
turns it into an engine intent and repeats until the learner quits. All
state lives in :class:`~physics_drill.drill.engine.SessionEngine`; this
module only parses input and draws.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .answers import is_valid_value, pick, selection_hint
from .assets import AssetResolver
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
    QuestionStatus,
    Session,
    option_label,
)
from .scoring import ScoreSummary, format_elapsed
from .timer import PollingScheduler

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit", "interrupted", "empty"]
CommandType = Literal[
    "next",
    "prev",
    "jump",
    "pick",
    "review",
    "restart",
    "answers",
    "help",
    "quit",
]

BAND_STYLES = {"good": "bold green", "fair": "bold yellow", "poor": "bold red"}
STATUS_STYLES = {
    QuestionStatus.CORRECT: "green",
    QuestionStatus.INCORRECT: "red",
    QuestionStatus.UNANSWERED: "dim",
    QuestionStatus.CURRENT: "bold reverse cyan",
}

_PROGRESS_COMMANDS = (
    "Commands: <n> pick option, <q>:<n> answer quantity q, n (next), "
    "p (prev), g <number> (go to), quit"
)
_RESULTS_COMMANDS = "Commands: a (show/hide answers), restart, quit"


@dataclass(frozen=True)
class DrillCommand:
    """Normalized user command parsed from console input."""

    type: CommandType
    values: tuple[int, ...] = ()
    slot: int | None = None


@dataclass(frozen=True)
class DrillRunResult:
    """Return value from :func:`run_drill_session`."""

    session: Session | None
    score: ScoreSummary | None
    exit_action: ExitAction


def parse_drill_command(raw: str | None) -> DrillCommand | None:
    """Parse raw console input; ``None`` means unrecognised."""

    if raw is None:
        return None
    text = raw.strip().lower()
    if not text:
        return None
    if text in {"n", "next"}:
        return DrillCommand("next")
    if text in {"p", "prev", "previous", "back"}:
        return DrillCommand("prev")
    if text in {"r", "review"}:
        return DrillCommand("review")
    if text in {"restart", "again"}:
        return DrillCommand("restart")
    if text in {"a", "answers"}:
        return DrillCommand("answers")
    if text in {"h", "help", "?"}:
        return DrillCommand("help")
    if text in {"q", "quit", "exit"}:
        return DrillCommand("quit")

    head, _, rest = text.partition(" ")
    if head in {"g", "go", "goto", "jump"}:
        number = _parse_int(rest)
        return DrillCommand("jump", (number,)) if number is not None else None

    if ":" in text:
        slot_text, _, value_text = text.partition(":")
        slot = _parse_int(slot_text)
        value = _parse_int(value_text)
        if slot not in (1, 2) or value is None:
            return None
        return DrillCommand("pick", (value,), slot=slot - 1)

    numbers = [_parse_int(part) for part in text.replace(",", " ").split()]
    if not numbers or len(numbers) > 2 or None in numbers:
        return None
    return DrillCommand("pick", tuple(numbers))  # type: ignore[arg-type]


def run_drill_session(
    questions: Sequence[Question],
    console: Console,
    input_provider: InputProvider,
    *,
    resolver: AssetResolver | None = None,
    scheduler: PollingScheduler | None = None,
    show_answers: bool = False,
    logger: logging.Logger | None = None,
) -> DrillRunResult:
    """Run an interactive drill until the learner quits."""

    if not questions:
        console.print(
            Panel(
                "Question bank is empty.",
                title="Physics drill",
                border_style="yellow",
            )
        )
        return DrillRunResult(None, None, "empty")

    scheduler = scheduler or PollingScheduler()
    engine = SessionEngine(questions, ticker_factory=scheduler, logger=logger)
    engine.start()

    exit_action: ExitAction = "quit"
    try:
        while True:
            scheduler.poll()
            _render(console, engine, resolver)
            try:
                raw = input_provider()
            except (EOFError, KeyboardInterrupt, StopIteration):
                console.print("\n[bold yellow]Session interrupted.[/]")
                exit_action = "interrupted"
                break
            scheduler.poll()
            command = parse_drill_command(raw)
            if command is None:
                console.print("[red]Unrecognized command. Type h for help.[/]")
                continue
            before = engine.phase
            exit_candidate = _apply_command(command, engine, console)
            if exit_candidate:
                exit_action = exit_candidate
                break
            entered_results = (
                before is Phase.IN_PROGRESS and engine.phase is Phase.RESULTS
            )
            if (
                entered_results
                and show_answers
                and not engine.session.show_answers
            ):
                engine.toggle_show_answers()
    finally:
        engine.close()

    return DrillRunResult(engine.session, engine.score(), exit_action)


def _apply_command(
    command: DrillCommand,
    engine: SessionEngine,
    console: Console,
) -> ExitAction | None:
    notice: Notice | None = None
    if command.type == "quit":
        if engine.phase is Phase.RESULTS:
            return "finished"
        console.print("\n[bold yellow]Drill ended before the results.[/]")
        return "quit"
    if command.type == "help":
        console.print(_PROGRESS_COMMANDS)
        console.print(_RESULTS_COMMANDS + ", r (review mistakes)")
        return None
    if command.type == "next":
        notice = engine.advance()
    elif command.type == "prev":
        notice = engine.retreat()
    elif command.type == "jump":
        position = _position_for_number(engine, command.values[0])
        notice = engine.jump_to(position)
    elif command.type == "review":
        notice = engine.start_review()
    elif command.type == "restart":
        notice = engine.restart()
    elif command.type == "answers":
        if engine.phase is Phase.RESULTS:
            engine.toggle_show_answers()
        else:
            console.print("[yellow]Answers are listed with the results.[/]")
    elif command.type == "pick":
        notice = _apply_pick(command, engine, console)

    if notice is not None:
        console.print(f"[yellow]{NOTICE_MESSAGES[notice]}[/yellow]")
    return None


def _apply_pick(
    command: DrillCommand, engine: SessionEngine, console: Console
) -> Notice | None:
    if engine.phase is Phase.RESULTS:
        return Notice.PASS_COMPLETED
    question = engine.current_question
    for value in command.values:
        if not is_valid_value(question, value):
            console.print(
                "[red]'%s' is not a valid option for this question.[/red]"
                % value
            )
            return None

    current = engine.session.answer_at(engine.session.cursor)
    if isinstance(question, DualQuantityQuestion):
        if command.slot is not None:
            answer = pick(question, current, command.values[0], command.slot)
        elif len(command.values) == 2:
            answer = (command.values[0], command.values[1])
        else:
            slot = _open_slot(current)
            answer = pick(question, current, command.values[0], slot)
    else:
        answer = current
        for value in command.values:
            answer = pick(question, answer, value)
    return engine.answer_current(answer)


def _open_slot(answer: AnswerPair) -> int:
    return 1 if answer[0] != UNSET and answer[1] == UNSET else 0


def _position_for_number(engine: SessionEngine, number: int) -> int:
    order = engine.session.order
    try:
        return order.index(number - 1)
    except ValueError:
        return -1


def _parse_int(text: str) -> int | None:
    text = text.strip()
    if not text or not text.lstrip("-").isdigit():
        return None
    return int(text)


def _render(
    console: Console,
    engine: SessionEngine,
    resolver: AssetResolver | None,
) -> None:
    if engine.phase is Phase.RESULTS:
        _render_results(console, engine)
    else:
        _render_question(console, engine, resolver)


def _render_question(
    console: Console,
    engine: SessionEngine,
    resolver: AssetResolver | None,
) -> None:
    session = engine.session
    question = engine.current_question
    title = (
        f"Mistake review · {session.total} questions"
        if session.mode is Mode.REVIEW
        else "Physics drill"
    )
    header = Text.assemble(
        (f"Question {engine.display_number()}", "bold cyan"),
        (f" / {len(engine.bank)}", "dim"),
        (f"  {title}", "magenta"),
        (f"  Time {format_elapsed(session.elapsed_seconds)}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.text, style="bold"))

    if resolver is not None and question.image:
        located = resolver.locate(question.image)
        if located is not None:
            console.print(Text(f"[figure: {located}]", style="italic dim"))

    answer = session.answer_at(session.cursor)
    console.print(_answer_table(question, answer))
    console.print(Text(selection_hint(question, answer), style="dim"))
    console.print(_status_line(engine))
    console.print(Text(_PROGRESS_COMMANDS, style="dim"))


def _answer_table(question: Question, answer: AnswerPair) -> Table:
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    if isinstance(question, DualQuantityQuestion):
        table.show_header = True
        table.add_column("#", justify="center", style="cyan")
        for slot, name in enumerate(question.quantities, start=1):
            table.add_column(f"{slot}: {name}")
        for option in question.options:
            cells = [
                _choice_text(option.label, answer[slot] == option.value)
                for slot in (0, 1)
            ]
            table.add_row(str(option.value), *cells)
        return table

    table.add_column("#", justify="center", style="cyan")
    table.add_column("Option")
    for option in question.options:
        table.add_row(
            str(option.value),
            _choice_text(option.label, option.value in answer),
        )
    return table


def _choice_text(label: str, selected: bool) -> Text:
    text = Text("• " if selected else "  ")
    text.append(label, style="bold green" if selected else "")
    return text


def _status_line(engine: SessionEngine) -> Text:
    line = Text("Questions: ")
    for position, status in enumerate(engine.status_grid()):
        line.append(
            f" {engine.display_number(position)} ",
            style=STATUS_STYLES[status],
        )
    return line


def _render_results(console: Console, engine: SessionEngine) -> None:
    session = engine.session
    summary = engine.score()
    if summary is None:  # pragma: no cover - guarded by caller
        return
    title = (
        "Mistake review results"
        if session.mode is Mode.REVIEW
        else "Drill results"
    )
    console.print()
    console.rule(Text(title, style="bold magenta"))
    console.print(results_overview(engine, summary))

    if session.show_answers:
        console.print(answers_table(engine))

    actions = _RESULTS_COMMANDS
    if session.mode is Mode.PRIMARY and session.mistake_indices:
        actions += ", r (review mistakes)"
    console.print(Text(actions, style="dim"))


def results_overview(engine: SessionEngine, summary: ScoreSummary) -> Table:
    """Score table shown on both results screens."""

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row(
        "Correct answers", f"{summary.correct_count} of {summary.total}"
    )
    overview.add_row(
        "Score",
        Text(f"{summary.percentage}%", style=BAND_STYLES[summary.band]),
    )
    overview.add_row("Time", summary.elapsed_display)
    overview.add_row("Mistakes", str(summary.mistake_count))
    tally = engine.review_tally()
    if tally is not None:
        overview.add_row(
            "Fixed in review", f"{tally.correct} of {tally.total}"
        )
    return overview


def answers_table(engine: SessionEngine) -> Table:
    session = engine.session
    table = Table(title="Answer review", box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    table.add_column("Your answer", overflow="fold")
    table.add_column("Correct answer", overflow="fold")
    table.add_column("Result", justify="center")

    for index in session.order:
        question = engine.bank[index]
        record = session.answers.get(index)
        if record is None:
            yours, outcome = "— not answered", Text("–", style="dim")
        else:
            yours = describe_answer(question, record.answer)
            outcome = (
                Text("✓", style="green")
                if record.is_correct
                else Text("✗", style="red")
            )
        correct = (
            ""
            if record is not None and record.is_correct
            else describe_answer(question, question.correct)
        )
        table.add_row(str(index + 1), question.text, yours, correct, outcome)
    return table


def describe_answer(question: Question, answer: AnswerPair) -> str:
    """Human-readable form of ``answer`` for the results listing."""

    if isinstance(question, DualQuantityQuestion):
        parts = [
            f"{name}: {option_label(question, value) or '—'}"
            for name, value in zip(question.quantities, answer)
        ]
        return "; ".join(parts)
    return option_label(question, answer[0]) or "—"

