"""Session state machine for drill passes.

A pass is either ``primary`` (every question in bank order) or ``review``
(only the questions missed in the last primary pass). Each pass is
in progress until the learner advances past its last question, then shows
results. Transitions are plain functions from one :class:`Session` to the
next; :func:`apply` routes presentation intents to them.
:class:`SessionEngine` holds the current session for a presentation and
keeps the elapsed-time clock running only while a pass is in progress.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence, Union

from .evaluator import evaluate
from .models import (
    AnswerPair,
    AnswerRecord,
    Mode,
    Notice,
    Phase,
    Question,
    QuestionStatus,
    Session,
)
from .scoring import ReviewTally, ScoreSummary, calculate_score, review_tally
from .timer import SessionClock, TickerFactory

__all__ = [
    "AnswerChange",
    "Next",
    "Prev",
    "Jump",
    "ToggleReview",
    "Restart",
    "ToggleShowAnswers",
    "Tick",
    "Intent",
    "Transition",
    "SessionEngine",
    "apply",
    "advance",
    "complete_primary_pass",
    "jump_to",
    "new_session",
    "restart",
    "retreat",
    "start_review",
    "status_grid",
    "submit_answer",
    "tick",
    "toggle_show_answers",
]

QuestionBankLike = Sequence[Question]
SessionListener = Callable[[Session], None]


@dataclass(frozen=True)
class AnswerChange:
    """New answer for ``position`` (the cursor when omitted)."""

    answer: AnswerPair
    position: int | None = None


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Prev:
    pass


@dataclass(frozen=True)
class Jump:
    position: int


@dataclass(frozen=True)
class ToggleReview:
    pass


@dataclass(frozen=True)
class Restart:
    pass


@dataclass(frozen=True)
class ToggleShowAnswers:
    pass


@dataclass(frozen=True)
class Tick:
    pass


Intent = Union[
    AnswerChange,
    Next,
    Prev,
    Jump,
    ToggleReview,
    Restart,
    ToggleShowAnswers,
    Tick,
]


@dataclass(frozen=True)
class Transition:
    """Outcome of applying an intent: the next session and any notice."""

    session: Session
    notice: Notice | None = None

    @property
    def rejected(self) -> bool:
        return self.notice is not None


def new_session(total: int) -> Session:
    """Fresh primary session over ``total`` questions."""

    if total <= 0:
        raise ValueError("A drill session needs at least one question.")
    return Session(order=tuple(range(total)))


def submit_answer(
    session: Session,
    bank: QuestionBankLike,
    position: int,
    answer: AnswerPair,
) -> Transition:
    """Record ``answer`` for ``position`` and evaluate it immediately."""

    if session.completed:
        return Transition(session, Notice.PASS_COMPLETED)
    if not _in_range(session, position):
        return Transition(session, Notice.INVALID_NAVIGATION)
    index = session.order[position]
    pair = (int(answer[0]), int(answer[1]))
    answers = dict(session.answers)
    answers[index] = AnswerRecord(pair, evaluate(bank[index], pair))
    return Transition(session.evolve(answers=answers))


def advance(session: Session, bank: QuestionBankLike) -> Transition:
    """Move to the next position or finish the pass from the last one."""

    if session.completed:
        return Transition(session, Notice.PASS_COMPLETED)
    if not session.is_last:
        return Transition(session.evolve(cursor=session.cursor + 1))
    if session.mode is Mode.PRIMARY:
        return Transition(complete_primary_pass(session, bank))
    return Transition(session.evolve(completed=True))


def retreat(session: Session) -> Transition:
    if session.completed:
        return Transition(session, Notice.PASS_COMPLETED)
    if session.cursor == 0:
        return Transition(session)
    return Transition(session.evolve(cursor=session.cursor - 1))


def jump_to(session: Session, position: int) -> Transition:
    if session.completed:
        return Transition(session, Notice.PASS_COMPLETED)
    if not _in_range(session, position):
        return Transition(session, Notice.INVALID_NAVIGATION)
    return Transition(session.evolve(cursor=position))


def complete_primary_pass(session: Session, bank: QuestionBankLike) -> Session:
    """Collect the missed questions of a primary pass and show results.

    Every bank index without a record, or with an incorrect one, becomes a
    mistake, in ascending order. The list is rebuilt from the answers each
    time. Review sessions are returned untouched so their inherited mistake
    list stays as the primary pass left it.
    """

    if session.mode is not Mode.PRIMARY:
        return session
    mistakes = []
    for index in range(len(bank)):
        record = session.answers.get(index)
        if record is None or not record.is_correct:
            mistakes.append(index)
    return session.evolve(mistake_indices=tuple(mistakes), completed=True)


def start_review(session: Session) -> Transition:
    """Open a review pass over the last primary pass's mistakes."""

    if not session.mistake_indices:
        return Transition(session, Notice.NOTHING_TO_REVIEW)
    if session.mode is not Mode.PRIMARY or not session.completed:
        return Transition(session, Notice.REVIEW_UNAVAILABLE)
    mistakes = session.mistake_indices
    return Transition(
        Session(order=mistakes, mode=Mode.REVIEW, mistake_indices=mistakes)
    )


def restart(bank: QuestionBankLike) -> Transition:
    return Transition(new_session(len(bank)))


def toggle_show_answers(session: Session) -> Transition:
    return Transition(session.evolve(show_answers=not session.show_answers))


def tick(session: Session) -> Session:
    if session.completed:
        return session
    return session.evolve(elapsed_seconds=session.elapsed_seconds + 1)


def apply(
    session: Session, bank: QuestionBankLike, intent: Intent
) -> Transition:
    """Apply a presentation intent to ``session``."""

    if isinstance(intent, AnswerChange):
        position = intent.position
        if position is None:
            position = session.cursor
        return submit_answer(session, bank, position, intent.answer)
    if isinstance(intent, Next):
        return advance(session, bank)
    if isinstance(intent, Prev):
        return retreat(session)
    if isinstance(intent, Jump):
        return jump_to(session, intent.position)
    if isinstance(intent, ToggleReview):
        return start_review(session)
    if isinstance(intent, Restart):
        return restart(bank)
    if isinstance(intent, ToggleShowAnswers):
        return toggle_show_answers(session)
    if isinstance(intent, Tick):
        return Transition(tick(session))
    raise TypeError(f"Unsupported intent: {intent!r}")


def status_grid(session: Session) -> list[QuestionStatus]:
    """Classify every position of the active ordering for navigation."""

    statuses: list[QuestionStatus] = []
    for position, index in enumerate(session.order):
        record = session.answers.get(index)
        if position == session.cursor:
            statuses.append(QuestionStatus.CURRENT)
        elif record is None:
            statuses.append(QuestionStatus.UNANSWERED)
        elif record.is_correct:
            statuses.append(QuestionStatus.CORRECT)
        else:
            statuses.append(QuestionStatus.INCORRECT)
    return statuses


def _in_range(session: Session, position: object) -> bool:
    if isinstance(position, bool) or not isinstance(position, int):
        return False
    return 0 <= position < session.total


class SessionEngine:
    """Single writer of the drill session used by a presentation.

    Call :meth:`start` once the presentation is ready to receive ticks and
    :meth:`close` on teardown. Listeners are called with the new session
    after every change, including clock ticks.
    """

    def __init__(
        self,
        bank: QuestionBankLike,
        *,
        ticker_factory: TickerFactory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._bank = bank
        self._session = new_session(len(bank))
        self._logger = logger or logging.getLogger(__name__)
        self._listeners: list[SessionListener] = []
        self._clock = SessionClock(ticker_factory, self._on_tick)
        self._started = False

    @property
    def bank(self) -> QuestionBankLike:
        return self._bank

    @property
    def session(self) -> Session:
        return self._session

    @property
    def clock(self) -> SessionClock:
        return self._clock

    @property
    def phase(self) -> Phase:
        return self._session.phase

    @property
    def mode(self) -> Mode:
        return self._session.mode

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        self._started = True
        if self._session.phase is Phase.IN_PROGRESS:
            self._clock.start()
        self._logger.info(
            "Drill session started",
            extra={"question_count": len(self._bank)},
        )

    def close(self) -> None:
        self._started = False
        self._clock.stop()
        self._logger.debug("Drill session closed")

    def dispatch(self, intent: Intent) -> Notice | None:
        before = self._session
        transition = apply(before, self._bank, intent)
        self._commit(
            before, transition.session, fresh=isinstance(intent, Restart)
        )
        if transition.notice is not None:
            self._log_notice(intent, transition.notice)
        elif not isinstance(intent, Tick):
            self._log_change(intent, before, transition.session)
        return transition.notice

    def submit_answer(
        self, position: int, answer: AnswerPair
    ) -> Notice | None:
        return self.dispatch(AnswerChange(answer, position))

    def answer_current(self, answer: AnswerPair) -> Notice | None:
        return self.dispatch(AnswerChange(answer))

    def advance(self) -> Notice | None:
        return self.dispatch(Next())

    def retreat(self) -> Notice | None:
        return self.dispatch(Prev())

    def jump_to(self, position: int) -> Notice | None:
        return self.dispatch(Jump(position))

    def start_review(self) -> Notice | None:
        return self.dispatch(ToggleReview())

    def restart(self) -> Notice | None:
        return self.dispatch(Restart())

    def toggle_show_answers(self) -> Notice | None:
        return self.dispatch(ToggleShowAnswers())

    def tick(self) -> None:
        self.dispatch(Tick())

    def complete_primary_pass(self) -> None:
        before = self._session
        after = complete_primary_pass(before, self._bank)
        self._commit(before, after, fresh=False)
        if after.mode is Mode.PRIMARY:
            self._log_pass_completed(after)

    def question_at(self, position: int) -> Question:
        return self._bank[self._session.order[position]]

    @property
    def current_question(self) -> Question:
        return self._bank[self._session.current_index]

    def display_number(self, position: int | None = None) -> int:
        """1-based bank number of ``position`` (the cursor by default)."""

        target = self._session.cursor if position is None else position
        return self._session.order[target] + 1

    def status_grid(self) -> list[QuestionStatus]:
        return status_grid(self._session)

    def score(self) -> ScoreSummary | None:
        if self._session.phase is not Phase.RESULTS:
            return None
        return calculate_score(self._session, len(self._bank))

    def review_tally(self) -> ReviewTally | None:
        if self._session.mode is not Mode.REVIEW:
            return None
        return review_tally(self._session)

    def _on_tick(self) -> None:
        self.tick()

    def _commit(self, before: Session, after: Session, *, fresh: bool) -> None:
        self._session = after
        if self._started:
            if after.phase is Phase.RESULTS:
                self._clock.stop()
            elif fresh or before.phase is Phase.RESULTS:
                self._clock.start()
        if after is not before:
            for listener in list(self._listeners):
                listener(after)

    def _log_notice(self, intent: Intent, notice: Notice) -> None:
        level = (
            logging.WARNING
            if notice is Notice.INVALID_NAVIGATION
            else logging.INFO
        )
        self._logger.log(
            level,
            "Intent rejected",
            extra={
                "intent": type(intent).__name__,
                "notice": notice.value,
                "mode": self._session.mode.value,
                "cursor": self._session.cursor,
            },
        )

    def _log_change(
        self, intent: Intent, before: Session, after: Session
    ) -> None:
        finished = after.completed and not before.completed
        if isinstance(intent, Next) and finished:
            if after.mode is Mode.PRIMARY:
                self._log_pass_completed(after)
            else:
                self._logger.info(
                    "Review pass completed",
                    extra={"elapsed_seconds": after.elapsed_seconds},
                )
            return
        if isinstance(intent, ToggleReview):
            self._logger.info(
                "Review pass started",
                extra={"question_count": after.total},
            )
            return
        if isinstance(intent, Restart):
            self._logger.info("Drill session restarted")
            return
        self._logger.debug(
            "Intent applied",
            extra={
                "intent": type(intent).__name__,
                "mode": after.mode.value,
                "cursor": after.cursor,
            },
        )

    def _log_pass_completed(self, session: Session) -> None:
        summary = calculate_score(session, len(self._bank))
        self._logger.info(
            "Primary pass completed",
            extra={
                "correct_count": summary.correct_count,
                "percentage": summary.percentage,
                "mistakes": list(session.mistake_indices),
                "elapsed_seconds": session.elapsed_seconds,
            },
        )
