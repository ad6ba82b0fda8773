"""Value types shared by the drill engine and its presentations.

Questions are a tagged union of two frozen dataclasses. Code that needs to
treat the variants differently dispatches on the concrete type (or the
``kind`` tag when serialising), never on which optional fields happen to be
filled in.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Literal, Union

UNSET = 0
"""Sentinel stored in an answer slot that holds no value."""

AnswerPair = tuple[int, int]
EMPTY_ANSWER: AnswerPair = (UNSET, UNSET)


class Mode(str, Enum):
    PRIMARY = "primary"
    REVIEW = "review"


class Phase(str, Enum):
    IN_PROGRESS = "in_progress"
    RESULTS = "results"


class QuestionStatus(str, Enum):
    """Classification of a position in the navigation grid."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"
    CURRENT = "current"


class Notice(str, Enum):
    """Recoverable conditions reported back to the presentation."""

    INVALID_NAVIGATION = "invalid-navigation"
    NOTHING_TO_REVIEW = "nothing-to-review"
    REVIEW_UNAVAILABLE = "review-unavailable"
    PASS_COMPLETED = "pass-completed"


NOTICE_MESSAGES: dict[Notice, str] = {
    Notice.INVALID_NAVIGATION: "There is no question at that position.",
    Notice.NOTHING_TO_REVIEW: "No mistakes to review. Well done!",
    Notice.REVIEW_UNAVAILABLE: (
        "Mistake review starts from the results of a full pass."
    ),
    Notice.PASS_COMPLETED: (
        "This pass is finished. Restart or review your mistakes."
    ),
}


@dataclass(frozen=True)
class Option:
    """A labelled answer value."""

    label: str
    value: int


QUANTITY_OPTIONS: tuple[Option, ...] = (
    Option("increases", 1),
    Option("decreases", 2),
    Option("does not change", 3),
)

SINGLE_CHOICE_MAX_OPTIONS = 4


@dataclass(frozen=True)
class DualQuantityQuestion:
    """Two quantities, each answered with one of :data:`QUANTITY_OPTIONS`."""

    kind: ClassVar[Literal["dual_quantity"]] = "dual_quantity"

    position: int
    id: str
    text: str
    quantities: tuple[str, str]
    correct: AnswerPair
    image: str | None = None

    @property
    def options(self) -> tuple[Option, ...]:
        return QUANTITY_OPTIONS


@dataclass(frozen=True)
class SelectionQuestion:
    """A list of labelled options scored against ``correct[0]`` only."""

    kind: ClassVar[Literal["selection"]] = "selection"

    position: int
    id: str
    text: str
    options: tuple[Option, ...]
    correct: AnswerPair
    image: str | None = None

    @property
    def selection_limit(self) -> int:
        """How many options the presentation lets the learner tick."""
        if len(self.options) <= SINGLE_CHOICE_MAX_OPTIONS:
            return 1
        return 2


Question = Union[DualQuantityQuestion, SelectionQuestion]


def option_label(question: Question, value: int) -> str:
    """Return the display label for ``value`` in ``question``."""

    for option in question.options:
        if option.value == value:
            return option.label
    if isinstance(question, SelectionQuestion) and value != UNSET:
        return f"Statement {value}"
    return ""


@dataclass(frozen=True)
class AnswerRecord:
    answer: AnswerPair
    is_correct: bool


@dataclass(frozen=True)
class Session:
    """Snapshot of one pass.

    ``order`` lists the original bank indices visited by this pass and
    ``cursor`` points into it. ``answers`` is keyed by original index; a
    missing key means the question is unanswered. Instances are never
    mutated: transitions build a new value with :meth:`evolve`.
    """

    order: tuple[int, ...]
    mode: Mode = Mode.PRIMARY
    cursor: int = 0
    answers: dict[int, AnswerRecord] = field(default_factory=dict, hash=False)
    mistake_indices: tuple[int, ...] = ()
    elapsed_seconds: int = 0
    completed: bool = False
    show_answers: bool = False

    @property
    def total(self) -> int:
        return len(self.order)

    @property
    def phase(self) -> Phase:
        return Phase.RESULTS if self.completed else Phase.IN_PROGRESS

    @property
    def current_index(self) -> int:
        return self.order[self.cursor]

    @property
    def is_last(self) -> bool:
        return self.cursor == self.total - 1

    def record_at(self, position: int) -> AnswerRecord | None:
        return self.answers.get(self.order[position])

    def answer_at(self, position: int) -> AnswerPair:
        record = self.record_at(position)
        return record.answer if record else EMPTY_ANSWER

    def evolve(self, **changes: object) -> "Session":
        return replace(self, **changes)
