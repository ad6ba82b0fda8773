"""Build answer pairs from individual learner picks.

Presentations call these when a pick changes and send the resulting pair to
the engine as an ``AnswerChange`` intent.
"""

from __future__ import annotations

from .models import (
    UNSET,
    AnswerPair,
    DualQuantityQuestion,
    Question,
    SelectionQuestion,
)


def choose_quantity(current: AnswerPair, slot: int, value: int) -> AnswerPair:
    """Set one quantity's answer, keeping the other slot."""

    if slot == 0:
        return (value, current[1])
    if slot == 1:
        return (current[0], value)
    raise ValueError(f"slot must be 0 or 1, got {slot}")


def choose_single(value: int) -> AnswerPair:
    return (value, UNSET)


def toggle_statement(current: AnswerPair, value: int) -> AnswerPair:
    """Tick or untick ``value`` on a two-statement selection.

    Ticking fills the first empty slot; with both slots taken the pick is
    ignored until one is unticked. Unticking the first slot moves the second
    selection up.
    """

    first, second = current
    if value in current and value != UNSET:
        if first == value:
            return (second, UNSET)
        return (first, UNSET)
    if first == UNSET:
        return (value, second)
    if second == UNSET:
        return (first, value)
    return current


def pick(
    question: Question, current: AnswerPair, value: int, slot: int = 0
) -> AnswerPair:
    """Apply a pick of ``value`` the way the question's widget would."""

    if isinstance(question, DualQuantityQuestion):
        return choose_quantity(current, slot, value)
    if question.selection_limit == 1:
        return choose_single(value)
    return toggle_statement(current, value)


def selected_count(answer: AnswerPair) -> int:
    return sum(1 for value in answer if value != UNSET)


def is_valid_value(question: Question, value: int) -> bool:
    return any(option.value == value for option in question.options)


def selection_hint(question: Question, answer: AnswerPair) -> str:
    """Progress text shown under the answer widgets."""

    if isinstance(question, DualQuantityQuestion):
        done = selected_count(answer)
        return f"Answered {done} of 2 quantities"
    single = isinstance(question, SelectionQuestion) and (
        question.selection_limit == 1
    )
    if single:
        if answer[0] != UNSET:
            return "Answer selected"
        return "Choose one option"
    count = selected_count(answer)
    hint = f"Selected {count} of 2"
    if count == 2:
        hint += " ✓"
    return hint
