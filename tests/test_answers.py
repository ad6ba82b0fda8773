from __future__ import annotations

import pytest

from fixtures import dual, selection
from physics_drill.drill import answers


def test_choose_quantity_keeps_other_slot() -> None:
    assert answers.choose_quantity((1, 3), 0, 2) == (2, 3)
    assert answers.choose_quantity((1, 3), 1, 2) == (1, 2)


def test_choose_quantity_rejects_bad_slot() -> None:
    with pytest.raises(ValueError):
        answers.choose_quantity((0, 0), 2, 1)


def test_choose_single_clears_second_slot() -> None:
    assert answers.choose_single(3) == (3, 0)


@pytest.mark.parametrize(
    ("current", "value", "expected"),
    [
        ((0, 0), 2, (2, 0)),
        ((2, 0), 4, (2, 4)),
        ((2, 4), 5, (2, 4)),
        ((2, 4), 2, (4, 0)),
        ((2, 4), 4, (2, 0)),
        ((2, 0), 2, (0, 0)),
    ],
)
def test_toggle_statement(current, value, expected) -> None:
    assert answers.toggle_statement(current, value) == expected


def test_pick_dispatches_on_question_type() -> None:
    assert answers.pick(dual(0), (1, 0), 3, slot=1) == (1, 3)
    assert answers.pick(selection(0), (1, 0), 3) == (3, 0)
    assert answers.pick(selection(0, option_count=5), (1, 0), 3) == (1, 3)


def test_is_valid_value() -> None:
    assert answers.is_valid_value(dual(0), 3)
    assert not answers.is_valid_value(dual(0), 4)
    assert answers.is_valid_value(selection(0, option_count=5), 5)
    assert not answers.is_valid_value(selection(0), 0)


def test_selection_hint_text() -> None:
    assert answers.selection_hint(dual(0), (1, 0)) == (
        "Answered 1 of 2 quantities"
    )
    assert answers.selection_hint(selection(0), (0, 0)) == "Choose one option"
    assert answers.selection_hint(selection(0), (2, 0)) == "Answer selected"
    long_list = selection(0, option_count=5)
    assert answers.selection_hint(long_list, (2, 0)) == "Selected 1 of 2"
    assert answers.selection_hint(long_list, (2, 5)) == "Selected 2 of 2 ✓"
