"""Answer evaluation for both question variants."""

from __future__ import annotations

from .models import (
    AnswerPair,
    DualQuantityQuestion,
    Question,
    SelectionQuestion,
)


def evaluate(question: Question, answer: AnswerPair) -> bool:
    """Return whether ``answer`` is correct for ``question``.

    Dual-quantity questions need both slots to match the correct pair in
    order. Selection questions compare the first slot only: the second
    selection a learner may tick on a long statement list never affects the
    result. That asymmetry is kept as-is until product owners decide whether
    both statements should be scored.
    """

    if isinstance(question, DualQuantityQuestion):
        return (
            answer[0] == question.correct[0]
            and answer[1] == question.correct[1]
        )
    if isinstance(question, SelectionQuestion):
        return answer[0] == question.correct[0]
    raise TypeError(
        f"Unsupported question type: {type(question).__name__}"
    )
