"""Score derivations for finished passes."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .models import Session

GOOD_THRESHOLD = 80
FAIR_THRESHOLD = 60


@dataclass(frozen=True)
class ScoreSummary:
    """Aggregate statistics for the most recent primary pass."""

    total: int
    correct_count: int
    mistake_count: int
    percentage: int
    elapsed_seconds: int

    @property
    def elapsed_display(self) -> str:
        return format_elapsed(self.elapsed_seconds)

    @property
    def band(self) -> str:
        return percentage_band(self.percentage)


@dataclass(frozen=True)
class ReviewTally:
    """How the learner did within a review pass."""

    total: int
    answered: int
    correct: int


def calculate_score(session: Session, total_questions: int) -> ScoreSummary:
    """Derive the score of the primary pass recorded in ``session``.

    ``total_questions`` is the size of the whole bank. Review sessions carry
    the primary pass's mistake list unchanged, so the same figures are
    reported on both results screens.
    """

    mistakes = len(session.mistake_indices)
    correct = total_questions - mistakes
    return ScoreSummary(
        total=total_questions,
        correct_count=correct,
        mistake_count=mistakes,
        percentage=round_percentage(correct, total_questions),
        elapsed_seconds=session.elapsed_seconds,
    )


def review_tally(session: Session) -> ReviewTally:
    records = [session.answers.get(index) for index in session.order]
    answered = [record for record in records if record is not None]
    return ReviewTally(
        total=session.total,
        answered=len(answered),
        correct=sum(1 for record in answered if record.is_correct),
    )


def round_percentage(part: int, whole: int) -> int:
    """Percentage of ``part`` in ``whole`` rounded half up."""

    if whole <= 0:
        return 0
    return math.floor(100 * part / whole + 0.5)


def format_elapsed(seconds: int) -> str:
    """Format ``seconds`` as ``m:ss``."""

    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def percentage_band(percentage: int) -> str:
    if percentage >= GOOD_THRESHOLD:
        return "good"
    if percentage >= FAIR_THRESHOLD:
        return "fair"
    return "poor"
