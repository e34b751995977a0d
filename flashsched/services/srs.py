"""SM-2 Spaced Repetition System algorithm implementation."""

import math
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from typing import Any

from ..models.schedule import DEFAULT_EASE_FACTOR, EASE_FACTOR_MINIMUM, ScheduleState

__all__ = [
    "DEFAULT_EASE_FACTOR",
    "EASE_FACTOR_MINIMUM",
    "GRADE_MAXIMUM",
    "GRADE_MINIMUM",
    "LATEST_REVIEW_AT",
    "PASSING_GRADE",
    "InvalidGradeError",
    "add_days",
    "advance",
    "get_grade_description",
    "is_successful_grade",
    "round_half_up",
    "validate_grade",
]

GRADE_MINIMUM = 0
GRADE_MAXIMUM = 5

# Lowest grade counted as a successful recall
PASSING_GRADE = 3

# next_review_at saturates here once now + interval no longer fits a datetime
LATEST_REVIEW_AT = datetime.max.replace(tzinfo=timezone.utc)

GRADE_DESCRIPTIONS = {
    0: "Complete blackout",
    1: "Incorrect response; correct answer remembered",
    2: "Incorrect; correct answer seemed easy to recall",
    3: "Correct with serious difficulty",
    4: "Correct with some hesitation",
    5: "Perfect response",
}


class InvalidGradeError(ValueError):
    """Raised when a grade is not an integer in range 0-5."""

    pass


def validate_grade(grade: Any) -> int:
    """Return ``grade`` unchanged if it is a valid review grade.

    Raises:
        InvalidGradeError: If grade is not an int or not in range 0-5.
    """
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidGradeError(f"Grade must be an integer, got {grade!r}")
    if not GRADE_MINIMUM <= grade <= GRADE_MAXIMUM:
        raise InvalidGradeError(f"Grade must be between 0 and 5, got {grade}")
    return grade


def is_successful_grade(grade: int) -> bool:
    return grade >= PASSING_GRADE


def get_grade_description(grade: int) -> str:
    """Human readable label for a grade, or an empty string if unknown."""
    return GRADE_DESCRIPTIONS.get(grade, "")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def add_days(moment: datetime, days: int) -> datetime:
    """Add whole calendar days to ``moment`` in its own time zone.

    The wall clock time is kept across DST changes, so the elapsed time can be
    23 or 25 hours. A wall time that does not exist on the target date is
    moved forward past the gap.

    Intervals are not capped, but datetimes are. A result past the last
    representable instant is pinned to ``LATEST_REVIEW_AT`` (in UTC).
    """
    try:
        shifted = moment + timedelta(days=days)
        if shifted.tzinfo is None:
            return shifted
        return shifted.astimezone(timezone.utc).astimezone(shifted.tzinfo)
    except OverflowError:
        if moment.tzinfo is None:
            return datetime.max
        return LATEST_REVIEW_AT


def _grow_interval(interval: int, ease_factor: float) -> int:
    try:
        return round_half_up(interval * ease_factor)
    except OverflowError:
        # Product no longer fits a float; finish in exact arithmetic
        return math.floor(Fraction(interval) * Fraction(ease_factor) + Fraction(1, 2))


def advance(state: ScheduleState, grade: int, now: datetime) -> ScheduleState:
    """
    Calculate the next schedule state using the SM-2 algorithm.

    The SuperMemo 2 algorithm calculates the optimal time interval
    for reviewing a flashcard based on the user's performance.

    Args:
        state: Current schedule state of the card
        grade: Review grade (0-5)
            - 0: Complete blackout
            - 1: Incorrect response; correct answer remembered
            - 2: Incorrect; correct answer seemed easy to recall
            - 3: Correct with serious difficulty
            - 4: Correct with some hesitation
            - 5: Perfect response
        now: Instant of grading (timezone-aware)

    Returns:
        New ScheduleState. ``last_reviewed_at`` is carried over unchanged;
        the caller stamps it when persisting.

    Raises:
        InvalidGradeError: If grade is not an integer in range 0-5
        ValueError: If now is a naive datetime
    """
    validate_grade(grade)
    if now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")

    # Grade 0-2: Incorrect response - reset
    if not is_successful_grade(grade):
        new_repetitions = 0
        new_interval = 1
    else:
        # Grade 3-5: Correct response
        if state.repetitions == 0:
            new_interval = 1
        elif state.repetitions == 1:
            new_interval = 6
        else:
            new_interval = _grow_interval(state.interval, state.ease_factor)
        new_repetitions = state.repetitions + 1

    # Update ease factor (applies to all grades, uses the prior factor)
    new_ease_factor = state.ease_factor + (0.1 - (5 - grade) * (0.08 + (5 - grade) * 0.02))

    # Enforce ease factor minimum
    if new_ease_factor < EASE_FACTOR_MINIMUM:
        new_ease_factor = EASE_FACTOR_MINIMUM

    return ScheduleState(
        ease_factor=new_ease_factor,
        interval=new_interval,
        repetitions=new_repetitions,
        next_review_at=add_days(now, new_interval),
        last_reviewed_at=state.last_reviewed_at,
    )
