"""Due-card selection for study sessions."""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from aws_lambda_powertools import Logger

from ..models.schedule import ScheduleState

logger = Logger()

CardSchedule = Tuple[str, Optional[ScheduleState]]


def _scheduled(cards: Iterable[CardSchedule]) -> Iterable[Tuple[str, ScheduleState]]:
    for card_id, state in cards:
        if state is None:
            # One broken record must not block the whole session
            logger.warning(f"Skipping card {card_id}: no schedule state")
            continue
        yield card_id, state


def select_due(cards: Sequence[CardSchedule], now: datetime) -> List[str]:
    """Select the cards eligible for review at ``now``.

    A card is due when its ``next_review_at`` is at or before ``now``. Cards
    without a schedule state are skipped. The result keeps the input order and
    the inputs are not modified, so the same input always yields the same
    selection.

    The selection is meant to be taken once per study session. Grading a card
    does not change the due set of a session already in progress.

    Args:
        cards: Sequence of (card_id, schedule state or None), in store order.
        now: Reference instant (timezone-aware).

    Returns:
        List of due card IDs.
    """
    return [card_id for card_id, state in _scheduled(cards) if state.is_due(now)]


def count_due(cards: Sequence[CardSchedule], now: datetime) -> int:
    """Number of cards due at ``now``."""
    return len(select_due(cards, now))


def next_due_at(cards: Sequence[CardSchedule]) -> Optional[datetime]:
    """Earliest scheduled review among the given cards, or None."""
    review_times = [state.next_review_at for _, state in _scheduled(cards)]
    if not review_times:
        return None
    return min(review_times, key=lambda moment: moment.astimezone(timezone.utc))


def overdue_days(state: ScheduleState, now: datetime) -> int:
    """Whole days the card is past due. Zero if it is not due yet."""
    delta = now.astimezone(timezone.utc) - state.next_review_at.astimezone(timezone.utc)
    return max(0, delta.days)
