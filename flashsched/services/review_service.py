"""Review service for managing card reviews."""

import os
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from aws_lambda_powertools import Logger

from ..models.review import (
    DueCardInfo,
    DueCardsResponse,
    ReviewPreviousState,
    ReviewResponse,
    ReviewUpdatedState,
)
from ..models.schedule import ReviewHistoryEntry, ScheduleState
from .due_selector import next_due_at, overdue_days, select_due
from .ports import CardStore, HistoryLog, HistoryLogError, ReviewStateStore
from .srs import InvalidGradeError, advance, validate_grade

logger = Logger()

DEFAULT_TIMEZONE = "UTC"

__all__ = [
    "CardNotFoundError",
    "InvalidGradeError",
    "ReviewService",
    "ReviewServiceError",
    "ScheduleStateNotFoundError",
]


class ReviewServiceError(Exception):
    """Base exception for review service errors."""

    pass


class CardNotFoundError(ReviewServiceError):
    """Raised when card is not found."""

    pass


class ScheduleStateNotFoundError(ReviewServiceError):
    """Raised when a card has no schedule state to review."""

    pass


def _load_timezone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Invalid timezone '{tz_name}', falling back to {DEFAULT_TIMEZONE}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def _load_session_limit(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    try:
        limit = int(raw)
    except ValueError:
        logger.warning(f"Invalid SESSION_CARD_LIMIT '{raw}', ignoring")
        return None
    return limit if limit > 0 else None


class ReviewService:
    """Service for managing card reviews and SRS calculations.

    Each review is a read-modify-write of the card's schedule state. That
    cycle is not atomic: callers that may grade the same card from two places
    at once must serialize on the card themselves.
    """

    def __init__(
        self,
        card_store: CardStore,
        state_store: ReviewStateStore,
        history_log: HistoryLog,
        timezone_name: Optional[str] = None,
        session_limit: Optional[int] = None,
    ):
        """Initialize ReviewService.

        Args:
            card_store: Source of card content and deck membership.
            state_store: Owner of per-card schedule states.
            history_log: Append-only review history.
            timezone_name: IANA zone used for calendar-day scheduling.
                Defaults to SRS_TIMEZONE env var, then UTC.
            session_limit: Maximum number of due cards per session.
                Defaults to SESSION_CARD_LIMIT env var, unlimited if unset.
        """
        self.card_store = card_store
        self.state_store = state_store
        self.history_log = history_log
        self.timezone = _load_timezone(
            timezone_name or os.environ.get("SRS_TIMEZONE", DEFAULT_TIMEZONE)
        )
        if session_limit is not None:
            self.session_limit = session_limit if session_limit > 0 else None
        else:
            self.session_limit = _load_session_limit(os.environ.get("SESSION_CARD_LIMIT"))

    def now(self) -> datetime:
        """Current time in the configured zone."""
        return datetime.now(self.timezone)

    def _localize(self, now: Optional[datetime]) -> datetime:
        if now is None:
            return self.now()
        if now.utcoffset() is None:
            raise ValueError("now must be timezone-aware")
        return now.astimezone(self.timezone)

    def create_schedule(self, card_id: str, now: Optional[datetime] = None) -> ScheduleState:
        """Seed the schedule state of a newly created card.

        Args:
            card_id: The card's ID.
            now: Creation time. Defaults to the current time.

        Returns:
            The persisted initial state (due immediately).
        """
        state = ScheduleState.initial(self._localize(now))
        self.state_store.put_state(card_id, state)
        logger.info(f"Created schedule for card {card_id}")
        return state

    def remove_schedule(self, card_id: str) -> None:
        """Drop the schedule state of a deleted card."""
        self.state_store.delete_state(card_id)
        logger.info(f"Removed schedule for card {card_id}")

    def submit_review(
        self,
        card_id: str,
        grade: int,
        now: Optional[datetime] = None,
    ) -> ReviewResponse:
        """Submit a review for a card and update SRS parameters.

        Args:
            card_id: The card's ID.
            grade: Review grade (0-5).
            now: Review time. Defaults to the current time.

        Returns:
            ReviewResponse with previous and updated states.

        Raises:
            InvalidGradeError: If grade is not an integer in range 0-5.
            CardNotFoundError: If card does not exist.
            ScheduleStateNotFoundError: If card has no schedule state.
        """
        validate_grade(grade)
        reviewed_at = self._localize(now)

        card = self.card_store.get_card(card_id)
        if card is None:
            raise CardNotFoundError(f"Card not found: {card_id}")

        state = self.state_store.get_state(card_id)
        if state is None:
            logger.error(f"Card {card_id} has no schedule state")
            raise ScheduleStateNotFoundError(f"Schedule state not found: {card_id}")

        # Store previous state
        previous = ReviewPreviousState(
            ease_factor=state.ease_factor,
            interval=state.interval,
            repetitions=state.repetitions,
            due_date=state.next_review_at.date().isoformat(),
        )

        # Calculate and persist new SRS parameters
        result = advance(state, grade, reviewed_at).model_copy(
            update={"last_reviewed_at": reviewed_at}
        )
        self.state_store.put_state(card_id, result)

        # Record review in history log
        self._record_review(
            ReviewHistoryEntry(
                card_id=card_id,
                grade=grade,
                reviewed_at=reviewed_at,
                ease_factor_before=state.ease_factor,
                ease_factor_after=result.ease_factor,
                interval_before=state.interval,
                interval_after=result.interval,
            )
        )

        logger.info(
            f"Reviewed card {card_id} with grade {grade}: "
            f"interval {state.interval} -> {result.interval}"
        )

        updated = ReviewUpdatedState(
            ease_factor=result.ease_factor,
            interval=result.interval,
            repetitions=result.repetitions,
            due_date=result.next_review_at.date().isoformat(),
        )

        return ReviewResponse(
            card_id=card_id,
            grade=grade,
            previous=previous,
            updated=updated,
            reviewed_at=reviewed_at,
        )

    def _record_review(self, entry: ReviewHistoryEntry) -> None:
        """Append a review event to the history log.

        History is for analytics only, so a failure is logged and the review
        itself still stands.
        """
        try:
            self.history_log.append(entry)
        except HistoryLogError as e:
            logger.warning(f"Failed to record review history for card {entry.card_id}: {e}")

    def get_due_cards(
        self,
        deck_id: str,
        now: Optional[datetime] = None,
    ) -> DueCardsResponse:
        """Get cards due for review in a deck.

        Args:
            deck_id: The deck's ID.
            now: Reference time. Defaults to the current time.

        Returns:
            DueCardsResponse with due cards and metadata. ``total_due_count``
            counts every due card, even past the session limit.
        """
        now = self._localize(now)

        cards = self.card_store.list_cards(deck_id)
        states = self.state_store.get_states([card.card_id for card in cards])
        schedules = [(card.card_id, states.get(card.card_id)) for card in cards]

        due_ids = select_due(schedules, now)
        total_due = len(due_ids)
        if self.session_limit is not None:
            due_ids = due_ids[: self.session_limit]

        cards_by_id = {card.card_id: card for card in cards}
        due_card_infos: List[DueCardInfo] = []
        for card_id in due_ids:
            card = cards_by_id[card_id]
            state = states[card_id]
            due_card_infos.append(
                DueCardInfo(
                    card_id=card.card_id,
                    front=card.front,
                    back=card.back,
                    deck_id=card.deck_id,
                    due_date=state.next_review_at.date().isoformat(),
                    overdue_days=overdue_days(state, now),
                )
            )

        # Get next due date if no cards are due now
        next_due_date = None
        if not due_card_infos:
            upcoming = next_due_at(schedules)
            if upcoming is not None:
                try:
                    upcoming = upcoming.astimezone(self.timezone)
                except OverflowError:
                    # Saturated review time has no local equivalent
                    pass
                next_due_date = upcoming.date().isoformat()

        logger.info(f"Deck {deck_id}: {total_due} of {len(cards)} cards due")

        return DueCardsResponse(
            due_cards=due_card_infos,
            total_due_count=total_due,
            next_due_date=next_due_date,
        )
