"""Study session over a frozen snapshot of due cards."""

from datetime import datetime
from typing import List, Optional

from aws_lambda_powertools import Logger

from ..models.review import DueCardInfo, ReviewResponse
from .review_service import ReviewService, ReviewServiceError

logger = Logger()


class SessionCompleteError(ReviewServiceError):
    """Raised when grading a session that has no cards left."""

    pass


class StudySession:
    """Walk through the cards of a deck that were due when the session began.

    The due set is taken once, at construction. It is never re-evaluated, so
    grading a card (or the clock moving on) does not add or remove other cards
    from a session in progress.
    """

    def __init__(
        self,
        review_service: ReviewService,
        deck_id: str,
        now: Optional[datetime] = None,
    ):
        self.review_service = review_service
        self.deck_id = deck_id

        snapshot = review_service.get_due_cards(deck_id, now=now)
        self.cards: List[DueCardInfo] = list(snapshot.due_cards)
        self.results: List[ReviewResponse] = []
        self._index = 0

        logger.info(f"Started study session for deck {deck_id} with {len(self.cards)} cards")

    @property
    def total(self) -> int:
        return len(self.cards)

    @property
    def position(self) -> int:
        """1-based position of the current card, or ``total`` when complete."""
        return min(self._index + 1, self.total)

    @property
    def remaining(self) -> int:
        return self.total - self._index

    @property
    def is_complete(self) -> bool:
        return self._index >= self.total

    @property
    def current_card(self) -> Optional[DueCardInfo]:
        if self.is_complete:
            return None
        return self.cards[self._index]

    @property
    def progress(self) -> float:
        """Percentage of the session reached, counting the current card."""
        if not self.cards:
            return 100.0
        return self.position / self.total * 100

    def grade(self, grade: int, now: Optional[datetime] = None) -> ReviewResponse:
        """Grade the current card and move to the next one.

        Raises:
            SessionCompleteError: If every card has already been graded.
            InvalidGradeError: If grade is invalid; the session does not move.
        """
        card = self.current_card
        if card is None:
            raise SessionCompleteError(f"Study session for deck {self.deck_id} is complete")

        response = self.review_service.submit_review(card.card_id, grade, now=now)
        self.results.append(response)
        self._index += 1

        if self.is_complete:
            logger.info(f"Completed study session for deck {self.deck_id}: {self.total} cards reviewed")
        return response
