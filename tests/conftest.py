"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest

# Set environment variables for testing
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["POWERTOOLS_SERVICE_NAME"] = "flashsched-test"
os.environ.pop("SRS_TIMEZONE", None)
os.environ.pop("SESSION_CARD_LIMIT", None)

from flashsched.models.card import Card  # noqa: E402
from flashsched.models.schedule import ReviewHistoryEntry, ScheduleState  # noqa: E402
from flashsched.services.ports import (  # noqa: E402
    CardStore,
    HistoryLog,
    HistoryLogError,
    ReviewStateStore,
)
from flashsched.services.review_service import ReviewService  # noqa: E402


class InMemoryCardStore(CardStore):
    """Card store keeping cards in insertion order."""

    def __init__(self):
        self.cards: Dict[str, Card] = {}

    def add(self, card: Card) -> Card:
        self.cards[card.card_id] = card
        return card

    def get_card(self, card_id: str) -> Optional[Card]:
        return self.cards.get(card_id)

    def list_cards(self, deck_id: str) -> List[Card]:
        return [card for card in self.cards.values() if card.deck_id == deck_id]


class InMemoryReviewStateStore(ReviewStateStore):
    """Review-state store backed by a dict."""

    def __init__(self):
        self.states: Dict[str, ScheduleState] = {}

    def get_state(self, card_id: str) -> Optional[ScheduleState]:
        return self.states.get(card_id)

    def get_states(self, card_ids: Sequence[str]) -> Dict[str, ScheduleState]:
        return {card_id: self.states[card_id] for card_id in card_ids if card_id in self.states}

    def put_state(self, card_id: str, state: ScheduleState) -> None:
        self.states[card_id] = state

    def delete_state(self, card_id: str) -> None:
        self.states.pop(card_id, None)


class InMemoryHistoryLog(HistoryLog):
    """History log that can be told to fail."""

    def __init__(self):
        self.entries: List[ReviewHistoryEntry] = []
        self.fail = False

    def append(self, entry: ReviewHistoryEntry) -> None:
        if self.fail:
            raise HistoryLogError("history unavailable")
        self.entries.append(entry)


@pytest.fixture
def base_time():
    """Fixed reference instant in UTC."""
    return datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def card_store():
    return InMemoryCardStore()


@pytest.fixture
def state_store():
    return InMemoryReviewStateStore()


@pytest.fixture
def history_log():
    return InMemoryHistoryLog()


@pytest.fixture
def review_service(card_store, state_store, history_log):
    """Create ReviewService with in-memory collaborators."""
    return ReviewService(
        card_store=card_store,
        state_store=state_store,
        history_log=history_log,
        timezone_name="UTC",
    )


@pytest.fixture
def make_card(card_store, review_service):
    """Create a card in the store and seed its schedule."""

    def _make_card(
        front: str = "Test Question",
        back: str = "Test Answer",
        deck_id: str = "test-deck-id",
        card_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Card:
        kwargs = {"front": front, "back": back, "deck_id": deck_id}
        if card_id:
            kwargs["card_id"] = card_id
        card = card_store.add(Card(**kwargs))
        review_service.create_schedule(card.card_id, now=now)
        return card

    return _make_card
