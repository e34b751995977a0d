"""
Ports (interfaces) for the collaborators around the scheduling core.

Card content, schedule states and review history are owned by external
stores. The review service depends on these abstractions, not on any
concrete storage.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from ..models.card import Card
from ..models.schedule import ReviewHistoryEntry, ScheduleState


class HistoryLogError(Exception):
    """Raised by a history log that fails to record an entry."""

    pass


class CardStore(ABC):
    """Port for card content and deck membership."""

    @abstractmethod
    def get_card(self, card_id: str) -> Optional[Card]:
        """
        Fetch a card by ID.

        Returns:
            The Card, or None if it does not exist.
        """
        pass

    @abstractmethod
    def list_cards(self, deck_id: str) -> List[Card]:
        """
        List the cards of a deck.

        Returns:
            Cards in store order. The order must be stable between calls.
        """
        pass


class ReviewStateStore(ABC):
    """
    Port for per-card schedule states.

    The store does not have to serialize writers. Callers that may review the
    same card concurrently must hold a per-card lock or transaction around
    "load state, advance, put state".
    """

    @abstractmethod
    def get_state(self, card_id: str) -> Optional[ScheduleState]:
        pass

    @abstractmethod
    def get_states(self, card_ids: Sequence[str]) -> Dict[str, ScheduleState]:
        """
        Fetch states for several cards.

        Returns:
            Mapping of card ID to state. Cards without a state are absent.
        """
        pass

    @abstractmethod
    def put_state(self, card_id: str, state: ScheduleState) -> None:
        pass

    @abstractmethod
    def delete_state(self, card_id: str) -> None:
        pass


class HistoryLog(ABC):
    """Port for the append-only review history."""

    @abstractmethod
    def append(self, entry: ReviewHistoryEntry) -> None:
        """
        Record a review event.

        Raises:
            HistoryLogError: If the entry could not be recorded.
        """
        pass
