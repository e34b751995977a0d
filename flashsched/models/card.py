"""Card model for the flashcard scheduler."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Card(BaseModel):
    """Card domain model.

    Scheduling fields live in ``ScheduleState``, not on the card.
    """

    card_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    deck_id: str
    front: str = Field(..., min_length=1, max_length=1000, description="Front side text")
    back: str = Field(..., min_length=1, max_length=2000, description="Back side text")
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator("front", "back")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Validate card text is not blank."""
        v = v.strip()
        if not v:
            raise ValueError("Card text must not be blank")
        return v
