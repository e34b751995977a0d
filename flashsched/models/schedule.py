"""Schedule state models for the flashcard scheduler."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# SM-2 seed ease factor for new cards
DEFAULT_EASE_FACTOR = 2.5

# Ease factor lower bound
EASE_FACTOR_MINIMUM = 1.3


def _require_aware(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.utcoffset() is None:
        raise ValueError("Datetime must be timezone-aware")
    return v


class ScheduleState(BaseModel):
    """Per-card SM-2 scheduling record.

    One state exists per card. It is created when the card is created and is
    only ever replaced by the output of ``srs.advance``.
    """

    model_config = ConfigDict(frozen=True)

    ease_factor: float = Field(DEFAULT_EASE_FACTOR, ge=EASE_FACTOR_MINIMUM)
    interval: int = Field(0, ge=0, description="Days until next review")
    repetitions: int = Field(0, ge=0, description="Consecutive successful reviews")
    next_review_at: datetime
    last_reviewed_at: Optional[datetime] = None

    @field_validator("next_review_at", "last_reviewed_at")
    @classmethod
    def validate_timezone_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Reject naive datetimes."""
        return _require_aware(v)

    @model_validator(mode="after")
    def validate_interval(self) -> "ScheduleState":
        """A card with successful repetitions is never scheduled for today."""
        if self.repetitions >= 1 and self.interval < 1:
            raise ValueError(
                f"Interval must be at least 1 when repetitions is {self.repetitions}"
            )
        return self

    @classmethod
    def initial(cls, now: datetime) -> "ScheduleState":
        """Seed state for a newly created card, due immediately."""
        return cls(
            ease_factor=DEFAULT_EASE_FACTOR,
            interval=0,
            repetitions=0,
            next_review_at=now,
        )

    def is_due(self, now: datetime) -> bool:
        # Same-zone comparisons ignore fold, so compare as UTC instants
        return self.next_review_at.astimezone(timezone.utc) <= now.astimezone(timezone.utc)


class ReviewHistoryEntry(BaseModel):
    """Single append-only review event, kept for analytics."""

    model_config = ConfigDict(frozen=True)

    card_id: str
    grade: int = Field(..., ge=0, le=5)
    reviewed_at: datetime
    ease_factor_before: float
    ease_factor_after: float
    interval_before: int
    interval_after: int

    @field_validator("reviewed_at")
    @classmethod
    def validate_timezone_aware(cls, v: datetime) -> datetime:
        """Reject naive datetimes."""
        return _require_aware(v)
