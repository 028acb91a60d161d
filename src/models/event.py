"""Event model: a time-bounded activity with a ticket capacity."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from src.models.base import BaseEntity, ensure_utc


class Event(BaseEntity):
    """An event owned by an organizer.

    ``tickets_remaining`` is persisted rather than computed on read. It is
    kept equal to ``capacity`` minus the number of registered participants
    by the ticket inventory accountant.
    """

    owner_id: UUID = Field(description="User who organizes the event")
    name: str = Field(
        min_length=1,
        max_length=200,
        description="Event name (unique across all events)",
    )
    description: str = Field(default="", description="Free-text description")
    start_date: datetime = Field(description="When the event starts")
    end_date: datetime = Field(description="When the event ends")
    capacity: int = Field(ge=0, description="Maximum number of tickets")
    tickets_remaining: int = Field(ge=0, description="Tickets not yet taken")
    price: float | None = Field(default=None, ge=0, description="Ticket price")

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        """Store all event dates in UTC."""
        return ensure_utc(v)

    def is_active(self, now: datetime) -> bool:
        """Whether the event is running at ``now``."""
        return self.start_date <= now <= self.end_date

    def is_completed(self, now: datetime) -> bool:
        """Whether the event ended before ``now``."""
        return self.end_date < now

    def is_upcoming(self, now: datetime) -> bool:
        """Whether the event starts after ``now``."""
        return self.start_date > now
