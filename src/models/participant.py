"""Participant model for event attendees."""

from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from src.models.base import BaseEntity


class Participant(BaseEntity):
    """A person registered for zero or more events.

    Participants are identified by email: registering the same email for a
    second event updates ``event_ids`` on the existing record instead of
    creating another participant.
    """

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr = Field(description="Unique identity key (lowercased)")
    phone: str | None = Field(default=None, max_length=30)
    organization: str | None = Field(default=None, max_length=200)
    age: int | None = Field(default=None, ge=0, le=120)
    gender: str | None = Field(default=None, max_length=30)
    event_ids: list[UUID] = Field(
        default_factory=list,
        description="Events this participant is registered for",
    )

    @field_validator("first_name", "last_name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        """Ensure names are not just whitespace."""
        if not v.strip():
            msg = "Name cannot be empty or whitespace"
            raise ValueError(msg)
        return v.strip()

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Compare emails case-insensitively by storing them lowercased."""
        return v.lower()

    def is_registered_for(self, event_id: UUID) -> bool:
        """Whether ``event_id`` is in this participant's membership set."""
        return event_id in self.event_ids
