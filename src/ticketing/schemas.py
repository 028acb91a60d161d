"""Input and report schemas for ticketing operations.

Input schemas only check shape. Business rules (date order, non-negative
capacity, name and email uniqueness) are enforced by the services so they
surface as domain errors rather than validation errors.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class EventCreate(BaseModel):
    """Fields for a new event."""

    model_config = ConfigDict(str_strip_whitespace=True)

    owner_id: UUID = Field(description="User organizing the event")
    name: str = Field(min_length=1, max_length=200, description="Unique event name")
    description: str = Field(default="", description="Free-text description")
    start_date: datetime = Field(description="Start (naive values are UTC)")
    end_date: datetime = Field(description="End (naive values are UTC)")
    capacity: int = Field(description="Maximum number of tickets")
    price: float | None = Field(default=None, ge=0, description="Ticket price")


class EventUpdate(BaseModel):
    """Partial patch for an event; only set fields are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    owner_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    capacity: int | None = None
    price: float | None = Field(default=None, ge=0)


class ParticipantCreate(BaseModel):
    """Identity and contact details supplied at registration."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(default=None, pattern=r"^\+?[1-9]\d{1,14}$")
    organization: str | None = Field(default=None, max_length=200)
    age: int | None = Field(default=None, ge=0, le=120)
    gender: str | None = Field(default=None, max_length=30)


class ParticipantUpdate(BaseModel):
    """Partial patch for a participant."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, pattern=r"^\+?[1-9]\d{1,14}$")
    organization: str | None = Field(default=None, max_length=200)
    age: int | None = Field(default=None, ge=0, le=120)
    gender: str | None = Field(default=None, max_length=30)


class TicketUtilization(BaseModel):
    """Tickets sold against total capacity across all events."""

    total_tickets: int = 0
    sold_tickets: int = 0
    utilization_rate: float = Field(default=0.0, description="sold / total, 0 if no tickets")


class ParticipationTrend(BaseModel):
    """Per-event ticket figures."""

    event_id: UUID
    event_name: str
    total_tickets: int
    sold_tickets: int = Field(description="Live membership count")
    remaining_tickets: int = Field(description="Counter as currently stored")


class StatisticsOverview(BaseModel):
    """Cross-event rollup returned by the statistics aggregator."""

    total_events: int = 0
    active_events: int = 0
    completed_events: int = 0
    upcoming_events: int = 0
    total_participants: int = Field(default=0, description="Sum of registrations")
    average_participants_per_event: float = 0.0
    ticket_utilization: TicketUtilization = Field(default_factory=TicketUtilization)
    events_by_month: dict[str, int] = Field(default_factory=dict)
    participation_trends: list[ParticipationTrend] = Field(default_factory=list)
