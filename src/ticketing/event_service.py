"""Event catalog operations.

Creation and edits validate dates, capacity and name uniqueness before
anything is written. Deletion is delegated to the relationship manager,
which owns the cascade to participants.
"""

from datetime import datetime
from pathlib import Path
from uuid import UUID

import structlog

from src.db.turso import UniqueConstraintError
from src.export.pipeline import ExportPipeline
from src.export.schemas import ExportFormat
from src.models.base import ensure_utc
from src.models.event import Event
from src.models.participant import Participant
from src.repositories.event_repo import EventRepository
from src.repositories.participant_repo import ParticipantRepository
from src.ticketing.errors import (
    EventNameConflictError,
    EventNotFoundError,
    InvalidCapacityError,
    InvalidDateRangeError,
)
from src.ticketing.identifiers import parse_id
from src.ticketing.inventory import TicketInventoryAccountant
from src.ticketing.relationship_manager import ParticipantRelationshipManager
from src.ticketing.schemas import EventCreate, EventUpdate

logger = structlog.get_logger()

# Event columns an update cannot clear
REQUIRED_FIELDS = frozenset(
    {"owner_id", "name", "description", "start_date", "end_date", "capacity"}
)


def _check_date_range(start_date: datetime, end_date: datetime) -> None:
    if ensure_utc(start_date) >= ensure_utc(end_date):
        raise InvalidDateRangeError(start_date, end_date)


def _check_capacity(capacity: int) -> None:
    if capacity < 0:
        raise InvalidCapacityError(capacity)


class EventService:
    """Caller-facing event operations."""

    def __init__(
        self,
        events: EventRepository,
        participants: ParticipantRepository,
        accountant: TicketInventoryAccountant,
        manager: ParticipantRelationshipManager,
        exporter: ExportPipeline,
    ):
        self._events = events
        self._participants = participants
        self._accountant = accountant
        self._manager = manager
        self._exporter = exporter

    async def _require_event(self, event_id: UUID) -> Event:
        event = await self._events.find_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    # Reads

    async def get_all_events(self) -> list[Event]:
        """Return all events ordered by start date."""
        return await self._events.get_all()

    async def get_event_by_id(self, event_id: str | UUID) -> Event:
        """Return an event by ID.

        Raises:
            InvalidIdFormatError: If event_id is malformed.
            EventNotFoundError: If the event does not exist.
        """
        return await self._require_event(parse_id(event_id, "event_id"))

    async def find_event_by_name(self, name: str) -> Event:
        """Return the event with exactly this name.

        Raises:
            EventNotFoundError: If no event has this name.
        """
        event = await self._events.find_by_name(name.strip())
        if event is None:
            raise EventNotFoundError(name=name)
        return event

    async def get_events_by_owner(self, owner_id: str | UUID) -> list[Event]:
        """Return the events organized by ``owner_id`` (possibly none)."""
        return await self._events.find_by_owner(parse_id(owner_id, "owner_id"))

    async def get_event_participants(self, event_id: str | UUID) -> list[Participant]:
        """Return the participants registered for an event.

        Raises:
            InvalidIdFormatError: If event_id is malformed.
            EventNotFoundError: If the event does not exist.
        """
        event = await self._require_event(parse_id(event_id, "event_id"))
        return await self._participants.find_by_event_id(event.id)

    # Writes

    async def create_event(self, data: EventCreate) -> Event:
        """Create an event with all of its tickets available.

        Raises:
            InvalidDateRangeError: If start_date is not before end_date.
            InvalidCapacityError: If capacity is negative.
            EventNameConflictError: If the name is taken.
        """
        _check_date_range(data.start_date, data.end_date)
        _check_capacity(data.capacity)
        if await self._events.find_by_name(data.name) is not None:
            raise EventNameConflictError(data.name)

        event = Event(**data.model_dump(), tickets_remaining=data.capacity)
        try:
            created = await self._events.create(event)
        except UniqueConstraintError:
            # Same name created concurrently
            raise EventNameConflictError(data.name) from None
        logger.info(
            "event created",
            event_id=str(created.id),
            name=created.name,
            capacity=created.capacity,
        )
        return created

    async def update_event(self, event_id: str | UUID, data: EventUpdate) -> Event:
        """Apply a partial update to an event.

        Changing the capacity resyncs the ticket counter against the
        current membership count.

        Raises:
            InvalidIdFormatError: If event_id is malformed.
            EventNotFoundError: If the event does not exist.
            InvalidDateRangeError: If the resulting dates are out of order.
            InvalidCapacityError: If the new capacity is negative.
            EventNameConflictError: If the new name belongs to another event.
        """
        eid = parse_id(event_id, "event_id")
        fields = {
            name: value
            for name, value in data.model_dump(exclude_unset=True).items()
            if value is not None or name not in REQUIRED_FIELDS
        }

        async with self._manager.locks.hold(eid):
            current = await self._require_event(eid)

            _check_date_range(
                fields.get("start_date", current.start_date),
                fields.get("end_date", current.end_date),
            )
            if "capacity" in fields:
                _check_capacity(fields["capacity"])
            if "name" in fields and fields["name"] != current.name:
                holder = await self._events.find_by_name(fields["name"])
                if holder is not None and holder.id != eid:
                    raise EventNameConflictError(fields["name"])

            for name in ("start_date", "end_date"):
                if name in fields:
                    fields[name] = ensure_utc(fields[name])

            try:
                updated = await self._events.update(eid, fields)
            except UniqueConstraintError:
                raise EventNameConflictError(fields["name"]) from None
            if updated is None:
                raise EventNotFoundError(eid)

            if fields.get("capacity", current.capacity) != current.capacity:
                updated = await self._accountant.resync(eid)

        logger.info("event updated", event_id=str(eid), fields=sorted(fields))
        return updated

    async def delete_event(self, event_id: str | UUID) -> Event:
        """Delete an event and cascade to its participants."""
        return await self._manager.delete_event(event_id)

    # Export

    async def export_participants(
        self,
        event_id: str | UUID,
        fmt: ExportFormat,
    ) -> Path:
        """Write the event's attendee list to a file in ``fmt``.

        Returns:
            Path of the export file; the caller removes it after delivery

        Raises:
            InvalidIdFormatError: If event_id is malformed.
            EventNotFoundError: If the event does not exist.
            EmptyExportError: If nobody is registered.
            ExportWriteError: If the file could not be written.
        """
        event = await self._require_event(parse_id(event_id, "event_id"))
        participants = await self._participants.find_by_event_id(event.id)
        return await self._exporter.export(
            participants,
            event.id,
            fmt,
            title=f"Participants - {event.name}",
        )
