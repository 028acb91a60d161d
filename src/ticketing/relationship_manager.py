"""Participant/event relationship manager.

Owns both stores and the inventory accountant. Every operation that changes
an event's membership set:

1. holds that event's lock,
2. validates existence, membership and capacity against fresh reads,
3. writes the membership change and the ticket resync in one batch.

So ``tickets_remaining == capacity - members`` holds whenever an operation
settles, and a failed write leaves both records untouched.
"""

from uuid import UUID

import structlog

from src.db.turso import UniqueConstraintError
from src.models.event import Event
from src.models.participant import Participant
from src.repositories.event_repo import EventRepository
from src.repositories.participant_repo import ParticipantRepository
from src.ticketing.errors import (
    AlreadyRegisteredError,
    CapacityExceededError,
    EmailConflictError,
    EventNotFoundError,
    NotRegisteredError,
    ParticipantNotFoundError,
)
from src.ticketing.identifiers import parse_id
from src.ticketing.inventory import TicketInventoryAccountant
from src.ticketing.locks import EventLockRegistry
from src.ticketing.schemas import ParticipantCreate, ParticipantUpdate

logger = structlog.get_logger()

# Participant columns that cannot be cleared by an update
REQUIRED_FIELDS = frozenset({"first_name", "last_name", "email"})


class ParticipantRelationshipManager:
    """Keeps memberships and ticket counters mutually consistent."""

    def __init__(
        self,
        events: EventRepository,
        participants: ParticipantRepository,
        accountant: TicketInventoryAccountant,
        locks: EventLockRegistry | None = None,
        *,
        reject_overbooking: bool = True,
    ):
        """Initialize manager with its collaborators.

        Args:
            events: Event store
            participants: Participant store
            accountant: Ticket inventory accountant
            locks: Per-event lock registry (a private one if not provided)
            reject_overbooking: Refuse joins once an event is full
        """
        self._events = events
        self._participants = participants
        self._accountant = accountant
        self._locks = locks or EventLockRegistry()
        self._reject_overbooking = reject_overbooking

    @property
    def locks(self) -> EventLockRegistry:
        """Lock registry shared with other services touching tickets."""
        return self._locks

    async def _require_event(self, event_id: UUID) -> Event:
        event = await self._events.find_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    async def _require_participant(self, participant_id: UUID) -> Participant:
        participant = await self._participants.find_by_id(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        return participant

    async def _ensure_ticket_available(self, event: Event) -> None:
        if not self._reject_overbooking:
            return
        member_count = await self._participants.count_for_event(event.id)
        if member_count >= event.capacity:
            raise CapacityExceededError(event.id, event.capacity)

    # Registration

    async def register_participant(
        self,
        data: ParticipantCreate,
        event_id: str | UUID | None = None,
    ) -> Participant:
        """Look up a participant by email, creating or extending it.

        - Unknown email: create the participant, registered for ``event_id``
          when given.
        - Known email, no ``event_id``: return the existing record unchanged.
        - Known email with ``event_id``: add the membership, or fail if the
          participant is already registered.

        Raises:
            InvalidIdFormatError: If event_id is malformed.
            EventNotFoundError: If event_id does not exist.
            AlreadyRegisteredError: If the participant is already a member.
            CapacityExceededError: If the event is full.
        """
        target = parse_id(event_id, "event_id") if event_id is not None else None

        existing = await self._participants.find_by_email(data.email)
        if existing is not None:
            return await self._register_existing(existing, target)

        try:
            return await self._create_participant(data, target)
        except UniqueConstraintError:
            # The same email was registered concurrently; merge into that record
            existing = await self._participants.find_by_email(data.email)
            if existing is None:
                raise EmailConflictError(data.email) from None
            logger.info("concurrent registration merged", participant_id=str(existing.id))
            return await self._register_existing(existing, target)

    async def _register_existing(
        self,
        existing: Participant,
        target: UUID | None,
    ) -> Participant:
        if target is None:
            logger.debug("participant reused", participant_id=str(existing.id))
            return existing
        return await self._join(existing.id, target)

    async def _create_participant(
        self,
        data: ParticipantCreate,
        target: UUID | None,
    ) -> Participant:
        participant = Participant(**data.model_dump())
        if target is None:
            created = await self._participants.create(participant)
            logger.info("participant created", participant_id=str(created.id))
            return created

        async with self._locks.hold(target):
            event = await self._require_event(target)
            await self._ensure_ticket_available(event)
            created = await self._participants.create_with_membership(
                participant,
                target,
                extra=[self._accountant.resync_statement(target)],
            )

        logger.info(
            "participant created and registered",
            participant_id=str(created.id),
            event_id=str(target),
        )
        return created

    async def join_event(self, participant_id: str | UUID, event_id: str | UUID) -> Participant:
        """Register an existing participant for an event.

        Raises:
            InvalidIdFormatError: If either id is malformed.
            ParticipantNotFoundError: If the participant does not exist.
            EventNotFoundError: If the event does not exist.
            AlreadyRegisteredError: If already a member.
            CapacityExceededError: If the event is full.
        """
        return await self._join(
            parse_id(participant_id, "participant_id"),
            parse_id(event_id, "event_id"),
        )

    async def _join(self, participant_id: UUID, event_id: UUID) -> Participant:
        async with self._locks.hold(event_id):
            participant = await self._require_participant(participant_id)
            event = await self._require_event(event_id)
            if participant.is_registered_for(event_id):
                raise AlreadyRegisteredError(participant_id, event_id)
            await self._ensure_ticket_available(event)

            added = await self._participants.add_event_membership(
                participant_id,
                event_id,
                extra=[self._accountant.resync_statement(event_id)],
            )
            if not added:
                # Deleted by a cascade after the read above
                raise ParticipantNotFoundError(participant_id)
            updated = await self._require_participant(participant_id)

        logger.info(
            "participant joined event",
            participant_id=str(participant_id),
            event_id=str(event_id),
        )
        return updated

    async def leave_event(self, participant_id: str | UUID, event_id: str | UUID) -> Participant:
        """Remove a participant from an event and release the ticket.

        The participant record is kept even when this was its last event.

        Raises:
            InvalidIdFormatError: If either id is malformed.
            ParticipantNotFoundError: If the participant does not exist.
            EventNotFoundError: If the event does not exist.
            NotRegisteredError: If the participant is not a member.
        """
        pid = parse_id(participant_id, "participant_id")
        eid = parse_id(event_id, "event_id")

        async with self._locks.hold(eid):
            participant = await self._require_participant(pid)
            await self._require_event(eid)
            if not participant.is_registered_for(eid):
                raise NotRegisteredError(pid, eid)

            await self._participants.remove_event_membership(
                pid,
                eid,
                extra=[self._accountant.resync_statement(eid)],
            )
            updated = await self._require_participant(pid)

        logger.info("participant left event", participant_id=str(pid), event_id=str(eid))
        return updated

    # Deletion

    async def delete_event(self, event_id: str | UUID) -> Event:
        """Delete an event and cascade to its participants.

        Participants whose only membership was this event are deleted;
        the others are detached. Everything commits in one batch. Only
        memberships of this event are removed, and a participant row is
        deleted only if no membership is left at commit time.

        Returns:
            The deleted event

        Raises:
            InvalidIdFormatError: If event_id is malformed.
            EventNotFoundError: If the event does not exist.
        """
        eid = parse_id(event_id, "event_id")

        async with self._locks.hold(eid):
            event = await self._require_event(eid)
            members = await self._participants.find_by_event_id(eid)

            cascade = []
            removed = 0
            for member in members:
                cascade.append(self._participants.membership_delete_statement(member.id, eid))
                if member.event_ids == [eid]:
                    cascade.append(self._participants.orphan_delete_statement(member.id))
                    removed += 1

            if not await self._events.delete(eid, extra=cascade):
                raise EventNotFoundError(eid)

        self._locks.discard(eid)
        logger.info(
            "event deleted",
            event_id=str(eid),
            participants_deleted=removed,
            participants_detached=len(members) - removed,
        )
        return event

    async def delete_participant(self, participant_id: str | UUID) -> Participant:
        """Delete a participant with all memberships and release its tickets.

        Every event the participant is registered for when the batch commits
        is resynced in the same batch, including events joined after the
        locks were taken.

        Raises:
            InvalidIdFormatError: If participant_id is malformed.
            ParticipantNotFoundError: If the participant does not exist.
        """
        pid = parse_id(participant_id, "participant_id")
        participant = await self._require_participant(pid)

        async with self._locks.hold_many(participant.event_ids):
            # Memberships may have changed while waiting for the locks
            participant = await self._require_participant(pid)
            release = self._accountant.release_statement(pid)
            if not await self._participants.delete_cascading(pid, before=[release]):
                raise ParticipantNotFoundError(pid)

        logger.info(
            "participant deleted",
            participant_id=str(pid),
            events_released=len(participant.event_ids),
        )
        return participant

    # Participant reads and edits

    async def get_all_participants(self) -> list[Participant]:
        """Return all participants."""
        return await self._participants.find_all()

    async def get_participant(self, participant_id: str | UUID) -> Participant:
        """Return a participant by ID.

        Raises:
            InvalidIdFormatError: If participant_id is malformed.
            ParticipantNotFoundError: If the participant does not exist.
        """
        return await self._require_participant(parse_id(participant_id, "participant_id"))

    async def search_participants(self, query: str) -> list[Participant]:
        """Case-insensitive substring search over participant names."""
        return await self._participants.search_by_name(query)

    async def update_participant(
        self,
        participant_id: str | UUID,
        data: ParticipantUpdate,
    ) -> Participant:
        """Update participant details; memberships are not touched.

        Raises:
            InvalidIdFormatError: If participant_id is malformed.
            ParticipantNotFoundError: If the participant does not exist.
            EmailConflictError: If the new email belongs to someone else.
        """
        pid = parse_id(participant_id, "participant_id")
        await self._require_participant(pid)

        fields = {
            name: value
            for name, value in data.model_dump(exclude_unset=True).items()
            if value is not None or name not in REQUIRED_FIELDS
        }
        if "email" in fields:
            fields["email"] = fields["email"].lower()
            holder = await self._participants.find_by_email(fields["email"])
            if holder is not None and holder.id != pid:
                raise EmailConflictError(fields["email"])

        try:
            updated = await self._participants.update(pid, fields)
        except UniqueConstraintError:
            # Email taken between the check above and the write
            raise EmailConflictError(fields["email"]) from None
        if updated is None:
            raise ParticipantNotFoundError(pid)
        return updated
