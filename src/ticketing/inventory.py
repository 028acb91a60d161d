"""Ticket inventory accounting.

An event's ``tickets_remaining`` is stored on the event row while the
memberships that determine it live in ``event_memberships``. This module is
the single place that derives the former from the latter:

    tickets_remaining = max(0, capacity - count(memberships))

It must run after every membership mutation. ``resync_statement`` is the
SQL form used inside the relationship manager's atomic batches; ``resync``
is the standalone read-count-then-write form used when capacity changes.
"""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from libsql_client import Statement

from src.models.event import Event
from src.repositories.event_repo import EventRepository
from src.repositories.participant_repo import ParticipantRepository
from src.ticketing.errors import EventNotFoundError

logger = structlog.get_logger()


def remaining_tickets(capacity: int, member_count: int) -> int:
    """Remaining tickets for an event, floored at zero."""
    return max(0, capacity - member_count)


class TicketInventoryAccountant:
    """Recomputes and persists an event's remaining-ticket count."""

    def __init__(
        self,
        events: EventRepository,
        participants: ParticipantRepository,
    ):
        """Initialize accountant with both stores.

        Args:
            events: Event store holding capacity and the persisted counter
            participants: Participant store holding memberships
        """
        self._events = events
        self._participants = participants

    def resync_statement(self, event_id: UUID) -> Statement:
        """Statement recomputing the counter from the live membership count.

        Meant to be batched right after a membership write so both commit
        in the same transaction.
        """
        return Statement(
            """
            UPDATE events
            SET tickets_remaining = MAX(
                    0,
                    capacity - (
                        SELECT COUNT(*) FROM event_memberships WHERE event_id = ?
                    )
                ),
                updated_at = ?
            WHERE id = ?
            """,
            [str(event_id), datetime.now(UTC).isoformat(), str(event_id)],
        )

    def release_statement(self, participant_id: UUID) -> Statement:
        """Statement resyncing every event of a participant as if it had left.

        Batched before the participant's memberships are deleted, so it
        covers memberships committed after the caller last read them.
        """
        return Statement(
            """
            UPDATE events
            SET tickets_remaining = MAX(
                    0,
                    capacity - (
                        SELECT COUNT(*) FROM event_memberships m
                        WHERE m.event_id = events.id AND m.participant_id != ?
                    )
                ),
                updated_at = ?
            WHERE id IN (
                SELECT event_id FROM event_memberships WHERE participant_id = ?
            )
            """,
            [str(participant_id), datetime.now(UTC).isoformat(), str(participant_id)],
        )

    async def resync(self, event_id: UUID) -> Event:
        """Recompute and persist ``tickets_remaining`` for one event.

        Callers mutating memberships concurrently must hold the event's lock.

        Returns:
            The event with its updated counter

        Raises:
            EventNotFoundError: If the event no longer exists.
        """
        event = await self._events.find_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        member_count = await self._participants.count_for_event(event_id)
        if member_count > event.capacity:
            logger.warning(
                "inventory inconsistency: members exceed capacity",
                event_id=str(event_id),
                capacity=event.capacity,
                member_count=member_count,
            )
        remaining = remaining_tickets(event.capacity, member_count)

        if remaining != event.tickets_remaining:
            if not await self._events.set_tickets_remaining(event_id, remaining):
                raise EventNotFoundError(event_id)
            logger.info(
                "tickets resynced",
                event_id=str(event_id),
                previous=event.tickets_remaining,
                remaining=remaining,
            )

        return event.model_copy(update={"tickets_remaining": remaining})
