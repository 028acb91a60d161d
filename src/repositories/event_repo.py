"""Repository for event records.

Lookups return None on a miss; deciding how to surface absence is the
caller's job. Deleting an event does not touch memberships: cascading is
done by the relationship manager, which passes the cascade statements in
``extra`` so they commit in the same batch.
"""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from libsql_client import Statement

from src.db.turso import TursoClient
from src.models.event import Event

logger = logging.getLogger(__name__)

EVENT_COLUMNS = (
    "id, owner_id, name, description, start_date, end_date, "
    "capacity, tickets_remaining, price, created_at, updated_at"
)

# Fields a partial update may touch
UPDATABLE_FIELDS = frozenset(
    {
        "owner_id",
        "name",
        "description",
        "start_date",
        "end_date",
        "capacity",
        "tickets_remaining",
        "price",
    }
)


def _to_db(value: Any) -> Any:
    """Convert a model value to its column representation."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _row_to_event(row: Sequence[Any]) -> Event:
    return Event(
        id=UUID(row[0]),
        owner_id=UUID(row[1]),
        name=row[2],
        description=row[3] or "",
        start_date=datetime.fromisoformat(row[4]),
        end_date=datetime.fromisoformat(row[5]),
        capacity=row[6],
        tickets_remaining=row[7],
        price=row[8],
        created_at=datetime.fromisoformat(row[9]),
        updated_at=datetime.fromisoformat(row[10]),
    )


class EventRepository:
    """Repository for the events table."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create events table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS events (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                name TEXT NOT NULL UNIQUE,
                description TEXT NOT NULL DEFAULT '',
                start_date TEXT NOT NULL,
                end_date TEXT NOT NULL,
                capacity INTEGER NOT NULL CHECK (capacity >= 0),
                tickets_remaining INTEGER NOT NULL CHECK (tickets_remaining >= 0),
                price REAL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_events_owner
            ON events(owner_id)
            """,
            ]
        )

    async def get_all(self) -> list[Event]:
        """Return all events ordered by start date."""
        result = await self._db.execute(
            f"SELECT {EVENT_COLUMNS} FROM events ORDER BY start_date ASC"
        )
        return [_row_to_event(row) for row in result.rows]

    async def find_by_id(self, event_id: UUID) -> Event | None:
        """Return an event by ID, or None if not found."""
        result = await self._db.execute(
            f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?",
            [str(event_id)],
        )
        return _row_to_event(result.rows[0]) if result.rows else None

    async def find_by_name(self, name: str) -> Event | None:
        """Return the event with exactly this name, or None."""
        result = await self._db.execute(
            f"SELECT {EVENT_COLUMNS} FROM events WHERE name = ?",
            [name],
        )
        return _row_to_event(result.rows[0]) if result.rows else None

    async def find_by_owner(self, owner_id: UUID) -> list[Event]:
        """Return all events organized by ``owner_id``."""
        result = await self._db.execute(
            f"""
            SELECT {EVENT_COLUMNS} FROM events
            WHERE owner_id = ?
            ORDER BY start_date ASC
            """,
            [str(owner_id)],
        )
        return [_row_to_event(row) for row in result.rows]

    async def create(self, event: Event) -> Event:
        """Insert a new event record.

        Args:
            event: Fully populated event (id generated by the model)

        Returns:
            The stored event
        """
        await self._db.execute(
            f"""
            INSERT INTO events ({EVENT_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                str(event.id),
                str(event.owner_id),
                event.name,
                event.description,
                event.start_date.isoformat(),
                event.end_date.isoformat(),
                event.capacity,
                event.tickets_remaining,
                event.price,
                event.created_at.isoformat(),
                event.updated_at.isoformat(),
            ],
        )
        logger.debug(f"Created event {event.id} ({event.name})")
        return event

    async def update(self, event_id: UUID, fields: dict[str, Any]) -> Event | None:
        """Apply a partial field patch to an event.

        Args:
            event_id: Event to update
            fields: Column name -> new value; unknown names are rejected

        Returns:
            The updated event, or None if it does not exist
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            msg = f"Cannot update event fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            params = [_to_db(value) for value in fields.values()]
            params.extend([datetime.now(UTC).isoformat(), str(event_id)])
            result = await self._db.execute(
                f"UPDATE events SET {assignments}, updated_at = ? WHERE id = ?",
                params,
            )
            if result.rows_affected == 0:
                return None
            logger.debug(f"Updated event {event_id}: {sorted(fields)}")

        return await self.find_by_id(event_id)

    async def set_tickets_remaining(self, event_id: UUID, value: int) -> bool:
        """Persist a recomputed ticket counter.

        Returns:
            True if the event exists and was updated
        """
        result = await self._db.execute(
            "UPDATE events SET tickets_remaining = ?, updated_at = ? WHERE id = ?",
            [value, datetime.now(UTC).isoformat(), str(event_id)],
        )
        return result.rows_affected > 0

    def delete_statement(self, event_id: UUID) -> Statement:
        """Statement removing the event row."""
        return Statement("DELETE FROM events WHERE id = ?", [str(event_id)])

    async def delete(
        self,
        event_id: UUID,
        extra: Sequence[Statement] = (),
    ) -> bool:
        """Delete an event by ID.

        Args:
            event_id: Event to delete
            extra: Statements committed atomically before the delete

        Returns:
            True if the event was deleted, False if not found
        """
        results = await self._db.execute_batch(
            [*extra, self.delete_statement(event_id)]
        )
        deleted = results[-1].rows_affected > 0
        if deleted:
            logger.debug(f"Deleted event {event_id}")
        return deleted
