"""Repository for participant records and event memberships.

Memberships live in an explicit ``event_memberships`` join table. Adding
and removing a membership are idempotent set operations; whether a no-op
should be reported as a conflict is decided by the relationship manager.

Mutating methods accept ``extra`` statements which are executed after the
mutation inside the same batch (one transaction). The relationship manager
uses this to commit the ticket resync together with the membership change.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from libsql_client import ResultSet, Statement

from src.db.turso import TursoClient
from src.models.participant import Participant

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"first_name", "last_name", "email", "phone", "organization", "age", "gender"}
)

# Participant columns plus the aggregated membership list
_SELECT_PARTICIPANTS = """
    SELECT p.id, p.first_name, p.last_name, p.email, p.phone,
           p.organization, p.age, p.gender, p.created_at, p.updated_at,
           GROUP_CONCAT(m.event_id) AS event_ids
    FROM participants p
    LEFT JOIN event_memberships m ON m.participant_id = p.id
"""


def _row_to_participant(row: Sequence[Any]) -> Participant:
    event_ids = [UUID(value) for value in row[10].split(",")] if row[10] else []
    return Participant(
        id=UUID(row[0]),
        first_name=row[1],
        last_name=row[2],
        email=row[3],
        phone=row[4],
        organization=row[5],
        age=row[6],
        gender=row[7],
        created_at=datetime.fromisoformat(row[8]),
        updated_at=datetime.fromisoformat(row[9]),
        event_ids=event_ids,
    )


class ParticipantRepository:
    """Repository for the participants and event_memberships tables."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create participant and membership tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS participants (
                id TEXT PRIMARY KEY,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                phone TEXT,
                organization TEXT,
                age INTEGER,
                gender TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS event_memberships (
                participant_id TEXT NOT NULL,
                event_id TEXT NOT NULL,
                joined_at TEXT NOT NULL,
                PRIMARY KEY (participant_id, event_id)
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_memberships_event
            ON event_memberships(event_id)
            """,
            ]
        )

    async def _query(self, where: str = "", params: list[Any] | None = None) -> list[Participant]:
        result = await self._db.execute(
            f"""
            {_SELECT_PARTICIPANTS}
            {where}
            GROUP BY p.id
            ORDER BY p.last_name, p.first_name
            """,
            params or [],
        )
        return [_row_to_participant(row) for row in result.rows]

    async def _run(self, statements: list[Statement]) -> list[ResultSet]:
        return await self._db.execute_batch(statements)

    # Statement builders

    def membership_insert_statement(self, participant_id: UUID, event_id: UUID) -> Statement:
        """Statement adding a membership unless it already exists.

        Nothing is inserted once the participant row is gone.
        """
        return Statement(
            """
            INSERT OR IGNORE INTO event_memberships (participant_id, event_id, joined_at)
            SELECT ?, ?, ?
            WHERE EXISTS (SELECT 1 FROM participants WHERE id = ?)
            """,
            [
                str(participant_id),
                str(event_id),
                datetime.now(UTC).isoformat(),
                str(participant_id),
            ],
        )

    def membership_delete_statement(self, participant_id: UUID, event_id: UUID) -> Statement:
        """Statement removing a membership if present."""
        return Statement(
            "DELETE FROM event_memberships WHERE participant_id = ? AND event_id = ?",
            [str(participant_id), str(event_id)],
        )

    def delete_statement(self, participant_id: UUID) -> Statement:
        """Statement removing only the participant row."""
        return Statement("DELETE FROM participants WHERE id = ?", [str(participant_id)])

    def orphan_delete_statement(self, participant_id: UUID) -> Statement:
        """Statement removing the participant row only if it has no memberships left."""
        return Statement(
            """
            DELETE FROM participants
            WHERE id = ?
              AND NOT EXISTS (
                  SELECT 1 FROM event_memberships WHERE participant_id = ?
              )
            """,
            [str(participant_id), str(participant_id)],
        )

    def cascading_delete_statements(self, participant_id: UUID) -> list[Statement]:
        """Statements removing the participant row and all its memberships."""
        return [
            Statement(
                "DELETE FROM event_memberships WHERE participant_id = ?",
                [str(participant_id)],
            ),
            self.delete_statement(participant_id),
        ]

    # Writes

    async def create(
        self,
        participant: Participant,
        extra: Sequence[Statement] = (),
    ) -> Participant:
        """Insert a participant and any memberships listed in ``event_ids``.

        Args:
            participant: Participant to store
            extra: Statements committed atomically after the insert

        Returns:
            The stored participant
        """
        insert = Statement(
            """
            INSERT INTO participants
                (id, first_name, last_name, email, phone, organization,
                 age, gender, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                str(participant.id),
                participant.first_name,
                participant.last_name,
                participant.email,
                participant.phone,
                participant.organization,
                participant.age,
                participant.gender,
                participant.created_at.isoformat(),
                participant.updated_at.isoformat(),
            ],
        )
        memberships = [
            self.membership_insert_statement(participant.id, event_id)
            for event_id in participant.event_ids
        ]
        await self._run([insert, *memberships, *extra])
        logger.debug(
            f"Created participant {participant.id} ({participant.email}) "
            f"with {len(memberships)} membership(s)"
        )
        return participant

    async def create_with_membership(
        self,
        participant: Participant,
        event_id: UUID,
        extra: Sequence[Statement] = (),
    ) -> Participant:
        """Insert a participant registered for exactly one event."""
        member = participant.model_copy(update={"event_ids": [event_id]})
        return await self.create(member, extra)

    async def update(
        self,
        participant_id: UUID,
        fields: dict[str, Any],
    ) -> Participant | None:
        """Apply a partial field patch to a participant.

        Returns:
            The updated participant, or None if it does not exist
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            msg = f"Cannot update participant fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            params = [*fields.values(), datetime.now(UTC).isoformat(), str(participant_id)]
            result = await self._db.execute(
                f"UPDATE participants SET {assignments}, updated_at = ? WHERE id = ?",
                params,
            )
            if result.rows_affected == 0:
                return None

        return await self.find_by_id(participant_id)

    async def delete(
        self,
        participant_id: UUID,
        extra: Sequence[Statement] = (),
    ) -> bool:
        """Delete the participant row only; memberships are left as they are.

        Returns:
            True if the participant was deleted, False if not found
        """
        results = await self._run([self.delete_statement(participant_id), *extra])
        return results[0].rows_affected > 0

    async def delete_cascading(
        self,
        participant_id: UUID,
        extra: Sequence[Statement] = (),
        before: Sequence[Statement] = (),
    ) -> bool:
        """Delete the participant and all of its memberships atomically.

        Args:
            participant_id: Participant to delete
            extra: Statements committed after the deletes
            before: Statements committed before the deletes, while the
                memberships are still visible

        Returns:
            True if the participant was deleted, False if not found
        """
        statements = self.cascading_delete_statements(participant_id)
        results = await self._run([*before, *statements, *extra])
        deleted = results[len(before) + len(statements) - 1].rows_affected > 0
        if deleted:
            logger.debug(f"Deleted participant {participant_id} with memberships")
        return deleted

    async def add_event_membership(
        self,
        participant_id: UUID,
        event_id: UUID,
        extra: Sequence[Statement] = (),
    ) -> bool:
        """Add ``event_id`` to the participant's memberships (add-if-absent).

        Returns:
            True if a membership was added, False if it already existed
        """
        results = await self._run(
            [self.membership_insert_statement(participant_id, event_id), *extra]
        )
        return results[0].rows_affected > 0

    async def remove_event_membership(
        self,
        participant_id: UUID,
        event_id: UUID,
        extra: Sequence[Statement] = (),
    ) -> bool:
        """Remove ``event_id`` from the participant's memberships (remove-if-present).

        Returns:
            True if a membership was removed, False if none existed
        """
        results = await self._run(
            [self.membership_delete_statement(participant_id, event_id), *extra]
        )
        return results[0].rows_affected > 0

    # Reads

    async def find_all(self) -> list[Participant]:
        """Return all participants ordered by name."""
        return await self._query()

    async def find_by_id(self, participant_id: UUID) -> Participant | None:
        """Return a participant by ID, or None if not found."""
        participants = await self._query("WHERE p.id = ?", [str(participant_id)])
        return participants[0] if participants else None

    async def find_by_email(self, email: str) -> Participant | None:
        """Return the participant holding ``email`` (case-insensitive), or None."""
        participants = await self._query("WHERE p.email = ?", [email.lower()])
        return participants[0] if participants else None

    async def find_by_event_id(self, event_id: UUID) -> list[Participant]:
        """Return participants registered for ``event_id``."""
        return await self._query(
            """
            WHERE p.id IN (
                SELECT participant_id FROM event_memberships WHERE event_id = ?
            )
            """,
            [str(event_id)],
        )

    async def find_by_event_ids(self, event_ids: Iterable[UUID]) -> list[Participant]:
        """Return participants registered for any of ``event_ids``."""
        ids = [str(event_id) for event_id in event_ids]
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        return await self._query(
            f"""
            WHERE p.id IN (
                SELECT participant_id FROM event_memberships
                WHERE event_id IN ({placeholders})
            )
            """,
            ids,
        )

    async def search_by_name(self, query: str) -> list[Participant]:
        """Case-insensitive substring search over "first last" names.

        ``%`` and ``_`` in the query match literally.
        """
        escaped = (
            query.strip()
            .lower()
            .replace("\\", "\\\\")
            .replace("%", "\\%")
            .replace("_", "\\_")
        )
        return await self._query(
            "WHERE LOWER(p.first_name || ' ' || p.last_name) LIKE ? ESCAPE '\\'",
            [f"%{escaped}%"],
        )

    async def count_for_event(self, event_id: UUID) -> int:
        """Count memberships for one event."""
        result = await self._db.execute(
            "SELECT COUNT(*) FROM event_memberships WHERE event_id = ?",
            [str(event_id)],
        )
        return result.rows[0][0] or 0

    async def count_by_event(self) -> dict[UUID, int]:
        """Count memberships for every event that has any, in one query."""
        result = await self._db.execute(
            """
            SELECT event_id, COUNT(*)
            FROM event_memberships
            GROUP BY event_id
            """
        )
        return {UUID(row[0]): row[1] for row in result.rows}
