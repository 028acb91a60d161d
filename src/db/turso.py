"""libSQL database client used by the event and participant repositories."""

import logging
from typing import Any

from libsql_client import Client, LibsqlError, ResultSet, Statement, create_client

from src.config import settings

logger = logging.getLogger(__name__)


class UniqueConstraintError(Exception):
    """A write collided with a UNIQUE or PRIMARY KEY constraint."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _is_unique_violation(error: LibsqlError) -> bool:
    # Local sqlite reports SQLITE_CONSTRAINT_UNIQUE, remote servers may
    # only report SQLITE_CONSTRAINT
    if not error.code.startswith("SQLITE_CONSTRAINT"):
        return False
    return error.code.endswith(("_UNIQUE", "_PRIMARYKEY")) or "UNIQUE" in str(error)


class TursoClient:
    """Thin async wrapper around a libSQL client.

    Works against a Turso database (``libsql://`` URL plus auth token) or a
    local SQLite file (``file:`` URL). Repositories use ``execute`` for
    single statements and ``execute_batch`` whenever several writes must
    commit together.
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
    ):
        """Initialize client with connection parameters.

        Args:
            url: Database URL. Defaults to settings, then ``file:tickets.db``.
            auth_token: Turso auth token. Defaults to settings.
        """
        self.url = url or settings.turso_database_url or "file:tickets.db"
        self.auth_token = auth_token or settings.turso_auth_token
        self._client: Client | None = None

    async def connect(self) -> None:
        """Open the connection; calling it again is a no-op."""
        if self._client is not None:
            return

        if self.auth_token and self.url.startswith("libsql://"):
            self._client = create_client(url=self.url, auth_token=self.auth_token)
        else:
            self._client = create_client(url=self.url)

        logger.info(f"Connected to database: {self.url}")

    def _require_client(self) -> Client:
        if self._client is None:
            msg = "Not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    async def execute(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> ResultSet:
        """Execute one SQL statement with ``?`` placeholders.

        Raises:
            UniqueConstraintError: If the statement violates a unique key.
        """
        client = self._require_client()
        try:
            return await client.execute(sql, params or [])
        except LibsqlError as e:
            if _is_unique_violation(e):
                raise UniqueConstraintError(e.explanation) from e
            raise

    async def execute_batch(
        self,
        statements: list[str | Statement],
    ) -> list[ResultSet]:
        """Execute several statements in one transaction.

        Either every statement is committed or none is.

        Args:
            statements: Plain SQL strings or parameterized Statements

        Returns:
            One ResultSet per statement, in order

        Raises:
            UniqueConstraintError: If a statement violates a unique key.
        """
        client = self._require_client()
        try:
            return await client.batch(statements)
        except LibsqlError as e:
            if _is_unique_violation(e):
                raise UniqueConstraintError(e.explanation) from e
            raise

    async def close(self) -> None:
        """Close the database connection."""
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Database connection closed")

    async def is_healthy(self) -> bool:
        """Whether the connection answers a trivial query."""
        try:
            if not self._client:
                return False
            result = await self._client.execute("SELECT 1")
            return len(result.rows) == 1
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
