"""Export pipeline writing participant lists to files.

The pipeline renders through the format's renderer, writes the bytes into
the export directory from a worker thread, and returns the file path. The
caller owns the file afterwards and calls ``cleanup`` once it has been
delivered.
"""

import asyncio
import secrets
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

import structlog

from src.export.renderers import RENDERERS, Renderer
from src.export.schemas import ExportFormat
from src.models.participant import Participant
from src.ticketing.errors import EmptyExportError, ExportWriteError

logger = structlog.get_logger()


class ExportPipeline:
    """Render participant lists to CSV, PDF or Excel files on disk."""

    def __init__(
        self,
        export_dir: str | Path,
        renderers: Mapping[ExportFormat, Renderer] | None = None,
    ):
        """Initialize pipeline.

        Args:
            export_dir: Directory receiving export files (created on demand)
            renderers: Format dispatch table (defaults to RENDERERS)
        """
        self.export_dir = Path(export_dir)
        self._renderers = renderers or RENDERERS

    @staticmethod
    def build_filename(event_id: UUID | str, fmt: ExportFormat) -> str:
        """Unique file name: timestamp plus random token."""
        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
        token = secrets.token_hex(4)
        return f"event-{event_id}-participants-{stamp}-{token}.{fmt.extension}"

    async def export(
        self,
        participants: Sequence[Participant],
        event_id: UUID | str,
        fmt: ExportFormat,
        *,
        title: str | None = None,
    ) -> Path:
        """Render ``participants`` in ``fmt`` and write them to a new file.

        Args:
            participants: Attendees to export (must not be empty)
            event_id: Event the list belongs to, used in the file name
            fmt: Target format
            title: Document title (PDF heading)

        Returns:
            Path of the written file

        Raises:
            EmptyExportError: If there are no participants; no file is created.
            ExportWriteError: If rendering or writing fails; partial files are removed.
        """
        if not participants:
            raise EmptyExportError(event_id)

        path = self.export_dir / self.build_filename(event_id, fmt)
        title = title or f"Participants of event {event_id}"

        try:
            await asyncio.to_thread(self._write_sync, participants, fmt, path, title)
        except Exception as e:
            logger.error(
                "participant export failed",
                event_id=str(event_id),
                format=fmt.value,
                error=str(e),
            )
            self._remove_quietly(path)
            raise ExportWriteError(event_id, fmt.value, str(e)) from e

        logger.info(
            "participants exported",
            event_id=str(event_id),
            format=fmt.value,
            count=len(participants),
            path=str(path),
        )
        return path

    def _write_sync(
        self,
        participants: Sequence[Participant],
        fmt: ExportFormat,
        path: Path,
        title: str,
    ) -> None:
        content = self._renderers[fmt](participants, title)
        self.export_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    @staticmethod
    def _remove_quietly(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("could not remove export file", path=str(path), error=str(e))

    async def cleanup(self, path: str | Path) -> bool:
        """Delete an export file after delivery.

        Returns:
            True if the file existed and was removed
        """
        path = Path(path)
        try:
            existed = path.exists()
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            logger.warning("could not remove export file", path=str(path), error=str(e))
            return False
        return existed
