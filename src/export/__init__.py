"""Participant export: formats, renderers and the file pipeline."""

from src.export.pipeline import ExportPipeline
from src.export.renderers import RENDERERS, AttendeeSheetRenderer
from src.export.schemas import AttendeeRow, ExportFormat

__all__ = [
    "AttendeeRow",
    "AttendeeSheetRenderer",
    "ExportFormat",
    "ExportPipeline",
    "RENDERERS",
]
