"""Pure render functions turning participants into export bytes.

Each renderer takes the participants and a document title and returns the
complete file content. ``RENDERERS`` maps every ``ExportFormat`` to its
function; the pipeline dispatches through it and nothing else.
"""

import csv
import io
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path

from fpdf import FPDF
from jinja2 import Environment, FileSystemLoader, select_autoescape
from openpyxl import Workbook
from openpyxl.styles import Font

from src.export.schemas import HEADERS, AttendeeRow, ExportFormat
from src.models.participant import Participant

TEMPLATE_DIR = Path(__file__).parent / "templates"

Renderer = Callable[[Sequence[Participant], str], bytes]


def _rows(participants: Sequence[Participant]) -> list[AttendeeRow]:
    return [AttendeeRow.from_participant(p) for p in participants]


def render_csv(participants: Sequence[Participant], title: str) -> bytes:
    """Render a CSV file with a header row (UTF-8 with BOM for spreadsheets)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(HEADERS)
    for row in _rows(participants):
        writer.writerow(row.values())
    return buffer.getvalue().encode("utf-8-sig")


def render_excel(participants: Sequence[Participant], title: str) -> bytes:
    """Render an .xlsx workbook with one "Participants" sheet."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Participants"
    sheet.append(HEADERS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in _rows(participants):
        sheet.append(row.values())

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class AttendeeSheetRenderer:
    """Render attendee lists from Jinja2 templates.

    The HTML output is the layout source for the PDF export.
    """

    def __init__(self, template_dir: str | Path = TEMPLATE_DIR):
        """Initialize renderer with template directory.

        Args:
            template_dir: Path to directory containing .j2 templates.
        """
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "htm", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_html(
        self,
        rows: Sequence[AttendeeRow],
        title: str,
        template_name: str = "participants",
    ) -> str:
        """Render the attendee list as HTML.

        Raises:
            TemplateNotFound: If template file doesn't exist
        """
        template = self.env.get_template(f"{template_name}.html.j2")
        return template.render(
            title=title,
            headers=HEADERS,
            rows=[row.values() for row in rows],
            count=len(rows),
            generated_at=datetime.now(UTC).strftime("%Y-%m-%d %H:%M UTC"),
        )


@lru_cache
def _sheet_renderer() -> AttendeeSheetRenderer:
    return AttendeeSheetRenderer()


def _latin1(value: str) -> str:
    # Core PDF fonts only cover Latin-1
    return value.encode("latin-1", "replace").decode("latin-1")


def render_pdf(participants: Sequence[Participant], title: str) -> bytes:
    """Render a landscape PDF table of attendees."""
    rows = [
        AttendeeRow(**{k: _latin1(v) for k, v in row.model_dump().items()})
        for row in _rows(participants)
    ]
    html = _sheet_renderer().render_html(rows, _latin1(title))

    pdf = FPDF(orientation="L", format="A4")
    pdf.add_page()
    pdf.set_font("Helvetica", size=9)
    pdf.write_html(html)
    return bytes(pdf.output())


RENDERERS: dict[ExportFormat, Renderer] = {
    ExportFormat.CSV: render_csv,
    ExportFormat.PDF: render_pdf,
    ExportFormat.EXCEL: render_excel,
}
