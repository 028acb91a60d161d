"""Export schemas: supported formats and the flattened attendee row."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.models.participant import Participant

MISSING = "N/A"


class ExportFormat(str, Enum):
    """Closed set of participant export formats."""

    CSV = "csv"
    PDF = "pdf"
    EXCEL = "excel"

    @property
    def extension(self) -> str:
        """File extension written for this format."""
        return {"csv": "csv", "pdf": "pdf", "excel": "xlsx"}[self.value]

    @property
    def media_type(self) -> str:
        """MIME type served for this format."""
        return {
            "csv": "text/csv",
            "pdf": "application/pdf",
            "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        }[self.value]


class AttendeeRow(BaseModel):
    """Participant data for export rendering (flattened from domain model).

    Every column is a display string; missing values render as ``N/A``.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(description="First name")
    last_name: str = Field(description="Last name")
    email: str = Field(description="Email address")
    phone: str = Field(default=MISSING)
    organization: str = Field(default=MISSING)
    age: str = Field(default=MISSING)
    gender: str = Field(default=MISSING)
    registration_date: str = Field(default=MISSING, description="YYYY-MM-DD")

    @classmethod
    def from_participant(cls, participant: Participant) -> "AttendeeRow":
        """Convert a participant to a template-friendly row."""
        return cls(
            first_name=participant.first_name or MISSING,
            last_name=participant.last_name or MISSING,
            email=participant.email or MISSING,
            phone=participant.phone or MISSING,
            organization=participant.organization or MISSING,
            age=str(participant.age) if participant.age is not None else MISSING,
            gender=participant.gender or MISSING,
            registration_date=participant.created_at.strftime("%Y-%m-%d"),
        )

    def values(self) -> list[str]:
        """Column values in header order."""
        return [
            self.first_name,
            self.last_name,
            self.email,
            self.phone,
            self.organization,
            self.age,
            self.gender,
            self.registration_date,
        ]


HEADERS = [
    "First name",
    "Last name",
    "Email",
    "Phone",
    "Organization",
    "Age",
    "Gender",
    "Registration date",
]
