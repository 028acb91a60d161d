"""Domain errors for ticketing operations.

Every error carries an ``ErrorCode``, a user-safe message, and a context
dict naming the offending id, field, or value so callers can act on it
without a stack trace.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    PARTICIPANT_NOT_FOUND = "PARTICIPANT_NOT_FOUND"
    EVENT_NAME_CONFLICT = "EVENT_NAME_CONFLICT"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    NOT_REGISTERED = "NOT_REGISTERED"
    EMAIL_CONFLICT = "EMAIL_CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_ID_FORMAT = "INVALID_ID_FORMAT"
    INVALID_CAPACITY = "INVALID_CAPACITY"
    EMPTY_EXPORT = "EMPTY_EXPORT"
    EXPORT_WRITE_FAILED = "EXPORT_WRITE_FAILED"


class TicketingError(Exception):
    """Base domain error with code, message and context."""

    code: ErrorCode

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error bodies."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": {k: str(v) for k, v in self.context.items()},
        }


# Categories


class NotFoundError(TicketingError):
    """A referenced id or name has no matching record."""


class ConflictError(TicketingError):
    """A uniqueness or membership rule would be violated."""


class InvalidInputError(TicketingError):
    """Caller supplied malformed or inconsistent input."""


class ExportError(TicketingError):
    """Participant export could not be produced."""


# Not found


class EventNotFoundError(NotFoundError):
    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: Any = None, *, name: str | None = None) -> None:
        if name is not None:
            super().__init__(f"Event with name '{name}' not found", name=name)
        else:
            super().__init__(f"Event {event_id} not found", event_id=event_id)


class ParticipantNotFoundError(NotFoundError):
    code = ErrorCode.PARTICIPANT_NOT_FOUND

    def __init__(self, participant_id: Any) -> None:
        super().__init__(
            f"Participant {participant_id} not found",
            participant_id=participant_id,
        )


# Conflicts


class EventNameConflictError(ConflictError):
    code = ErrorCode.EVENT_NAME_CONFLICT

    def __init__(self, name: str) -> None:
        super().__init__(f"Event with name '{name}' already exists", name=name)


class AlreadyRegisteredError(ConflictError):
    code = ErrorCode.ALREADY_REGISTERED

    def __init__(self, participant_id: Any, event_id: Any) -> None:
        super().__init__(
            f"Participant {participant_id} is already registered for event {event_id}",
            participant_id=participant_id,
            event_id=event_id,
        )


class NotRegisteredError(ConflictError):
    code = ErrorCode.NOT_REGISTERED

    def __init__(self, participant_id: Any, event_id: Any) -> None:
        super().__init__(
            f"Participant {participant_id} is not registered for event {event_id}",
            participant_id=participant_id,
            event_id=event_id,
        )


class EmailConflictError(ConflictError):
    code = ErrorCode.EMAIL_CONFLICT

    def __init__(self, email: str) -> None:
        super().__init__(f"Participant with email {email} already exists", email=email)


class CapacityExceededError(ConflictError):
    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self, event_id: Any, capacity: int) -> None:
        super().__init__(
            f"Event {event_id} is sold out (capacity {capacity})",
            event_id=event_id,
            capacity=capacity,
        )


# Invalid input


class InvalidDateRangeError(InvalidInputError):
    code = ErrorCode.INVALID_DATE_RANGE

    def __init__(self, start_date: Any, end_date: Any) -> None:
        super().__init__(
            f"Start date {start_date} must be before end date {end_date}",
            start_date=start_date,
            end_date=end_date,
        )


class InvalidIdFormatError(InvalidInputError):
    code = ErrorCode.INVALID_ID_FORMAT

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f"Invalid {field} format: {value!r}", field=field, value=value)


class InvalidCapacityError(InvalidInputError):
    code = ErrorCode.INVALID_CAPACITY

    def __init__(self, capacity: int) -> None:
        super().__init__(f"Capacity cannot be negative: {capacity}", capacity=capacity)


# Export


class EmptyExportError(ExportError):
    code = ErrorCode.EMPTY_EXPORT

    def __init__(self, event_id: Any) -> None:
        super().__init__(f"No participants to export for event {event_id}", event_id=event_id)


class ExportWriteError(ExportError):
    code = ErrorCode.EXPORT_WRITE_FAILED

    def __init__(self, event_id: Any, fmt: str, reason: str) -> None:
        super().__init__(
            f"Failed to write {fmt} export for event {event_id}: {reason}",
            event_id=event_id,
            format=fmt,
        )
