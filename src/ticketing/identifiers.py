"""Parsing of caller-supplied identifiers."""

from uuid import UUID

from src.ticketing.errors import InvalidIdFormatError


def parse_id(value: str | UUID, field: str = "id") -> UUID:
    """Parse an identifier, raising a domain error when malformed.

    Raises:
        InvalidIdFormatError: If value is not a valid UUID.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        raise InvalidIdFormatError(field, value) from None
