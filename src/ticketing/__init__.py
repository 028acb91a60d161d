"""Ticketing core.

- ParticipantRelationshipManager: membership changes kept consistent with tickets
- TicketInventoryAccountant: remaining-ticket resync
- EventStatisticsAggregator: cross-event rollups
- TicketingError hierarchy for domain failures

EventService lives in ``src.ticketing.event_service``; it depends on the
export pipeline, which itself raises ticketing errors.
"""

from src.ticketing.errors import (
    ConflictError,
    ErrorCode,
    ExportError,
    InvalidInputError,
    NotFoundError,
    TicketingError,
)
from src.ticketing.inventory import TicketInventoryAccountant
from src.ticketing.locks import EventLockRegistry
from src.ticketing.relationship_manager import ParticipantRelationshipManager
from src.ticketing.statistics import EventStatisticsAggregator

__all__ = [
    "ConflictError",
    "ErrorCode",
    "EventLockRegistry",
    "EventStatisticsAggregator",
    "ExportError",
    "InvalidInputError",
    "NotFoundError",
    "ParticipantRelationshipManager",
    "TicketInventoryAccountant",
    "TicketingError",
]
