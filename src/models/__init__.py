"""Canonical data models for the ticketing service.

- BaseEntity: Base class with id, timestamps
- Event: A ticketed event owned by an organizer
- Participant: A person registered for events, unique by email
"""

from src.models.base import BaseEntity, ensure_utc
from src.models.event import Event
from src.models.participant import Participant

__all__ = [
    "BaseEntity",
    "ensure_utc",
    "Event",
    "Participant",
]
