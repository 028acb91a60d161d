"""Repository layer for data persistence.

Repositories encapsulate SQL access for events, participants and their
memberships. Lookups return None on a miss; raising domain errors is left
to the ticketing services.
"""

from src.repositories.event_repo import EventRepository
from src.repositories.participant_repo import ParticipantRepository

__all__ = [
    "EventRepository",
    "ParticipantRepository",
]
