"""Participant endpoints.

Provides REST endpoints for registration, participant reads and edits,
and joining or leaving events.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import Field

from src.models.participant import Participant
from src.ticketing.relationship_manager import ParticipantRelationshipManager
from src.ticketing.schemas import ParticipantCreate, ParticipantUpdate

router = APIRouter(prefix="/participants", tags=["participants"])


class RegistrationRequest(ParticipantCreate):
    """Request body for registration; ``event_id`` registers for an event too."""

    event_id: str | None = Field(default=None, description="Event to register for")


def get_relationship_manager(request: Request) -> ParticipantRelationshipManager:
    """Get ParticipantRelationshipManager from app state."""
    if not hasattr(request.app.state, "relationship_manager"):
        raise HTTPException(
            status_code=503,
            detail="ParticipantRelationshipManager not initialized",
        )
    return request.app.state.relationship_manager


ManagerDep = Annotated[ParticipantRelationshipManager, Depends(get_relationship_manager)]


@router.post("", response_model=Participant, status_code=201)
async def register_participant(body: RegistrationRequest, manager: ManagerDep) -> Participant:
    """Register a participant, reusing the record when the email is known."""
    data = ParticipantCreate(**body.model_dump(exclude={"event_id"}))
    return await manager.register_participant(data, body.event_id)


@router.get("", response_model=list[Participant])
async def list_participants(manager: ManagerDep) -> list[Participant]:
    """List all participants ordered by name."""
    return await manager.get_all_participants()


@router.get("/search", response_model=list[Participant])
async def search_participants(
    manager: ManagerDep,
    q: str = Query(min_length=1, description="Substring of the full name"),
) -> list[Participant]:
    """Search participants by name (case-insensitive)."""
    return await manager.search_participants(q)


@router.get("/{participant_id}", response_model=Participant)
async def get_participant(participant_id: str, manager: ManagerDep) -> Participant:
    """Get a single participant."""
    return await manager.get_participant(participant_id)


@router.put("/{participant_id}", response_model=Participant)
async def update_participant(
    participant_id: str,
    data: ParticipantUpdate,
    manager: ManagerDep,
) -> Participant:
    """Update participant details. Event registrations are not changed here."""
    return await manager.update_participant(participant_id, data)


@router.delete("/{participant_id}", response_model=Participant)
async def delete_participant(participant_id: str, manager: ManagerDep) -> Participant:
    """Delete a participant and release its tickets."""
    return await manager.delete_participant(participant_id)


@router.post("/{participant_id}/events/{event_id}", response_model=Participant)
async def join_event(participant_id: str, event_id: str, manager: ManagerDep) -> Participant:
    """Register an existing participant for an event."""
    return await manager.join_event(participant_id, event_id)


@router.delete("/{participant_id}/events/{event_id}", response_model=Participant)
async def leave_event(participant_id: str, event_id: str, manager: ManagerDep) -> Participant:
    """Remove a participant from an event."""
    return await manager.leave_event(participant_id, event_id)
