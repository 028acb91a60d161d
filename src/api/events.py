"""Event endpoints.

Provides REST endpoints for:
- Event CRUD and lookups by name or owner
- Participant listing and export per event
- The cross-event statistics overview

Static paths (``/search``, ``/statistics``, ``/owner/...``) are declared
before ``/{event_id}`` so they are not captured by it.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from src.export.pipeline import ExportPipeline
from src.export.schemas import ExportFormat
from src.models.event import Event
from src.models.participant import Participant
from src.ticketing.event_service import EventService
from src.ticketing.schemas import EventCreate, EventUpdate, StatisticsOverview
from src.ticketing.statistics import EventStatisticsAggregator

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(request: Request) -> EventService:
    """Get EventService from app state."""
    if not hasattr(request.app.state, "event_service"):
        raise HTTPException(status_code=503, detail="EventService not initialized")
    return request.app.state.event_service


def get_statistics(request: Request) -> EventStatisticsAggregator:
    """Get EventStatisticsAggregator from app state."""
    if not hasattr(request.app.state, "statistics"):
        raise HTTPException(status_code=503, detail="Statistics not initialized")
    return request.app.state.statistics


def get_exporter(request: Request) -> ExportPipeline:
    """Get ExportPipeline from app state."""
    if not hasattr(request.app.state, "exporter"):
        raise HTTPException(status_code=503, detail="ExportPipeline not initialized")
    return request.app.state.exporter


EventServiceDep = Annotated[EventService, Depends(get_event_service)]


@router.get("", response_model=list[Event])
async def list_events(service: EventServiceDep) -> list[Event]:
    """List all events ordered by start date."""
    return await service.get_all_events()


@router.get("/search", response_model=Event)
async def find_event_by_name(
    service: EventServiceDep,
    name: str = Query(min_length=1, description="Exact event name"),
) -> Event:
    """Find an event by its exact name."""
    return await service.find_event_by_name(name)


@router.get("/statistics", response_model=StatisticsOverview)
async def statistics_overview(
    statistics: Annotated[EventStatisticsAggregator, Depends(get_statistics)],
) -> StatisticsOverview:
    """Cross-event counts, ticket utilization and participation trends."""
    return await statistics.compute_overview()


@router.get("/owner/{owner_id}", response_model=list[Event])
async def list_events_by_owner(owner_id: str, service: EventServiceDep) -> list[Event]:
    """List events organized by a user."""
    return await service.get_events_by_owner(owner_id)


@router.get("/{event_id}", response_model=Event)
async def get_event(event_id: str, service: EventServiceDep) -> Event:
    """Get a single event."""
    return await service.get_event_by_id(event_id)


@router.post("", response_model=Event, status_code=201)
async def create_event(data: EventCreate, service: EventServiceDep) -> Event:
    """Create an event; all tickets start out available."""
    return await service.create_event(data)


@router.put("/{event_id}", response_model=Event)
async def update_event(event_id: str, data: EventUpdate, service: EventServiceDep) -> Event:
    """Update an event. Only fields present in the body are changed."""
    return await service.update_event(event_id, data)


@router.delete("/{event_id}", response_model=Event)
async def delete_event(event_id: str, service: EventServiceDep) -> Event:
    """Delete an event.

    Participants registered only for this event are deleted with it; the
    others are detached.
    """
    return await service.delete_event(event_id)


@router.get("/{event_id}/participants", response_model=list[Participant])
async def list_event_participants(event_id: str, service: EventServiceDep) -> list[Participant]:
    """List the participants registered for an event."""
    return await service.get_event_participants(event_id)


@router.get("/{event_id}/participants/export")
async def export_event_participants(
    event_id: str,
    service: EventServiceDep,
    exporter: Annotated[ExportPipeline, Depends(get_exporter)],
    fmt: ExportFormat = Query(default=ExportFormat.CSV, alias="format"),
) -> FileResponse:
    """Download the attendee list as CSV, PDF or Excel.

    The file is deleted once the response has been sent.
    """
    path = await service.export_participants(event_id, fmt)
    return FileResponse(
        path,
        media_type=fmt.media_type,
        filename=path.name,
        background=BackgroundTask(exporter.cleanup, path),
    )
