"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from src.db.turso import TursoClient
from src.export.pipeline import ExportPipeline
from src.main import app, init_services
from src.models.event import Event
from src.repositories.event_repo import EventRepository
from src.repositories.participant_repo import ParticipantRepository
from src.ticketing.event_service import EventService
from src.ticketing.inventory import TicketInventoryAccountant
from src.ticketing.locks import EventLockRegistry
from src.ticketing.relationship_manager import ParticipantRelationshipManager
from src.ticketing.schemas import EventCreate, ParticipantCreate
from src.ticketing.statistics import EventStatisticsAggregator

OWNER_ID = UUID("7f9c2b1e-3d4a-4c5b-8e6f-0a1b2c3d4e5f")
EVENT_START = datetime(2030, 6, 10, 9, 0, tzinfo=UTC)

APP_STATE_KEYS = (
    "db",
    "event_repo",
    "participant_repo",
    "locks",
    "accountant",
    "relationship_manager",
    "exporter",
    "event_service",
    "statistics",
)


@pytest.fixture
async def db_client(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_ticketing.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def event_repo(db_client: TursoClient) -> EventRepository:
    repo = EventRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def participant_repo(db_client: TursoClient) -> ParticipantRepository:
    repo = ParticipantRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
def accountant(
    event_repo: EventRepository,
    participant_repo: ParticipantRepository,
) -> TicketInventoryAccountant:
    return TicketInventoryAccountant(event_repo, participant_repo)


@pytest.fixture
def manager(
    event_repo: EventRepository,
    participant_repo: ParticipantRepository,
    accountant: TicketInventoryAccountant,
) -> ParticipantRelationshipManager:
    return ParticipantRelationshipManager(
        event_repo,
        participant_repo,
        accountant,
        EventLockRegistry(),
    )


@pytest.fixture
def exporter(tmp_path: Path) -> ExportPipeline:
    return ExportPipeline(tmp_path / "exports")


@pytest.fixture
def event_service(
    event_repo: EventRepository,
    participant_repo: ParticipantRepository,
    accountant: TicketInventoryAccountant,
    manager: ParticipantRelationshipManager,
    exporter: ExportPipeline,
) -> EventService:
    return EventService(event_repo, participant_repo, accountant, manager, exporter)


@pytest.fixture
def statistics(
    event_repo: EventRepository,
    participant_repo: ParticipantRepository,
) -> EventStatisticsAggregator:
    return EventStatisticsAggregator(event_repo, participant_repo)


@pytest.fixture
def event_data() -> Callable[..., EventCreate]:
    """Factory for valid event input; keyword arguments override fields."""

    def _make(**overrides) -> EventCreate:
        values = {
            "owner_id": OWNER_ID,
            "name": f"Conference {uuid4().hex[:8]}",
            "description": "Annual gathering",
            "start_date": EVENT_START,
            "end_date": EVENT_START + timedelta(days=1),
            "capacity": 10,
            "price": 25.0,
        }
        values.update(overrides)
        return EventCreate(**values)

    return _make


@pytest.fixture
def participant_data() -> Callable[..., ParticipantCreate]:
    """Factory for valid participant input; keyword arguments override fields."""

    def _make(**overrides) -> ParticipantCreate:
        values = {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": f"ada.{uuid4().hex[:8]}@example.com",
            "phone": "+33612345678",
            "organization": "Analytical Engines",
            "age": 36,
            "gender": "female",
        }
        values.update(overrides)
        return ParticipantCreate(**values)

    return _make


@pytest.fixture
def stored_event(
    event_repo: EventRepository,
) -> Callable[..., Awaitable[Event]]:
    """Factory inserting an event directly through the repository."""

    async def _make(**overrides) -> Event:
        capacity = overrides.pop("capacity", 10)
        values = {
            "owner_id": OWNER_ID,
            "name": f"Meetup {uuid4().hex[:8]}",
            "start_date": EVENT_START,
            "end_date": EVENT_START + timedelta(hours=3),
            "capacity": capacity,
            "tickets_remaining": capacity,
        }
        values.update(overrides)
        return await event_repo.create(Event(**values))

    return _make


@pytest.fixture
async def client(tmp_path: Path) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app with database."""
    db_path = tmp_path / "test_api.db"
    db = TursoClient(url=f"file:{db_path}")
    await db.connect()
    await init_services(app, db, export_dir=tmp_path / "exports", reject_overbooking=True)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()
    for key in APP_STATE_KEYS:
        if hasattr(app.state, key):
            delattr(app.state, key)
