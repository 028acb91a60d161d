"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from src.api.errors import register_exception_handlers
from src.api.router import api_router
from src.config import settings
from src.db.turso import TursoClient
from src.export.pipeline import ExportPipeline
from src.repositories.event_repo import EventRepository
from src.repositories.participant_repo import ParticipantRepository
from src.ticketing.event_service import EventService
from src.ticketing.inventory import TicketInventoryAccountant
from src.ticketing.locks import EventLockRegistry
from src.ticketing.relationship_manager import ParticipantRelationshipManager
from src.ticketing.statistics import EventStatisticsAggregator

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def init_services(
    app: FastAPI,
    db: TursoClient,
    *,
    export_dir: Path | None = None,
    reject_overbooking: bool | None = None,
) -> None:
    """Create schemas and wire the ticketing services into app state.

    Args:
        app: Application whose state receives the services
        db: Connected database client
        export_dir: Export directory (defaults to settings.export_dir)
        reject_overbooking: Overbooking policy (defaults to settings)
    """
    if reject_overbooking is None:
        reject_overbooking = settings.reject_overbooking

    event_repo = EventRepository(db)
    participant_repo = ParticipantRepository(db)
    await event_repo.initialize()
    await participant_repo.initialize()
    logger.info("Event and participant tables initialized")

    locks = EventLockRegistry()
    accountant = TicketInventoryAccountant(event_repo, participant_repo)
    manager = ParticipantRelationshipManager(
        event_repo,
        participant_repo,
        accountant,
        locks,
        reject_overbooking=reject_overbooking,
    )
    exporter = ExportPipeline(export_dir or settings.export_dir)

    app.state.db = db
    app.state.event_repo = event_repo
    app.state.participant_repo = participant_repo
    app.state.locks = locks
    app.state.accountant = accountant
    app.state.relationship_manager = manager
    app.state.exporter = exporter
    app.state.event_service = EventService(
        event_repo, participant_repo, accountant, manager, exporter
    )
    app.state.statistics = EventStatisticsAggregator(event_repo, participant_repo)
    logger.info(
        f"Ticketing services initialized (reject_overbooking={reject_overbooking}, "
        f"export_dir={exporter.export_dir})"
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Connect to the database
    - Create tables and wire services

    Shutdown:
    - Close database connection
    """
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    logger.info(f"Database connected: {db.url}")

    await init_services(app, db)

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await db.close()


app = FastAPI(
    title=settings.app_name,
    description="Event management: events, participant registration, ticket inventory and exports",
    version=settings.app_version,
    lifespan=lifespan,
)

register_exception_handlers(app)
app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
