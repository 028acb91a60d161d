"""API router aggregation."""

from fastapi import APIRouter

from src.api.events import router as events_router
from src.api.health import router as health_router
from src.api.participants import router as participants_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(events_router)
api_router.include_router(participants_router)
