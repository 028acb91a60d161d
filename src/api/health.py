"""Health endpoints for monitoring and orchestration."""

import os
from datetime import UTC, datetime
from pathlib import Path

from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.config import settings

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Service identity and current time."""

    status: str
    timestamp: datetime
    service: str
    version: str
    environment: str


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Per-dependency readiness checks."""

    status: str
    checks: dict[str, str]


def _export_dir_check(export_dir: Path | None) -> str:
    if export_dir is None:
        return "not_configured"
    # The pipeline creates the directory on first export
    target = export_dir if export_dir.exists() else export_dir.parent
    return "ok" if os.access(target, os.W_OK) else "failed"


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe: the process is serving requests."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe.

    Checks:
    - Database is connected and answers a trivial query
    - Export directory is writable
    """
    checks: dict[str, str] = {}

    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["database"] = "not_configured"
    else:
        checks["database"] = "ok" if await db.is_healthy() else "failed"

    exporter = getattr(request.app.state, "exporter", None)
    checks["export_dir"] = _export_dir_check(exporter.export_dir if exporter else None)

    status = "ready" if all(v == "ok" for v in checks.values()) else "not_ready"
    return ReadinessResponse(status=status, checks=checks)
