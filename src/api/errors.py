"""Translate ticketing errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.ticketing.errors import (
    ConflictError,
    EmptyExportError,
    ExportWriteError,
    InvalidInputError,
    NotFoundError,
    TicketingError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins
STATUS_BY_ERROR: list[tuple[type[TicketingError], int]] = [
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidInputError, 400),
    (EmptyExportError, 422),
    (ExportWriteError, 500),
]


def status_for(error: TicketingError) -> int:
    """HTTP status code for a domain error."""
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


async def ticketing_error_handler(request: Request, exc: TicketingError) -> JSONResponse:
    """Render a domain error as ``{"detail": {code, message, context}}``."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handler on ``app``."""
    app.add_exception_handler(TicketingError, ticketing_error_handler)
