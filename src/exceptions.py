"""
Domain error taxonomy.

Services raise these; ``register_exception_handlers`` maps them onto HTTP
responses so routers never translate errors by hand.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BusFleetError(Exception):
    """Base class for errors that map onto an HTTP response"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    headers = None

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BusFleetError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class InsufficientCapacity(BusFleetError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Not enough seats available"

    def __init__(self, available: int):
        self.available = available
        super().__init__(f"Only {available} seats available")


class InvalidState(BusFleetError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed in the current state"


class Unauthorized(BusFleetError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(BusFleetError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class NotFound(BusFleetError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class Conflict(BusFleetError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting state"


class Locked(BusFleetError):
    status_code = status.HTTP_423_LOCKED

    def __init__(self, minutes_remaining: int):
        self.minutes_remaining = minutes_remaining
        super().__init__(f"Account is locked. Try again in {minutes_remaining} minutes.")


def register_exception_handlers(app: FastAPI):
    """Attach handlers for domain errors and unexpected failures"""

    @app.exception_handler(BusFleetError)
    async def handle_bus_fleet_error(request: Request, exc: BusFleetError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )
