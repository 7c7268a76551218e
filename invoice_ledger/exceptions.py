"""
Bookkeeping error taxonomy.

Services raise these instead of bare ValueError so the HTTP
layer can map them to status codes without parsing messages.
Only DatabaseError may carry raw store diagnostics.
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from invoice_ledger.logging_config import get_logger

logger = get_logger("errors")


class BookkeepingError(Exception):
    """Base class for every error the accounting engine raises."""

    error_code = "ERR_BOOKKEEPING"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(BookkeepingError):
    """Malformed or missing input. Raised before any side effect."""

    error_code = "ERR_VALIDATION"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BookkeepingError):
    """
    Target row is absent or not owned by the caller.

    The two cases share one message on purpose: callers must
    not learn whether another user's row exists.
    """

    error_code = "ERR_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookkeepingError):
    """A write collided with an existing row (duplicate id or name)."""

    error_code = "ERR_CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class ConsistencyError(BookkeepingError):
    """Stored data violates an invariant the engine relies on."""

    error_code = "ERR_CONSISTENCY"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DatabaseError(BookkeepingError):
    """Underlying store failure, including lock-wait timeouts."""

    error_code = "ERR_DATABASE"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# --- Exception handlers ---

async def bookkeeping_exception_handler(
    request: Request, exc: BookkeepingError
) -> JSONResponse:
    """Render any BookkeepingError with a stable JSON shape."""
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            extra={
                "path": request.url.path,
                "error_code": exc.error_code,
                "error_message": exc.message,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )
