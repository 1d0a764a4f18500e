"""Error Handlers: global exception handlers for the feed API.

Invariants:
    - FeedError → its own http_status with the FeedError.to_response() envelope
    - RequestValidationError → 400, same envelope plus field-level details
    - Exception (catch-all) → 500 INTERNAL_ERROR, never leaks internal details
    - 4xx logged at WARNING, 5xx at ERROR

Design Decisions:
    - Every response body is built by FeedError.to_response(): one error shape for clients
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from livefeed.core.errors import (
    ErrorCategory, ErrorSeverity, FeedError, FeedValidationError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(FeedError, feed_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)


async def feed_error_handler(request: Request, exc: FeedError):
    """Handle all feed domain/infrastructure errors."""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"FeedError on {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed form/path input: 400 with per-field details."""
    logger.warning(
        f"Validation error on {request.url.path}: {exc.errors()}",
        extra={"path": request.url.path},
    )
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    field = details[0]["field"] if details else "request"
    content = FeedValidationError("Invalid request data", field=field).to_response()
    content["error"]["details"] = details
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


async def generic_error_handler(request: Request, exc: Exception):
    """Catch-all: never leaks internal details."""
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path},
    )
    error = FeedError(
        "An unexpected error occurred", "INTERNAL_ERROR",
        ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error.to_response(),
    )
