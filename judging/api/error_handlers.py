"""Error Handlers — map every failure to the judging error envelope.

Invariants:
    - JudgingError → exc.to_response() at exc.http_status; client errors logged at WARNING,
      storage/configuration errors at ERROR
    - ValidationError carries the offending field; StoreConnectionError carries its reason
    - 503 responses include Retry-After so pollers back off instead of hammering a dead store
    - RequestValidationError → 400 with one entry per offending field (camelCase path)
    - Anything else → 500 INTERNAL_ERROR, no internals leaked

Design Decisions:
    - Registered from main.py through register_error_handlers(app): main stays a wiring file
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from judging.core.errors import (
    ErrorCategory, ErrorSeverity, JudgingError, StoreConnectionError, ValidationError,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "5"


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(JudgingError, handle_judging_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_judging_error(request: Request, exc: JudgingError) -> JSONResponse:
    body = exc.to_response()
    headers = {}
    if isinstance(exc, ValidationError) and exc.field:
        body["error"]["field"] = exc.field
    if isinstance(exc, StoreConnectionError):
        body["error"]["reason"] = exc.reason
        headers["Retry-After"] = RETRY_AFTER_SECONDS

    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "entity": exc.context.entity,
            "entity_id": exc.context.entity_id,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=body, headers=headers)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            # drop the leading "body"/"path" segment: clients know where they sent it
            "field": ".".join(str(loc) for loc in e["loc"][1:]) or str(e["loc"][0]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected payload on {request.method} {request.url.path}: "
        f"{', '.join(d['field'] for d in details)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": ErrorCategory.VALIDATION.value,
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all — never leaks internal details."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
