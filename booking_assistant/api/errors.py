from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from booking_assistant.application.exceptions import (
    BookingAssistantError,
    ConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
    RateLimitExceededError,
    SessionBusyError,
    StoreUnavailableError,
    UnauthorizedError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses come before their bases.
STATUS_BY_ERROR: tuple[tuple[type[BookingAssistantError], int], ...] = (
    (ValidationError, 400),
    (UnauthorizedError, 401),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidStatusTransitionError, 409),
    (SessionBusyError, 429),
    (RateLimitExceededError, 429),
    (UpstreamTimeoutError, 504),
    (UpstreamError, 502),
    (StoreUnavailableError, 503),
)


def status_for(error: BookingAssistantError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def error_body(
    code: str,
    message: str,
    retryable: bool = False,
    details: list[Any] | None = None,
    retry_after: int | None = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "retryable": retryable,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        error["details"] = details
    if retry_after is not None:
        error["retryAfter"] = retry_after
    return {"success": False, "error": error}


def _handle_app_error(request: Request, exc: BookingAssistantError) -> JSONResponse:
    status = status_for(exc)
    details = exc.errors if isinstance(exc, ValidationError) else None
    message = "Invalid booking data" if isinstance(exc, ValidationError) else str(exc)
    log = logger.error if status >= 500 else logger.info
    log("Request failed", extra={"status": status, "reason": exc.code, "error": str(exc)})
    retry_after = exc.retry_after if isinstance(exc, RateLimitExceededError) else None
    return JSONResponse(
        status_code=status,
        content=error_body(exc.code, message, retryable=exc.retryable, details=details, retry_after=retry_after),
        headers={"Retry-After": str(retry_after)} if retry_after is not None else None,
    )


def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content=error_body(ValidationError.code, "Invalid request data", details=details),
    )


def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"error": str(exc)})
    return JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", "Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingAssistantError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(Exception, _handle_unexpected)
