"""Translate domain exceptions into JSON error responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fieldops.core.config import constants
from fieldops.core.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    TaskNotFoundError,
    UserNotFoundError,
    classify_error_with_response,
)


logger = logging.getLogger(__name__)

HANDLED_EXCEPTIONS: tuple[type[Exception], ...] = (
    InvalidTransitionError,
    ForbiddenError,
    PermissionError,
    TaskNotFoundError,
    UserNotFoundError,
    ConflictError,
    AuthenticationError,
    ValueError,
)


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a classified error with its status code."""
    error = classify_error_with_response(exc)
    logger.info(
        "request_failed",
        extra={"path": request.url.path, "code": error.code, "status_code": error.status_code},
    )

    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == constants.HTTP_UNAUTHORIZED else None
    return JSONResponse(
        status_code=error.status_code,
        content={
            "code": error.code,
            "message": error.message,
            "suggestion": error.suggestion,
            "severity": error.severity.value,
        },
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register the domain error handler for every handled exception type."""
    for exc_type in HANDLED_EXCEPTIONS:
        app.add_exception_handler(exc_type, domain_error_handler)
