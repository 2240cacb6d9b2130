"""Domain exceptions and error classification for API responses."""

from enum import Enum

from pydantic import BaseModel

from fieldops.core.config import constants


class InvalidTransitionError(ValueError):
    """Requested status is not reachable from the task's current status."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition from {current} to {requested}")


class ForbiddenError(PermissionError):
    """Actor lacks permission for the requested action."""


class TaskNotFoundError(KeyError):
    """Referenced task does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Task not found"


class UserNotFoundError(KeyError):
    """Referenced user does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "User not found"


class ConflictError(Exception):
    """Request conflicts with the current stored state (e.g. duplicate e-mail)."""


class ConcurrentUpdateError(ConflictError):
    """Task changed between validation and write."""


class AuthenticationError(Exception):
    """Credentials are missing, invalid or expired."""


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Task errors
    ERR_INVALID_STATE_TRANSITION = "ERR_INVALID_STATE_TRANSITION"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_CONCURRENT_UPDATE = "ERR_CONCURRENT_UPDATE"

    # Permission errors
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_AUTHENTICATION_FAILED = "ERR_AUTHENTICATION_FAILED"

    # User errors
    ERR_USER_NOT_FOUND = "ERR_USER_NOT_FOUND"
    ERR_CONFLICT = "ERR_CONFLICT"

    # Generic errors
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    status_code: int


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Order matters: the typed domain errors subclass builtins (ValueError,
    KeyError, PermissionError) and must be matched before the generic cases.

    Args:
        exception: The exception raised while handling a request

    Returns:
        ErrorResponse with code, message, suggestion, severity and HTTP status
    """
    if isinstance(exception, InvalidTransitionError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_STATE_TRANSITION,
            message=str(exception),
            suggestion="Check the task's allowed transitions and try again.",
            severity=ErrorSeverity.LOW,
            status_code=constants.HTTP_BAD_REQUEST,
        )

    if isinstance(exception, AuthenticationError):
        return ErrorResponse(
            code=ErrorCode.ERR_AUTHENTICATION_FAILED,
            message=str(exception) or "Authentication failed.",
            suggestion="Log in again to obtain a fresh token.",
            severity=ErrorSeverity.MEDIUM,
            status_code=constants.HTTP_UNAUTHORIZED,
        )

    if isinstance(exception, PermissionError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message=str(exception) or "You don't have permission for this action.",
            suggestion="Contact an administrator if you think this is an error.",
            severity=ErrorSeverity.MEDIUM,
            status_code=constants.HTTP_FORBIDDEN,
        )

    if isinstance(exception, TaskNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NOT_FOUND,
            message=str(exception),
            suggestion="Refresh the task list to see current tasks.",
            severity=ErrorSeverity.LOW,
            status_code=constants.HTTP_NOT_FOUND,
        )

    if isinstance(exception, UserNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_USER_NOT_FOUND,
            message=str(exception),
            suggestion="Refresh the user list to see current users.",
            severity=ErrorSeverity.LOW,
            status_code=constants.HTTP_NOT_FOUND,
        )

    if isinstance(exception, ConcurrentUpdateError):
        return ErrorResponse(
            code=ErrorCode.ERR_CONCURRENT_UPDATE,
            message=str(exception),
            suggestion="The task was changed by someone else. Reload it and retry.",
            severity=ErrorSeverity.LOW,
            status_code=constants.HTTP_CONFLICT,
        )

    if isinstance(exception, ConflictError):
        return ErrorResponse(
            code=ErrorCode.ERR_CONFLICT,
            message=str(exception),
            suggestion="Use a different value and try again.",
            severity=ErrorSeverity.LOW,
            status_code=constants.HTTP_CONFLICT,
        )

    if isinstance(exception, ValueError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=str(exception),
            suggestion="Check the request payload and try again.",
            severity=ErrorSeverity.LOW,
            status_code=constants.HTTP_BAD_REQUEST,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.HIGH,
        status_code=constants.HTTP_SERVER_ERROR,
    )
