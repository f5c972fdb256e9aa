"""
Error taxonomy for the Employee API Gateway.

Every error surfaced to callers carries a stable machine-readable code, a
human message and the HTTP status it is rendered with. The exception handlers
in ``app.main`` turn these into the uniform JSON error envelope.
"""

from enum import Enum
from typing import Optional

from fastapi import status


class ApiErrorCode(str, Enum):
    """Stable error codes exposed in every error response."""

    UNKNOWN_ERROR = "ERR-GEN-001"
    VALIDATION_ERROR = "ERR-GEN-002"

    UNAUTHORIZED = "ERR-AUTH-001"
    ACCESS_DENIED = "ERR-AUTH-002"
    USER_ALREADY_EXISTS = "ERR-AUTH-003"
    AUTHENTICATION_FAILED = "ERR-AUTH-004"

    EXTERNAL_API_UNAVAILABLE = "ERR-EXT-001"
    EXTERNAL_API_RATE_LIMITED = "ERR-EXT-003"
    EXTERNAL_API_ERROR = "ERR-EXT-004"
    EXTERNAL_API_TIMEOUT = "ERR-EXT-005"

    RESOURCE_NOT_FOUND = "ERR-RES-001"

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_DEFAULT_MESSAGES = {
    ApiErrorCode.UNKNOWN_ERROR: "An unknown error occurred",
    ApiErrorCode.VALIDATION_ERROR: "Validation error",
    ApiErrorCode.UNAUTHORIZED: "Unauthorized",
    ApiErrorCode.ACCESS_DENIED: "Access denied. Valid API key required.",
    ApiErrorCode.USER_ALREADY_EXISTS: "User already exists",
    ApiErrorCode.AUTHENTICATION_FAILED: "Authentication failed",
    ApiErrorCode.EXTERNAL_API_UNAVAILABLE: "External API is unavailable",
    ApiErrorCode.EXTERNAL_API_RATE_LIMITED: "External API rate limit exceeded",
    ApiErrorCode.EXTERNAL_API_ERROR: "External API returned an error",
    ApiErrorCode.EXTERNAL_API_TIMEOUT: "External API request timed out",
    ApiErrorCode.RESOURCE_NOT_FOUND: "Resource not found",
}


class EmployeeApiError(Exception):
    """Base class for every typed error raised by the gateway."""

    code: ApiErrorCode = ApiErrorCode.UNKNOWN_ERROR
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.code.default_message
        super().__init__(self.message)


class EmployeeNotFoundError(EmployeeApiError):
    code = ApiErrorCode.RESOURCE_NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND


class RateLimitedError(EmployeeApiError):
    """The remote store answered 429; ``retry_after`` is in seconds."""

    code = ApiErrorCode.EXTERNAL_API_RATE_LIMITED
    http_status = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: Optional[str] = None, retry_after: int = 5):
        super().__init__(message or "Too many requests. Please try again later.")
        self.retry_after = retry_after


class ServiceUnavailableError(EmployeeApiError):
    code = ApiErrorCode.EXTERNAL_API_UNAVAILABLE
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


class ExternalTimeoutError(EmployeeApiError):
    code = ApiErrorCode.EXTERNAL_API_TIMEOUT
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


class ExternalApiError(EmployeeApiError):
    code = ApiErrorCode.EXTERNAL_API_ERROR
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR


class UnknownApiError(EmployeeApiError):
    code = ApiErrorCode.UNKNOWN_ERROR
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR


class UserAlreadyExistsError(EmployeeApiError):
    code = ApiErrorCode.USER_ALREADY_EXISTS
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, username: str):
        super().__init__(f"User already exists with username: {username}")
        self.username = username


class AuthenticationError(EmployeeApiError):
    """
    Login failure. ``reason`` is INVALID_CREDENTIALS or USER_DISABLED.

    The login contract maps both reasons to a generic 500.
    """

    code = ApiErrorCode.AUTHENTICATION_FAILED
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_DISABLED = "USER_DISABLED"

    def __init__(self, reason: str):
        super().__init__(f"Authentication failed: {reason}")
        self.reason = reason
