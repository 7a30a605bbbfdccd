"""
Error normalization for resource stores.

Every failure reaching a store is turned into an AppError carrying one
human-readable message, whatever its origin:

- transport failures (httpx.TransportError, timeouts)
- non-2xx responses (httpx.HTTPStatusError)
- unexpected response shapes (pydantic.ValidationError, UnexpectedResponseError)
"""
import logging
from enum import Enum
from typing import Any, Optional

import httpx
from pydantic import ValidationError

logger = logging.getLogger("resource_store.errors")


class ErrorCode(str, Enum):
    """Normalized error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    UNPROCESSABLE_ENTITY = "UNPROCESSABLE_ENTITY"
    SERVER_ERROR = "SERVER_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    UNEXPECTED_RESPONSE = "UNEXPECTED_RESPONSE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE_CODES = frozenset(
    {ErrorCode.NETWORK_ERROR, ErrorCode.TIMEOUT_ERROR, ErrorCode.SERVER_ERROR}
)

UNEXPECTED_RESPONSE_MESSAGE = "Unexpected API response format"


class AppError(Exception):
    """Normalized error raised to callers of store mutations."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        status_code: Optional[int] = None,
        field: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.field = field
        self.details = details

    @property
    def retryable(self) -> bool:
        return self.code in RETRYABLE_CODES

    def __repr__(self) -> str:
        return (
            f"AppError(message={self.message!r}, code={self.code.value!r}, "
            f"status_code={self.status_code!r})"
        )


class UnexpectedResponseError(Exception):
    """Raised when a response body does not have the expected shape."""

    code = ErrorCode.UNEXPECTED_RESPONSE

    def __init__(self, message: str = UNEXPECTED_RESPONSE_MESSAGE) -> None:
        super().__init__(message)


def _response_body(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _from_status_error(error: httpx.HTTPStatusError) -> AppError:
    status = error.response.status_code
    data = _response_body(error.response)
    message = data.get("message")

    if status == 400:
        return AppError(
            message or "Invalid request data",
            ErrorCode.VALIDATION_ERROR,
            status,
            field=data.get("field"),
            details=data.get("errors"),
        )
    if status == 401:
        return AppError("Authentication required", ErrorCode.UNAUTHORIZED, status)
    if status == 403:
        return AppError(
            "You do not have permission to perform this action",
            ErrorCode.FORBIDDEN,
            status,
        )
    if status == 404:
        return AppError(message or "Resource not found", ErrorCode.NOT_FOUND, status)
    if status == 409:
        return AppError(
            message or "Conflict: Resource already exists", ErrorCode.CONFLICT, status
        )
    if status == 422:
        return AppError(
            message or "Validation failed",
            ErrorCode.UNPROCESSABLE_ENTITY,
            status,
            details=data.get("errors"),
        )
    if status >= 500:
        return AppError(
            "Internal server error. Please try again later.",
            ErrorCode.SERVER_ERROR,
            status,
        )
    return AppError(
        message or f"Request failed with status {status}", ErrorCode.API_ERROR, status
    )


def normalize_error(error: BaseException, context: Optional[str] = None) -> AppError:
    """Map any failure to an AppError. AppError instances pass through unchanged."""
    if isinstance(error, AppError):
        return error

    logger.warning(f"Error in {context or 'unknown context'}: {error!r}")

    if isinstance(error, httpx.HTTPStatusError):
        return _from_status_error(error)

    if isinstance(error, httpx.TimeoutException):
        return AppError("Request timed out. Please try again.", ErrorCode.TIMEOUT_ERROR)

    if isinstance(error, httpx.TransportError):
        return AppError(
            "Network connection failed. Please check your internet connection.",
            ErrorCode.NETWORK_ERROR,
        )

    if isinstance(error, (ValidationError, UnexpectedResponseError)):
        return AppError(UNEXPECTED_RESPONSE_MESSAGE, ErrorCode.UNEXPECTED_RESPONSE)

    return AppError(str(error) or "An unexpected error occurred", ErrorCode.UNKNOWN_ERROR)


def is_retryable_error(error: BaseException) -> bool:
    """Network, timeout and server errors are worth another attempt."""
    return normalize_error(error).retryable
