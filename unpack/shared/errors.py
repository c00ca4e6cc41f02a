"""
Domain exceptions and standardized error responses for the journal service.

The capture pipeline and conversation engine raise the exceptions defined
here; the API layer turns them into the shared JSON error envelope with
correlation ID tracking.

Usage:
    from unpack.shared.errors import ExtractionFailure, error_response, ErrorCode

    raise ExtractionFailure("Vision model returned no text", page_index=2)

    # In exception handler:
    return error_response(
        code=ErrorCode.EXTRACTION_FAILURE,
        message="We had trouble reading your handwriting",
        status_code=502,
        correlation_id=request.state.correlation_id,
    )
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel
from fastapi import Request
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """Standard error codes used across the service."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    TIMEOUT = "TIMEOUT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Domain-specific errors
    EXTRACTION_FAILURE = "EXTRACTION_FAILURE"
    RESPONSE_FAILURE = "RESPONSE_FAILURE"
    INVALID_STATE = "INVALID_STATE"
    CONVERSATION_BUSY = "CONVERSATION_BUSY"
    CAPTURE_CANCELLED = "CAPTURE_CANCELLED"


# =============================================================================
# DOMAIN EXCEPTIONS
# =============================================================================

class UnpackError(Exception):
    """Base class for all service errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class ExtractionFailure(UnpackError):
    """Vision model unreachable, timed out, or returned no text for a page."""

    code = ErrorCode.EXTRACTION_FAILURE
    status_code = 502
    retryable = True


class SummaryFailure(UnpackError):
    """Overview generation failed. Recovered locally with a fallback overview."""


class DiscoveryFailure(UnpackError):
    """Tangent discovery failed. Recovered locally with a fallback tangent."""


class ResponseFailure(UnpackError):
    """A chat turn could not be generated. The user's message is kept."""

    code = ErrorCode.RESPONSE_FAILURE
    status_code = 502
    retryable = True


class ConversationStateError(UnpackError):
    """Operation not allowed in the conversation's current state."""

    code = ErrorCode.INVALID_STATE
    status_code = 409


class ConversationBusy(UnpackError):
    """Another AI request for the same tangent is still in flight."""

    code = ErrorCode.CONVERSATION_BUSY
    status_code = 409
    retryable = True


class CaptureCancelled(UnpackError):
    """The capture session was cancelled; nothing was persisted."""

    code = ErrorCode.CAPTURE_CANCELLED
    status_code = 409


class PersistenceFailure(UnpackError):
    """The journal store could not complete a write."""

    code = ErrorCode.DATABASE_ERROR
    status_code = 500


class InvalidInput(UnpackError):
    """Request content the pipeline cannot work with (blank message, no pages)."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class Unauthorized(UnpackError):
    """No caller identity on the request."""

    code = ErrorCode.UNAUTHORIZED
    status_code = 401


class ServiceUnavailable(UnpackError):
    """A backing service (storage, model) is not configured."""

    code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 503


class NotFound(UnpackError):
    """Requested entry, tangent or photo does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = 404


class Forbidden(UnpackError):
    """Resource exists but belongs to another owner."""

    code = ErrorCode.FORBIDDEN
    status_code = 403


# =============================================================================
# RESPONSE HELPERS
# =============================================================================

class ErrorDetail(BaseModel):
    """Structured error detail model."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    correlation_id: Optional[str] = None


def get_correlation_id(request: Optional[Request] = None) -> Optional[str]:
    """
    Extract correlation ID from request state.

    Args:
        request: FastAPI request object (optional)

    Returns:
        Correlation ID string or None if not available
    """
    if request is None:
        return None
    return getattr(request.state, "correlation_id", None)


def error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a standardized JSON error response.

    Args:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional error details
        correlation_id: Request correlation ID for tracing

    Returns:
        JSONResponse with standardized error format
    """
    error_detail = ErrorDetail(
        code=code.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error_detail.model_dump(exclude_none=True)},
    )


def domain_error_response(exc: UnpackError, correlation_id: Optional[str] = None) -> JSONResponse:
    """Render a domain exception with its own code and status."""
    details = dict(exc.details) if exc.details else {}
    if exc.retryable:
        details["retryable"] = True
    return error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=details or None,
        correlation_id=correlation_id,
    )


def validation_error(
    message: str,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """Create a 400 validation error response."""
    return error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        status_code=400,
        details=details,
        correlation_id=correlation_id,
    )


def internal_error(
    message: str = "Internal server error",
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 500 internal error response.

    Note: Be careful not to expose sensitive internal details to clients.
    """
    return error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message=message,
        status_code=500,
        details=details,
        correlation_id=correlation_id,
    )
