"""
Shared exception classes and error handling utilities for Glucose Insight Service.

This module provides:
- Custom exception hierarchy for domain-specific errors
- Consistent error response formatting
- Exception handlers for FastAPI integration

Every error leaves the API as:
    {"success": false, "detail": "...", "context": {...}}

Usage:
    from core.exceptions import InvalidReadingError, StoreUnavailableError

    # In service layer - raise domain exceptions
    raise InvalidReadingError("Glucose value must be finite", value=str(value))

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASSES
# =============================================================================

class GlucoseServiceError(Exception):
    """
    Base exception for all Glucose Service domain errors.

    Provides consistent error structure with status code and detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context to include in error response.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result: Dict[str, Any] = {"success": False, "detail": self.detail}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class ValidationError(GlucoseServiceError):
    """Raised when input is malformed and must be rejected before processing."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid input"


class InvalidReadingError(ValidationError):
    """Raised when a glucose value cannot be classified (non-finite, negative)."""

    detail = "Invalid glucose reading"


class InvalidThresholdError(ValidationError):
    """Raised when a threshold update is inconsistent."""

    detail = "Invalid threshold configuration"


# =============================================================================
# NOT FOUND EXCEPTIONS
# =============================================================================

class NotFoundError(GlucoseServiceError):
    """Base exception for missing resources."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"


class ReadingNotFoundError(NotFoundError):
    """Raised when a reading does not exist or is not owned by the patient."""

    detail = "Reading not found"

    def __init__(self, reading_id: Optional[int] = None, **kwargs: Any):
        detail = f"Reading {reading_id} not found" if reading_id is not None else self.detail
        super().__init__(detail=detail, reading_id=reading_id, **kwargs)


class ThresholdNotFoundError(NotFoundError):
    """Raised when a threshold category is not configured."""

    detail = "Threshold not found"

    def __init__(self, category_name: Optional[str] = None, **kwargs: Any):
        detail = f"Threshold '{category_name}' not found" if category_name else self.detail
        super().__init__(detail=detail, category_name=category_name, **kwargs)


# =============================================================================
# STORE EXCEPTIONS
# =============================================================================

class StoreUnavailableError(GlucoseServiceError):
    """Raised when the reading, recommendation or threshold store fails."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Data store unavailable"

    def __init__(self, operation: Optional[str] = None, **kwargs: Any):
        detail = f"Data store unavailable during {operation}" if operation else self.detail
        super().__init__(detail=detail, operation=operation, **kwargs)


class ThresholdNotConfiguredError(GlucoseServiceError):
    """Raised when no Normal range exists, so nothing can be classified."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Normal threshold range is not configured"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def glucose_service_exception_handler(
    request: Request,
    exc: GlucoseServiceError
) -> JSONResponse:
    """
    Handle GlucoseServiceError exceptions and return consistent JSON responses.
    """
    logger.warning(
        f"GlucoseServiceError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_dict())
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request body/query validation failures with the common error envelope.
    """
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method}
    )
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
        }
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions with a generic error response.

    Logs the full exception for debugging but returns a safe error message.
    """
    logger.exception(
        f"Unhandled exception: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "detail": "An internal server error occurred"}
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(GlucoseServiceError, glucose_service_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
