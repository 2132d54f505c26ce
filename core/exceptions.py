"""
Platform Exceptions and API Error Handling

This module provides the exception hierarchy shared by the purchase,
webhook and progress services, plus the DRF exception handler that turns
them into structured JSON responses. Services raise these exceptions;
views never build error responses by hand.

Hierarchy:
- PlatformException: base class (message, status_code, error_code, details)
  - ValidationException: missing or malformed input (400)
  - NotFoundException: course, purchase or progress absent (404)
  - ConflictException: course already purchased (409)
  - AuthenticationException: bad or missing webhook signature (400)
  - GatewayException: payment provider call failed (502)
    - GatewayTimeoutException: payment provider did not answer in time (504)
  - StoreException: database failure (500)
    - StoreTimeoutException: database locked or statement timed out (503)

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

from django.db import DatabaseError, OperationalError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class PlatformException(Exception):
    """
    Base exception class for all platform errors surfaced to API callers.

    Attributes:
        message (str): Human-readable error message, safe to return to clients
        status_code (int): HTTP status code used for the response
        error_code (str): Stable machine-readable error identifier
        details (Dict[str, Any]): Additional context, logged but never returned

    Example:
        >>> try:
        ...     service.create_checkout_session(user, course_id)
        ... except PlatformException as e:
        ...     logger.error("Checkout failed: %s", e.message)
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "InternalError"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize a platform exception.

        Args:
            message: Human-readable error description
            status_code: Overrides the class default HTTP status
            error_code: Overrides the class default error identifier
            details: Internal context for logging
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to the public error payload.

        Returns:
            Dictionary representation without internal details
        """
        return {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
        }


class ValidationException(PlatformException):
    """Raised when a required request field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "ValidationError"
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None) -> None:
        details = {"field": field} if field else None
        super().__init__(message=message, details=details)


class NotFoundException(PlatformException):
    """
    Raised when a course, purchase or progress record does not exist.

    Attributes:
        resource (Optional[str]): The type of the missing resource
    """

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NotFound"
    default_message = "Resource not found"

    def __init__(self, message: Optional[str] = None, resource: Optional[str] = None) -> None:
        self.resource = resource
        details = {"resource": resource} if resource else None
        super().__init__(message=message, details=details)


class ConflictException(PlatformException):
    """Raised when a completed purchase already exists for the user and course."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "Conflict"
    default_message = "Course already purchased"


class AuthenticationException(PlatformException):
    """
    Raised when a webhook payload cannot be authenticated.

    A missing signature header, a signature mismatch and an unparsable
    payload all end up here. The gateway must see an error status so a
    legitimate delivery is retried.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "AuthenticationError"
    default_message = "Webhook signature verification failed"


class GatewayException(PlatformException):
    """Raised when the payment provider rejects a call or returns no session."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "GatewayError"
    default_message = "Error while creating payment session"


class GatewayTimeoutException(GatewayException):
    """Raised when the payment provider cannot be reached in time."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = "GatewayTimeout"
    default_message = "Payment provider did not respond in time"


class StoreException(PlatformException):
    """Raised when a database operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "StoreError"
    default_message = "Internal server error"


class StoreTimeoutException(StoreException):
    """Raised when the database is locked or a statement exceeds its timeout."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "StoreTimeout"
    default_message = "Service temporarily unavailable"


def store_exception_from(exc: DatabaseError) -> StoreException:
    """
    Map a Django database error onto the store exceptions.

    OperationalError covers "database is locked" (SQLite busy timeout) and
    "canceling statement due to statement timeout" (PostgreSQL).

    Args:
        exc: The original database error

    Returns:
        StoreTimeoutException for operational errors, StoreException otherwise
    """
    if isinstance(exc, OperationalError):
        return StoreTimeoutException(details={"error": str(exc)})
    return StoreException(details={"error": str(exc)})


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """
    DRF exception handler for the whole API.

    Domain exceptions are rendered from `to_dict()`, DRF's own exceptions
    (authentication, permissions, parse errors) keep DRF's rendering, and
    everything else is logged with a traceback and answered with a generic
    500 so no internal detail reaches the caller.
    """
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if isinstance(exc, DatabaseError):
        exc = store_exception_from(exc)

    if isinstance(exc, PlatformException):
        if exc.status_code >= 500:
            logger.error(
                "%s failed with %s: %s %s",
                view_name,
                exc.error_code,
                exc.message,
                exc.details,
            )
        else:
            logger.info("%s rejected request: %s (%s)", view_name, exc.message, exc.error_code)
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    logger.exception("Unhandled error in %s", view_name, exc_info=exc)
    return Response(
        PlatformException().to_dict(),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
