"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No credentials leaking into error messages

IMPORTANT: Raise these instead of bare Exception from service code.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: A single base class gives every failure an HTTP status code and
    the same JSON shape as the successful responses (a ``success`` flag).

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "pass", "token", "secret", "key", "api_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "success": False,
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class InvalidStatusError(ValidationError):
    """
    Raised when a ticket status label is not one of the local labels.

    WHY: The update form only offers Open, In Progress, Resolved and
    Closed. Anything else is a hand-crafted request and is rejected
    rather than silently mapped to a default.

    HTTP Status: 400 Bad Request
    """

    default_message = "Invalid ticket status"


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class EmailServiceError(ExternalServiceError):
    """
    Raised when an email cannot be composed or handed to a provider
    (missing template, render failure, provider misconfiguration).

    HTTP Status: 502 Bad Gateway
    """

    default_message = "Email service error"


class EmailDeliveryError(EmailServiceError):
    """
    Raised when a ticket notification could not be delivered.

    WHY: Delivery happens after the ticket change is saved. A 500 tells
    the caller the request failed, while the ticket itself has already
    been stored or updated.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Failed to send notification email"


# ============================================================================
# Storage Exceptions
# ============================================================================


class StorageError(AppException):
    """
    Raised when the local ticket document cannot be read or written.

    WHY: The resilient store catches this to switch to in-memory
    storage; it only reaches a client when no fallback is configured.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Ticket storage error"


class DatabaseError(AppException):
    """
    Raised when external database operations fail.

    WHY: Database errors are converted at the DAO layer so no SQL
    reaches the client.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Database error"
