"""Custom exception classes for the finance API.

Each exception carries an error_code that maps to the catalog in errors.py
and the HTTP status the API layer should answer with.
"""

from typing import Any


class FinanceError(Exception):
    """Base exception for all domain errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "NF_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    default_status: int = 500

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
    ):
        """Initialize the exception.

        Args:
            error_code: Error code from errors.py
            details: Additional error context (not shown to users)
            http_status: HTTP status code (defaults to the class status)
        """
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status or self.default_status
        super().__init__(error_code)


class ValidationError(FinanceError):
    """Raised when input is missing or malformed (no state change)."""

    default_status = 400


class NotFoundError(FinanceError):
    """Raised when a referenced row does not exist."""

    default_status = 404


class PersistenceError(FinanceError):
    """Raised when a database operation fails.

    Atomic operations roll back before raising, so no partial state
    is left behind.
    """

    default_status = 500


class ExternalServiceError(FinanceError):
    """Raised when the LLM provider cannot produce a usable answer."""

    default_status = 503


class RateLimitExceededError(FinanceError):
    """Raised when a caller exceeds the insight request budget."""

    default_status = 429
