"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions inherit from.
All specialized exceptions are in their respective themed modules.
"""

from typing import Any


class StoreOpsError(Exception):
    """
    Base exception for all reporting backend errors.

    All custom exceptions inherit from this class to enable:
    - Consistent error handling at the HTTP edge
    - Request ID correlation
    - Structured error logging

    Attributes:
        message: Error message
        request_id: Request ID for correlation (if available)
        details: Additional error details (dict)
        code: Short machine-readable error code (optional)

    Example:
        raise QueryFailedError(
            "Query failed on analytical store",
            details={
                "store_id": "analytical",
                "original_error": "DatabaseError",
            }
        )
    """

    default_code: str = "STOREOPS_ERROR"

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
        code: str | None = None,
    ):
        self.message = message
        self.request_id = request_id
        self.details = (details or {}).copy()
        self.code = code or self.default_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, code, message, request_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "StoreOpsError":
        """
        Add a suggestion to help operators fix the error.

        Returns:
            Self (for method chaining)
        """
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "StoreOpsError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        request_id_str = f", request_id='{self.request_id}'" if self.request_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{request_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        **details
    ) -> "StoreOpsError":
        """
        Create an error of this class from another exception.

        Useful for wrapping driver exceptions with additional context.

        Example:
            >>> try:
            ...     await conn.fetch(sql)
            ... except asyncpg.PostgresError as e:
            ...     raise QueryFailedError.from_exception(e, store_id="transactional")
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, request_id=request_id, details=error_details)


# Configuration exception (kept here as it's fundamental)
class ConfigurationError(StoreOpsError):
    """Raised when configuration is invalid or missing."""

    default_code = "CONFIGURATION_ERROR"
