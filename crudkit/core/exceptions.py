"""Structured exception hierarchy for consistent error handling.

This module defines the exception system used by the generic controller,
custom processors and pre-request hooks.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for logging
- **CrudkitError**: Base exception with context and cause chaining
- **Specialized exceptions**: Not found, validation, constraint and auth errors

The controller raises these internally and converts them into a single reply
write; the API exception handlers render the same shapes for errors raised
outside the controller.
"""

from enum import Enum
from typing import Any

NOT_FOUND_MESSAGE = "Not found"
GENERIC_STORE_ERROR_MESSAGE = "Something went wrong."


class ErrorCode(Enum):
    """Standardized error codes for the application."""

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to missing or malformed data."""

    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    """The data store rejected a write because of a constraint."""

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    # Authentication/Authorization errors
    UNAUTHORIZED = "UNAUTHORIZED"
    """Authentication failed or the caller is not allowed to do this."""


class Severity(Enum):
    """Severity levels for errors."""

    LOW = "LOW"
    """Expected errors caused by client input."""

    MEDIUM = "MEDIUM"
    """Errors that affect a single request but not the service."""

    HIGH = "HIGH"
    """Errors that need attention (security, integrity)."""

    CRITICAL = "CRITICAL"
    """Errors that may take the service down."""


class CrudkitError(Exception):
    """Base exception class for all application exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    def __str__(self) -> str:
        """Return a string representation of the exception."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception."""
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(CrudkitError):
    """Exception raised when submitted data fails validation.

    Carries the ordered list of messages returned to the client in the
    ``errors`` field of a 400 response.

    Args:
        errors: One message per offending field
        error_code: Error code (defaults to VALIDATION_ERROR)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        errors: list[str],
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.errors = list(errors)
        super().__init__(
            error_code, "; ".join(self.errors), Severity.LOW, context, cause
        )


class ConstraintError(ValidationError):
    """Exception raised when the data store rejects a write.

    The message is derived from the store's error text, e.g.
    ``"email already taken"``.
    """

    def __init__(
        self,
        errors: list[str],
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(errors, ErrorCode.CONSTRAINT_VIOLATION, context, cause)


class NotFoundError(CrudkitError):
    """Exception raised when a route or record cannot be found.

    Args:
        message: Description of what was not found
        error_code: Error code (defaults to NOT_FOUND)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str = NOT_FOUND_MESSAGE,
        error_code: str | ErrorCode = ErrorCode.NOT_FOUND,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class UnauthorizedError(CrudkitError):
    """Exception raised by pre-request hooks when access is denied.

    Args:
        message: Description of the authorization failure
        error_code: Error code (defaults to UNAUTHORIZED)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        error_code: str | ErrorCode = ErrorCode.UNAUTHORIZED,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.HIGH, context, cause)
