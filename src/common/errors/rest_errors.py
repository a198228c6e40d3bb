"""Typed errors raised by the CRUD engine and mapped to HTTP by the handler."""

from typing import Any, Optional

from common.errors.error_codes import ErrorCode, status_for_error_code


class RestError(Exception):
    """Base exception carrying a canonical code and a client-safe message."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """Initialize with a client-safe message and optional details."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        """HTTP status for this error kind."""
        return status_for_error_code(self.code)


class SchemaError(RestError):
    """Raised when schema metadata cannot be read; fatal at startup."""

    code = ErrorCode.SCHEMA_ERROR


class BadRequestError(RestError):
    """Raised for malformed requests, unknown fields and coercion failures."""

    code = ErrorCode.VALIDATION_ERROR


class NotFoundError(RestError):
    """Raised for unknown tables, unknown ids and zero-row writes."""

    code = ErrorCode.NOT_FOUND


class ConflictError(RestError):
    """Raised when the database rejects a write on a constraint."""

    code = ErrorCode.CONSTRAINT_VIOLATION

    def __init__(self, message: str = "Request conflicts with a database constraint", **kwargs):
        """Initialize with a generic conflict message."""
        super().__init__(message, **kwargs)


class InternalError(RestError):
    """Raised for any other database or driver failure."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = "Internal server error", **kwargs):
        """Initialize with a generic message; driver text is never exposed."""
        super().__init__(message, **kwargs)
