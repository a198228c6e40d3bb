"""Canonical error-code taxonomy for the REST surface."""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Optional


class ErrorCode(str, Enum):
    """Bounded canonical error codes for external contracts and logs."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    SCHEMA_ERROR = "SCHEMA_ERROR"
    DB_TIMEOUT = "DB_TIMEOUT"
    DB_CONNECTION_ERROR = "DB_CONNECTION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Driver error categories produced by dal.error_classification.
_CATEGORY_TO_CODE: dict[str, ErrorCode] = {
    "constraint": ErrorCode.CONSTRAINT_VIOLATION,
    "timeout": ErrorCode.DB_TIMEOUT,
    "connectivity": ErrorCode.DB_CONNECTION_ERROR,
    "syntax": ErrorCode.INTERNAL_ERROR,
    "unknown": ErrorCode.INTERNAL_ERROR,
}

_CODE_TO_STATUS: dict[ErrorCode, HTTPStatus] = {
    ErrorCode.VALIDATION_ERROR: HTTPStatus.BAD_REQUEST,
    ErrorCode.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorCode.CONSTRAINT_VIOLATION: HTTPStatus.CONFLICT,
    ErrorCode.SCHEMA_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCode.DB_TIMEOUT: HTTPStatus.GATEWAY_TIMEOUT,
    ErrorCode.DB_CONNECTION_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def canonical_error_code_for_category(
    category: Optional[str],
    *,
    fallback: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> ErrorCode:
    """Resolve the canonical error code for a driver error category."""
    normalized = (category or "").strip().lower()
    if not normalized:
        return fallback
    return _CATEGORY_TO_CODE.get(normalized, fallback)


def status_for_error_code(code: ErrorCode) -> int:
    """Return the HTTP status associated with an error code."""
    return int(_CODE_TO_STATUS.get(code, HTTPStatus.INTERNAL_SERVER_ERROR))
