"""Common error taxonomy helpers."""

from common.errors.error_codes import (
    ErrorCode,
    canonical_error_code_for_category,
    status_for_error_code,
)
from common.errors.rest_errors import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    RestError,
    SchemaError,
)

__all__ = [
    "BadRequestError",
    "ConflictError",
    "ErrorCode",
    "InternalError",
    "NotFoundError",
    "RestError",
    "SchemaError",
    "canonical_error_code_for_category",
    "status_for_error_code",
]
