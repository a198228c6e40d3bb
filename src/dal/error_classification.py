"""Provider-aware classification of driver exceptions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from common.config.env import get_env_bool
from common.observability.context import request_id_var

logger = logging.getLogger(__name__)

_CONSTRAINT_CLASS_NAMES = {
    "integrityerror",
    "integrityconstraintviolationerror",
    "uniqueviolationerror",
    "foreignkeyviolationerror",
    "notnullviolationerror",
    "checkviolationerror",
    "exclusionviolationerror",
}

_CONSTRAINT_FRAGMENTS = (
    "constraint failed",
    "unique constraint",
    "violates unique constraint",
    "violates foreign key constraint",
    "violates not-null constraint",
    "violates check constraint",
    "duplicate entry",
    "duplicate key",
    "foreign key constraint fails",
    "cannot be null",
)


@dataclass(frozen=True)
class ErrorClassification:
    """Structured provider-aware error classification."""

    category: str
    provider: str
    is_retryable: bool


def classify_error(provider: str, exc: Exception) -> str:
    """Classify an error into a provider-agnostic category."""
    return classify_error_info(provider, exc).category


def classify_error_info(provider: str, exc: Exception) -> ErrorClassification:
    """Classify an error into one of constraint/timeout/connectivity/syntax/unknown."""
    message = str(exc).lower()
    class_name = exc.__class__.__name__.lower()
    provider = (provider or "unknown").lower()

    if class_name in _CONSTRAINT_CLASS_NAMES or _matches_any(message, _CONSTRAINT_FRAGMENTS):
        return _classification("constraint", provider)
    if isinstance(exc, TimeoutError) or _matches_any(
        message, ("timeout", "timed out", "canceling statement", "interrupted")
    ):
        return _classification("timeout", provider)
    if _matches_any(
        message,
        (
            "could not connect",
            "connection refused",
            "connection reset",
            "connection is closed",
            "lost connection",
            "unable to open database",
            "database is locked",
        ),
    ):
        return _classification("connectivity", provider)
    if _matches_any(message, ("syntax error", "no such column", "no such table", "parse error")):
        return _classification("syntax", provider)

    if class_name in {"connectionerror", "operationalerror", "interfaceerror"}:
        return _classification("connectivity", provider)
    if "syntax" in class_name:
        return _classification("syntax", provider)

    return _classification("unknown", provider)


def emit_classified_error(provider: str, operation: str, category: str, exc: Exception) -> None:
    """Log a classified driver error and tag the current span when enabled."""
    if not get_env_bool("DAL_CLASSIFIED_ERROR_TELEMETRY", True):
        return

    error_info = classify_error_info(provider, exc)
    try:
        from opentelemetry import trace

        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_attribute("error.classification.category", category)
            span.set_attribute("error.classification.provider", provider)
            span.set_attribute("error.classification.operation", operation)
            span.set_attribute("error.classification.is_retryable", error_info.is_retryable)
    except Exception as span_exc:
        logger.debug("Failed to record error classification on span: %s", span_exc)

    logger.error(
        "dal_error_classified",
        extra={
            "event": "dal_error_classified",
            "provider": provider,
            "operation": operation,
            "error_category": category,
            "error_type": exc.__class__.__name__,
            "error_message": str(exc),
            "is_retryable": error_info.is_retryable,
            "request_id": request_id_var.get(),
        },
    )


def _matches_any(text: str, fragments: tuple[str, ...]) -> bool:
    return any(fragment in text for fragment in fragments)


def _classification(category: str, provider: str) -> ErrorClassification:
    return ErrorClassification(
        category=category,
        provider=provider,
        is_retryable=category in {"timeout", "connectivity"},
    )
