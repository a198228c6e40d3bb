import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


class QueryTimeoutError(TimeoutError):
    """Canonical DAL timeout error with provider and operation context."""

    def __init__(
        self, provider: str, operation_name: str, timeout_seconds: Optional[float]
    ) -> None:
        """Initialize timeout details with provider/operation context."""
        self.provider = provider
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
        timeout_display = "unknown"
        if isinstance(timeout_seconds, (int, float)):
            timeout_display = f"{float(timeout_seconds):g}"
        super().__init__(f"{provider} {operation_name} timed out after {timeout_display}s.")


@dataclass(frozen=True)
class Deadline:
    """Absolute monotonic deadline shared by every statement of one request."""

    timeout_seconds: Optional[float]
    started_at: float = field(default_factory=time.monotonic)

    @classmethod
    def after(cls, timeout_seconds: Optional[float]) -> "Deadline":
        """Build a deadline expiring ``timeout_seconds`` from now (None/0 disables)."""
        if not timeout_seconds or timeout_seconds <= 0:
            return cls(timeout_seconds=None)
        return cls(timeout_seconds=timeout_seconds)

    def remaining(self) -> Optional[float]:
        """Seconds left before expiry, or None when unbounded."""
        if self.timeout_seconds is None:
            return None
        return self.timeout_seconds - (time.monotonic() - self.started_at)


async def run_with_deadline(
    operation: Callable[[], Awaitable[T]],
    deadline: Deadline,
    cancel: Optional[Callable[[], Awaitable[None]]] = None,
    *,
    provider: str = "unknown",
    operation_name: str = "operation",
) -> T:
    """Run an awaitable operation within the remaining deadline budget.

    On expiry the optional ``cancel`` hook runs before QueryTimeoutError is
    raised, so the driver abandons the in-flight statement.
    """
    remaining = deadline.remaining()
    if remaining is None:
        return await operation()
    if remaining <= 0:
        raise QueryTimeoutError(provider, operation_name, deadline.timeout_seconds)
    try:
        return await asyncio.wait_for(operation(), timeout=remaining)
    except asyncio.TimeoutError as exc:
        if cancel:
            try:
                result = cancel()
                if inspect.isawaitable(result):
                    await result
            except Exception as cancel_exc:
                logger.warning("Timeout cancellation failed: %s", cancel_exc)
        raise QueryTimeoutError(
            provider=provider,
            operation_name=operation_name,
            timeout_seconds=deadline.timeout_seconds,
        ) from exc
