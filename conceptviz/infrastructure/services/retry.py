"""
Name: Retry Helper with Exponential Backoff + Jitter

Responsibilities:
  - Classify transient vs permanent errors (HTTP codes, exception names)
  - Provide a tenacity-based retry decorator for model provider calls
  - Apply exponential backoff with jitter
  - Log retry attempts with request_id for observability

Collaborators:
  - tenacity: Retry library (handles coroutine functions natively)
  - config.Settings: Retry configuration (max_attempts, delays)
  - logger: Structured logging with request correlation

Constraints:
  - Only retry transient errors (429, 5xx, timeouts, connection errors)
  - Never retry permanent errors (400, 401, 403, 404)

Notes:
  - google-genai errors expose `code`, anthropic errors `status_code`,
    httpx errors `response.status_code`
"""

from dataclasses import dataclass
from typing import Callable

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...config import get_settings
from ...logger import logger

# R: Retry-able HTTP status codes
TRANSIENT_HTTP_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504, 529})

# R: Fail-fast HTTP status codes
PERMANENT_HTTP_CODES: frozenset[int] = frozenset({400, 401, 403, 404})

_TRANSIENT_NAME_PATTERNS = (
    "timeout",
    "connection",
    "temporary",
    "unavailable",
    "resourceexhausted",
    "overloaded",
    "ratelimit",
    "deadline",
)

_TRANSIENT_MESSAGE_PATTERNS = (
    "rate limit",
    "too many requests",
    "quota exceeded",
    "resource exhausted",
    "temporarily unavailable",
    "overloaded",
    "connection reset",
    "connection refused",
    "timed out",
    "deadline exceeded",
)


def get_http_status_code(exception: BaseException) -> int | None:
    """
    R: Extract an HTTP status code from provider / httpx exceptions.

    Returns:
        HTTP status code if found, None otherwise
    """
    code = getattr(exception, "code", None)
    if isinstance(code, int) and code >= 100:
        return code

    status_code = getattr(exception, "status_code", None)
    if isinstance(status_code, int):
        return status_code

    response = getattr(exception, "response", None)
    if response is not None and isinstance(
        getattr(response, "status_code", None), int
    ):
        return response.status_code

    return None


def is_transient_error(exception: BaseException) -> bool:
    """
    R: Determine if an exception is transient (should retry).

    Args:
        exception: The exception to classify

    Returns:
        True if transient (retry), False if permanent (fail fast)
    """
    status_code = get_http_status_code(exception)
    if status_code is not None:
        if status_code in PERMANENT_HTTP_CODES:
            return False
        if status_code in TRANSIENT_HTTP_CODES:
            return True

    exception_name = type(exception).__name__.lower()
    if any(pattern in exception_name for pattern in _TRANSIENT_NAME_PATTERNS):
        return True

    message = str(exception).lower()
    if any(pattern in message for pattern in _TRANSIENT_MESSAGE_PATTERNS):
        return True

    # R: Unknown errors are non-transient
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """R: Attempts and backoff bounds for one decorated call site."""

    max_attempts: int
    base_delay: float
    max_delay: float

    @classmethod
    def resolve(
        cls,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        max_delay: float | None = None,
    ) -> "RetryPolicy":
        """R: Explicit values win; None falls back to settings (0 is kept)."""
        settings = get_settings()
        return cls(
            max_attempts=max_attempts or settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds if base_delay is None else base_delay,
            max_delay=settings.retry_max_delay_seconds if max_delay is None else max_delay,
        )


def _before_sleep(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    upcoming = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Transient model provider error, retrying",
        extra={
            "call": getattr(retry_state.fn, "__qualname__", repr(retry_state.fn)),
            "attempt": retry_state.attempt_number,
            "wait_seconds": round(upcoming, 2),
            "status_code": get_http_status_code(error) if error else None,
            "error_type": type(error).__name__ if error else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> Callable:
    """
    R: Tenacity decorator retrying transient errors with jittered backoff.

    Works on plain and coroutine callables, including bound SDK methods
    (the adapters wrap client.aio.models.generate_content and
    client.messages.create once at construction). The last error is
    re-raised when attempts run out.
    """
    policy = RetryPolicy.resolve(max_attempts, base_delay, max_delay)
    return retry(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential_jitter(
            initial=policy.base_delay, max=policy.max_delay, jitter=policy.base_delay
        ),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_before_sleep,
        reraise=True,
    )
