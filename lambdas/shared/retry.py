"""Retry and usage-tracking wrappers for narrator calls."""

import functools
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from aws_lambda_powertools import Logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import QuotaExceededError

if TYPE_CHECKING:
    from .quota import QuotaTracker

logger = Logger(child=True)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_DELAY_SECONDS = 1.0


def _is_retryable(error: BaseException) -> bool:
    # Quota errors will not clear up within the backoff window
    return isinstance(error, Exception) and not isinstance(error, QuotaExceededError)


def _log_attempt(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Narrator call failed, retrying",
        extra={
            "attempt": retry_state.attempt_number,
            "error": str(error),
            "next_delay": retry_state.next_action.sleep if retry_state.next_action else None,
        },
    )


def with_retry(
    fn: Callable[[], T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call fn, retrying failures with exponential backoff.

    Waits delay * 2**attempt between attempts (1s, 2s, 4s, ... by default).
    Once max_retries attempts have failed the last error is re-raised.

    Args:
        fn: Zero-argument callable to invoke
        max_retries: Total number of attempts
        delay: Base delay in seconds
        sleep: Sleep function, injectable for tests

    Returns:
        Whatever fn returns

    Raises:
        Exception: The last error raised by fn
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(1, max_retries)),
        wait=wait_exponential(multiplier=delay, exp_base=2),
        retry=retry_if_exception(_is_retryable),
        before_sleep=_log_attempt,
        sleep=sleep,
        reraise=True,
    )
    return retrying(fn)


def classify_error(error: BaseException) -> str:
    """Map an exception to the error code stored in the usage log."""
    if isinstance(error, QuotaExceededError):
        return "QUOTA_EXCEEDED"
    if isinstance(error, TimeoutError):
        return "TIMEOUT"
    return type(error).__name__


def with_tracking(
    operation: str,
    fn: Callable[..., T],
    tracker: "QuotaTracker",
    user_id: str,
) -> Callable[..., T]:
    """Wrap fn so every call is recorded in the quota tracker.

    Args:
        operation: Operation name stored with each usage entry
        fn: Callable to wrap
        tracker: Quota tracker receiving the outcome
        user_id: User the calls are billed to

    Returns:
        Wrapped callable with the same signature; failures are tracked and
        re-raised
    """

    @functools.wraps(fn)
    def tracked(*args, **kwargs) -> T:
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            tracker.track_usage(user_id, operation, success=False, error_code=classify_error(e))
            raise
        tracker.track_usage(user_id, operation, success=True)
        return result

    return tracked
