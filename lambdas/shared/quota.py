"""Sliding-window quota tracking for narrator requests."""

import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from aws_lambda_powertools import Logger, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import ClientError
from pydantic import BaseModel

from .quota_limits import QuotaLimits
from .usage_log import UsageLog
from .utils import utc_now

logger = Logger(child=True)
metrics = Metrics(namespace="NarratorEngine")

MINUTE = timedelta(seconds=60)
DAY = timedelta(hours=24)


class QuotaStats(BaseModel):
    """Quota usage for one user."""

    requests_last_minute: int
    requests_last_day: int
    remaining_per_minute: int
    remaining_per_day: int
    percent_used_minute: float
    percent_used_day: float
    next_reset_minute: datetime
    next_reset_day: datetime
    limit_per_minute: int
    limit_per_day: int

    @property
    def exceeded(self) -> bool:
        return self.remaining_per_minute <= 0 or self.remaining_per_day <= 0


class QuotaCache:
    """Per-user stats cache with a fixed TTL.

    Entries are filled lazily, dropped when the user's usage changes and
    otherwise expire on read. There is no other eviction.
    """

    def __init__(
        self,
        ttl_seconds: float = QuotaLimits.CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[QuotaStats, float]] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> QuotaStats | None:
        """Return cached stats, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            stats, expiry = entry
            if self._clock() >= expiry:
                del self._entries[user_id]
                return None
            return stats

    def set(self, user_id: str, stats: QuotaStats) -> None:
        with self._lock:
            self._entries[user_id] = (stats, self._clock() + self.ttl_seconds)

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _percent(count: int, limit: int) -> float:
    if limit <= 0:
        return 100.0
    return min(100.0, count / limit * 100)


class QuotaTracker:
    """Counts a user's narrator requests over rolling minute/day windows."""

    def __init__(
        self,
        usage_log: UsageLog,
        limits: QuotaLimits | None = None,
        cache: QuotaCache | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize tracker.

        Args:
            usage_log: Usage log collaborator
            limits: Quota limits. Defaults to QuotaLimits().
            cache: Stats cache. Defaults to a new cache using the limits' TTL.
            now: Wall clock, injectable for tests
        """
        self.usage_log = usage_log
        self.limits = limits or QuotaLimits()
        self.cache = cache or QuotaCache(ttl_seconds=self.limits.CACHE_TTL_SECONDS)
        self._now = now

    def get_quota_stats(self, user_id: str) -> QuotaStats:
        """Get quota statistics for a user.

        Served from cache when a fresh entry exists.

        Args:
            user_id: User ID

        Returns:
            QuotaStats for both windows
        """
        cached = self.cache.get(user_id)
        if cached is not None:
            logger.debug("Quota stats served from cache", extra={"user_id": user_id})
            return cached

        now = self._now()
        minute_start = now - MINUTE
        day_start = now - DAY

        last_minute = self.usage_log.count_since(user_id, minute_start)
        last_day = self.usage_log.count_since(user_id, day_start)

        stats = QuotaStats(
            requests_last_minute=last_minute,
            requests_last_day=last_day,
            remaining_per_minute=max(0, self.limits.PER_MINUTE - last_minute),
            remaining_per_day=max(0, self.limits.PER_DAY - last_day),
            percent_used_minute=_percent(last_minute, self.limits.PER_MINUTE),
            percent_used_day=_percent(last_day, self.limits.PER_DAY),
            next_reset_minute=minute_start + MINUTE,
            next_reset_day=day_start + DAY,
            limit_per_minute=self.limits.PER_MINUTE,
            limit_per_day=self.limits.PER_DAY,
        )

        logger.info(
            "Quota stats calculated",
            extra={
                "user_id": user_id,
                "requests_last_minute": last_minute,
                "requests_last_day": last_day,
            },
        )

        self.cache.set(user_id, stats)
        return stats

    def track_usage(
        self,
        user_id: str,
        operation: str,
        success: bool,
        error_code: str | None = None,
    ) -> None:
        """Record a narrator request and invalidate the user's cached stats.

        Tracking failures are logged and swallowed so they never break the
        request being tracked.

        Args:
            user_id: User ID
            operation: Operation name
            success: Whether the request succeeded
            error_code: Optional error classification
        """
        try:
            self.usage_log.append(user_id, operation, success, error_code)
        except ClientError as e:
            logger.error(
                "Failed to track usage",
                extra={"user_id": user_id, "operation": operation, "error": str(e)},
            )
            return

        self.cache.invalidate(user_id)

        metrics.add_metric(
            name="NarratorRequests" if success else "NarratorFailures",
            unit=MetricUnit.Count,
            value=1,
        )
        logger.info(
            "Usage tracked",
            extra={
                "user_id": user_id,
                "operation": operation,
                "success": success,
                "error_code": error_code,
            },
        )

    def is_quota_exceeded(self, user_id: str) -> bool:
        """Check whether either window is used up."""
        return self.get_quota_stats(user_id).exceeded

    def clear_cache(self) -> None:
        """Drop all cached stats."""
        self.cache.clear()
        logger.debug("Quota cache cleared")


def get_quota_message(stats: QuotaStats) -> str:
    """Get the in-game message shown when the quota is used up.

    Args:
        stats: Current quota statistics

    Returns:
        A narrative message telling the player when to come back.
    """
    if stats.remaining_per_minute <= 0 and stats.remaining_per_day > 0:
        return (
            "**The narrator pauses to catch their breath...**\n\n"
            "*Too many deeds in too little time.* "
            f"Try again after {stats.next_reset_minute.strftime('%H:%M:%S')} UTC."
        )

    return (
        "**The spirits guiding your tale have grown weary.**\n\n"
        "The daily narrator quota has been used up. "
        "Come back later or continue with your own API key."
    )
