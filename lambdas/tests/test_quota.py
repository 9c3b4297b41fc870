"""Tests for quota tracking."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from shared.quota import QuotaCache, QuotaTracker, get_quota_message
from shared.quota_limits import QuotaLimits

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def usage_log():
    log = MagicMock()
    log.count_since.return_value = 0
    return log


@pytest.fixture
def tracker(usage_log):
    return QuotaTracker(usage_log, now=lambda: NOW)


def _counts(usage_log, minute, day):
    """Return different counts for the minute and day windows."""

    def count_since(user_id, since, successful_only=True):
        return minute if since == NOW - timedelta(seconds=60) else day

    usage_log.count_since.side_effect = count_since


class TestGetQuotaStats:
    """Tests for quota statistics."""

    def test_fresh_user(self, tracker):
        stats = tracker.get_quota_stats("user-1")

        assert stats.requests_last_minute == 0
        assert stats.remaining_per_minute == 15
        assert stats.remaining_per_day == 1500
        assert stats.percent_used_day == 0.0
        assert stats.exceeded is False

    def test_counts_both_windows(self, tracker, usage_log):
        _counts(usage_log, minute=5, day=300)

        stats = tracker.get_quota_stats("user-1")

        assert stats.requests_last_minute == 5
        assert stats.requests_last_day == 300
        assert stats.remaining_per_minute == 10
        assert stats.remaining_per_day == 1200
        assert stats.percent_used_day == pytest.approx(20.0)

    def test_windows_slide_from_now(self, tracker, usage_log):
        tracker.get_quota_stats("user-1")

        windows = [call.args[1] for call in usage_log.count_since.call_args_list]
        assert windows == [NOW - timedelta(seconds=60), NOW - timedelta(hours=24)]

    def test_minute_limit_exceeded(self, tracker, usage_log):
        _counts(usage_log, minute=15, day=15)
        stats = tracker.get_quota_stats("user-1")
        assert stats.remaining_per_minute == 0
        assert stats.exceeded is True

    def test_remaining_never_negative(self, tracker, usage_log):
        _counts(usage_log, minute=20, day=2000)
        stats = tracker.get_quota_stats("user-1")
        assert stats.remaining_per_minute == 0
        assert stats.remaining_per_day == 0
        assert stats.percent_used_minute == 100.0

    def test_custom_limits(self, usage_log):
        tracker = QuotaTracker(usage_log, limits=QuotaLimits(PER_MINUTE=2, PER_DAY=10))
        usage_log.count_since.return_value = 2
        assert tracker.is_quota_exceeded("user-1") is True


class TestCaching:
    """Tests for the stats cache."""

    def test_second_call_served_from_cache(self, tracker, usage_log):
        tracker.get_quota_stats("user-1")
        tracker.get_quota_stats("user-1")
        assert usage_log.count_since.call_count == 2

    def test_cache_is_per_user(self, tracker, usage_log):
        tracker.get_quota_stats("user-1")
        tracker.get_quota_stats("user-2")
        assert usage_log.count_since.call_count == 4

    def test_track_usage_invalidates(self, tracker, usage_log):
        tracker.get_quota_stats("user-1")
        tracker.track_usage("user-1", "narrate", success=True)
        tracker.get_quota_stats("user-1")
        assert usage_log.count_since.call_count == 4

    def test_clear_cache(self, tracker, usage_log):
        tracker.get_quota_stats("user-1")
        tracker.clear_cache()
        tracker.get_quota_stats("user-1")
        assert usage_log.count_since.call_count == 4

    def test_entries_expire(self):
        clock = MagicMock(return_value=100.0)
        cache = QuotaCache(ttl_seconds=10.0, clock=clock)
        stats = MagicMock()

        cache.set("user-1", stats)
        clock.return_value = 109.0
        assert cache.get("user-1") is stats

        clock.return_value = 111.0
        assert cache.get("user-1") is None
        assert len(cache) == 0


class TestTrackUsage:
    """Tests for usage recording."""

    def test_appends_to_log(self, tracker, usage_log):
        tracker.track_usage("user-1", "narrate", success=False, error_code="TIMEOUT")
        usage_log.append.assert_called_once_with("user-1", "narrate", False, "TIMEOUT")

    def test_log_failure_is_swallowed(self, tracker, usage_log):
        """A failing usage log never breaks the tracked request."""
        usage_log.append.side_effect = ClientError(
            {"Error": {"Code": "InternalServerError", "Message": "boom"}}, "PutItem"
        )

        tracker.track_usage("user-1", "narrate", success=True)


class TestQuotaMessage:
    """Tests for the player-facing quota message."""

    def test_minute_message(self, tracker, usage_log):
        _counts(usage_log, minute=15, day=20)
        message = get_quota_message(tracker.get_quota_stats("user-1"))
        assert "Try again after" in message

    def test_day_message(self, tracker, usage_log):
        _counts(usage_log, minute=1, day=1500)
        message = get_quota_message(tracker.get_quota_stats("user-1"))
        assert "own API key" in message
