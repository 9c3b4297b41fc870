"""Utility functions shared across the narrator engine."""
from datetime import UTC, datetime, timedelta
from uuid import uuid4

# Fixed-width UTC format so timestamps sort lexicographically in DynamoDB
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def generate_id() -> str:
    """Generate a unique ID for resources.

    Returns:
        UUID string
    """
    return str(uuid4())


def utc_now() -> datetime:
    """Get the current UTC time.

    Returns:
        Timezone-aware datetime
    """
    return datetime.now(UTC)


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as a sortable UTC timestamp string.

    Args:
        moment: Timezone-aware datetime

    Returns:
        Timestamp string in TIMESTAMP_FORMAT
    """
    return moment.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def get_ttl_epoch(days: int) -> int:
    """Get TTL epoch timestamp for auto-deletion."""
    future = utc_now() + timedelta(days=days)
    return int(future.timestamp())


def truncate(text: str, limit: int = 100) -> str:
    """Shorten text for log output."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
