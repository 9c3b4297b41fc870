"""Narrator usage log stored in DynamoDB."""

from datetime import datetime

from aws_lambda_powertools import Logger

from .db import DynamoDBClient
from .utils import format_timestamp, generate_id, get_ttl_epoch, utc_now

logger = Logger(child=True)

# Entries only matter for the 24h quota window; keep a safety margin
USAGE_TTL_DAYS = 2

# Sorts after every "TS#<timestamp>" sort key
_SK_UPPER_BOUND = "TS#~"


def usage_pk(user_id: str) -> str:
    """Partition key holding a user's usage entries."""
    return f"USAGE#USER#{user_id}"


class UsageLog:
    """Append-only log of narrator requests, one item per request."""

    def __init__(self, db: DynamoDBClient) -> None:
        """Initialize the log.

        Args:
            db: DynamoDB client for the application table
        """
        self.db = db

    def append(
        self,
        user_id: str,
        operation: str,
        success: bool,
        error_code: str | None = None,
        timestamp: datetime | None = None,
    ) -> dict:
        """Record a narrator request.

        Args:
            user_id: User who made the request
            operation: Operation name (e.g. "narrate_action")
            success: Whether the request succeeded
            error_code: Optional error classification for failures
            timestamp: Request time, defaults to now

        Returns:
            The stored item
        """
        moment = timestamp or utc_now()
        stamp = format_timestamp(moment)

        return self.db.put_item(
            pk=usage_pk(user_id),
            sk=f"TS#{stamp}#{generate_id()}",
            data={
                "operation": operation,
                "success": success,
                "error_code": error_code,
                "timestamp": stamp,
                "ttl": get_ttl_epoch(days=USAGE_TTL_DAYS),
            },
        )

    def count_since(
        self, user_id: str, since: datetime, successful_only: bool = True
    ) -> int:
        """Count a user's entries newer than a timestamp.

        Args:
            user_id: User to count for
            since: Inclusive lower bound
            successful_only: Count only successful requests

        Returns:
            Number of entries in the window
        """
        count = self.db.count_by_pk(
            pk=usage_pk(user_id),
            sk_from=f"TS#{format_timestamp(since)}",
            sk_to=_SK_UPPER_BOUND,
            filter_attribute="success" if successful_only else None,
            filter_value=True if successful_only else None,
        )
        logger.debug(
            "Usage counted",
            extra={"user_id": user_id, "since": since.isoformat(), "count": count},
        )
        return count
