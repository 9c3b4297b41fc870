"""Narrator quota limit configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QuotaLimits:
    """Request limits for narrator calls.

    Defaults match the generator provider's free tier. Windows slide:
    a request stops counting 60 seconds / 24 hours after it was made.
    """

    # Successful requests allowed per rolling minute
    PER_MINUTE: int = 15

    # Successful requests allowed per rolling day
    PER_DAY: int = 1_500

    # How long computed stats are reused before recounting
    CACHE_TTL_SECONDS: float = 10.0
