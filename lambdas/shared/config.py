"""Environment configuration for the narrator rules engine."""
import os
from dataclasses import dataclass

from .exceptions import ConfigurationError


def _int_env(key: str, default: int) -> int:
    """Read an integer environment variable.

    Raises:
        ConfigurationError: If the value is not an integer
    """
    raw = os.environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{key} must be an integer, got '{raw}'", config_key=key
        ) from e


def _float_env(key: str, default: float) -> float:
    """Read a float environment variable.

    Raises:
        ConfigurationError: If the value is not a number
    """
    raw = os.environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{key} must be a number, got '{raw}'", config_key=key
        ) from e


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    table_name: str
    environment: str
    log_level: str
    anthropic_api_key: str | None
    quota_limit_per_minute: int = 15
    quota_limit_per_day: int = 1500
    narrator_max_retries: int = 3
    narrator_retry_delay: float = 1.0
    item_confirm_min_confidence: float = 0.5

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Returns:
            Config instance with values from environment

        Raises:
            ConfigurationError: If required environment variables are missing
                or malformed
        """
        table_name = os.environ.get("TABLE_NAME")
        if not table_name:
            raise ConfigurationError(
                "TABLE_NAME environment variable is required",
                config_key="TABLE_NAME",
            )

        return cls(
            table_name=table_name,
            environment=os.environ.get("ENVIRONMENT", "dev"),
            log_level=os.environ.get("POWERTOOLS_LOG_LEVEL", "INFO"),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            quota_limit_per_minute=_int_env("QUOTA_LIMIT_PER_MINUTE", 15),
            quota_limit_per_day=_int_env("QUOTA_LIMIT_PER_DAY", 1500),
            narrator_max_retries=_int_env("NARRATOR_MAX_RETRIES", 3),
            narrator_retry_delay=_float_env("NARRATOR_RETRY_DELAY", 1.0),
            item_confirm_min_confidence=_float_env("ITEM_CONFIRM_MIN_CONFIDENCE", 0.5),
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "prod"


def get_config() -> Config:
    """Get cached configuration instance.

    Returns:
        Config instance (cached after first call)
    """
    if not hasattr(get_config, "_config"):
        get_config._config = Config.from_env()
    return get_config._config
