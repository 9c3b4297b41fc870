"""Custom exceptions for the narrator rules engine."""


class NarratorEngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str = "An error occurred") -> None:
        """Initialize exception with message.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(self.message)


class NotFoundError(NarratorEngineError):
    """Resource not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "Character")
            resource_id: ID of the missing resource
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} '{resource_id}' not found")


class ValidationError(NarratorEngineError):
    """Client input failed validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Validation error message
            field: Optional field name that failed validation
        """
        self.field = field
        super().__init__(message)


class InvalidNotationError(ValidationError):
    """Dice notation could not be parsed or is out of range."""

    def __init__(self, message: str, notation: str | None = None) -> None:
        """Initialize invalid notation error.

        Args:
            message: Description of what is wrong with the notation
            notation: The offending notation string
        """
        self.notation = notation
        super().__init__(message, field="notation")


class UnsupportedForMultiDieError(ValidationError):
    """Advantage or disadvantage requested for more than one die."""

    def __init__(self, notation: str) -> None:
        """Initialize error for a multi-die advantage/disadvantage roll.

        Args:
            notation: The offending notation string
        """
        self.notation = notation
        super().__init__(
            f"Advantage/disadvantage only works with a single die (e.g. 1d20), got '{notation}'",
            field="notation",
        )


class GameStateError(NarratorEngineError):
    """Invalid game state transition."""

    def __init__(self, message: str, current_state: str | None = None) -> None:
        """Initialize game state error.

        Args:
            message: Error message describing the invalid transition
            current_state: Current state when error occurred
        """
        self.current_state = current_state
        super().__init__(message)


class QuotaExceededError(NarratorEngineError):
    """Narrator quota exhausted for the user or upstream provider."""

    def __init__(self, message: str, user_id: str | None = None) -> None:
        """Initialize quota error.

        Args:
            message: Error message
            user_id: User whose quota was exceeded, if known
        """
        self.user_id = user_id
        super().__init__(message)


class ConfigurationError(NarratorEngineError):
    """Configuration or environment error."""

    def __init__(self, message: str, config_key: str | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Optional configuration key that caused the error
        """
        self.config_key = config_key
        super().__init__(message)
