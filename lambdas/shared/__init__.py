"""Shared utilities for the narrator rules engine."""

from .config import Config
from .db import DynamoDBClient
from .exceptions import (
    ConfigurationError,
    GameStateError,
    InvalidNotationError,
    NarratorEngineError,
    NotFoundError,
    QuotaExceededError,
    UnsupportedForMultiDieError,
    ValidationError,
)
from .models import Character, CharacterClass, KnownSpell, SpellSlot

__all__ = [
    # Config
    "Config",
    # Database
    "DynamoDBClient",
    # Exceptions
    "ConfigurationError",
    "GameStateError",
    "InvalidNotationError",
    "NarratorEngineError",
    "NotFoundError",
    "QuotaExceededError",
    "UnsupportedForMultiDieError",
    "ValidationError",
    # Models
    "Character",
    "CharacterClass",
    "KnownSpell",
    "SpellSlot",
]
