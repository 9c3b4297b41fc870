"""Narrator module: turn pipeline and narrator event extraction."""

from .claude_client import ClaudeNarrator
from .models import (
    DiceRequirement,
    HPChangeEvent,
    ItemGainEvent,
    ItemPayload,
    NarratorEvents,
    TurnResult,
    XPChangeEvent,
)
from .parser import parse_dice_requirement, parse_narrator_response
from .service import NarratorTurnService

__all__ = [
    "ClaudeNarrator",
    "DiceRequirement",
    "HPChangeEvent",
    "ItemGainEvent",
    "ItemPayload",
    "NarratorEvents",
    "NarratorTurnService",
    "TurnResult",
    "XPChangeEvent",
    "parse_dice_requirement",
    "parse_narrator_response",
]
