"""Dice rolling utilities with standard notation support.

Provides parsing of D&D-style notation (e.g., "2d6+3"), plain rolls,
advantage/disadvantage rolls, critical detection and display formatting.
Used by the dice-roll endpoint and by narrator dice requirements.
"""

import random
import re
from dataclasses import dataclass

from aws_lambda_powertools import Logger
from pydantic import BaseModel, Field, model_validator

from .exceptions import InvalidNotationError, UnsupportedForMultiDieError

logger = Logger(child=True)

SUPPORTED_SIDES = (4, 6, 8, 10, 12, 20, 100)
MAX_DICE = 100

# Pattern: NdS, dS, NdS+M or NdS-M (after normalization)
NOTATION_PATTERN = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$")


@dataclass(frozen=True)
class DiceSpec:
    """Parsed dice notation."""

    count: int
    sides: int
    modifier: int
    notation: str


class DiceRoll(BaseModel):
    """Result of a dice roll.

    `rolls` holds one value per die for plain rolls, or both draws for
    advantage/disadvantage rolls.
    """

    notation: str
    count: int
    sides: int
    modifier: int = 0
    rolls: list[int]
    total: int
    type: str | None = None
    advantage: bool = False
    disadvantage: bool = False


class DiceRollRequest(BaseModel):
    """Player request to roll dice."""

    notation: str = Field(..., min_length=1, max_length=20)
    advantage: bool = False
    disadvantage: bool = False
    type: str | None = Field(default=None, max_length=50)

    @model_validator(mode="after")
    def validate_single_mode(self) -> "DiceRollRequest":
        """Reject requests asking for both advantage and disadvantage."""
        if self.advantage and self.disadvantage:
            raise ValueError("Cannot roll with both advantage and disadvantage")
        return self


def parse_notation(notation: str) -> DiceSpec:
    """Parse a dice notation string.

    Supports notation like "1d20", "d20", "2d6+3", "1d8-1". Parsing is
    case-insensitive and ignores whitespace.

    Args:
        notation: Dice notation string (e.g., "2d6+3")

    Returns:
        DiceSpec with count, sides, modifier and the normalized notation

    Raises:
        InvalidNotationError: If notation is malformed or out of range
    """
    if not notation or not isinstance(notation, str):
        raise InvalidNotationError(f"Invalid dice notation: {notation}", notation=notation)

    normalized = re.sub(r"\s+", "", notation).lower()
    match = NOTATION_PATTERN.match(normalized)
    if not match:
        raise InvalidNotationError(f"Invalid dice notation: {notation}", notation=notation)

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    modifier = int(match.group(3)) if match.group(3) else 0

    if count < 1 or count > MAX_DICE:
        raise InvalidNotationError(
            f"Dice count must be between 1 and {MAX_DICE}", notation=notation
        )
    if sides not in SUPPORTED_SIDES:
        supported = ", ".join(f"d{s}" for s in SUPPORTED_SIDES)
        raise InvalidNotationError(
            f"Invalid dice type. Supported: {supported}", notation=notation
        )

    return DiceSpec(count=count, sides=sides, modifier=modifier, notation=normalized)


def _roll_die(sides: int) -> int:
    return random.randint(1, sides)


def roll(notation: str | DiceSpec, roll_type: str | None = None) -> DiceRoll:
    """Roll dice using standard notation.

    Args:
        notation: Dice notation string or an already parsed DiceSpec
        roll_type: Optional label (attack, saving_throw, skill_check, ...)

    Returns:
        DiceRoll where total is the sum of all dice plus the modifier

    Raises:
        InvalidNotationError: If notation is invalid

    Examples:
        >>> roll("1d20+5")  # DiceRoll(rolls=[13], total=18, ...)
    """
    spec = notation if isinstance(notation, DiceSpec) else parse_notation(notation)

    rolls = [_roll_die(spec.sides) for _ in range(spec.count)]
    return DiceRoll(
        notation=spec.notation,
        count=spec.count,
        sides=spec.sides,
        modifier=spec.modifier,
        rolls=rolls,
        total=sum(rolls) + spec.modifier,
        type=roll_type,
    )


def _roll_twice(notation: str, roll_type: str | None, advantage: bool) -> DiceRoll:
    spec = parse_notation(notation)
    if spec.count != 1:
        raise UnsupportedForMultiDieError(spec.notation)

    # Both draws are kept for display
    first = _roll_die(spec.sides)
    second = _roll_die(spec.sides)
    kept = max(first, second) if advantage else min(first, second)

    return DiceRoll(
        notation=spec.notation,
        count=spec.count,
        sides=spec.sides,
        modifier=spec.modifier,
        rolls=[first, second],
        total=kept + spec.modifier,
        type=roll_type,
        advantage=advantage,
        disadvantage=not advantage,
    )


def roll_with_advantage(notation: str, roll_type: str | None = None) -> DiceRoll:
    """Roll a single die twice and keep the higher result.

    Args:
        notation: Single-die notation (e.g., "1d20+5")
        roll_type: Optional roll label

    Returns:
        DiceRoll with both draws in `rolls` and advantage=True

    Raises:
        InvalidNotationError: If notation is invalid
        UnsupportedForMultiDieError: If notation rolls more than one die
    """
    return _roll_twice(notation, roll_type, advantage=True)


def roll_with_disadvantage(notation: str, roll_type: str | None = None) -> DiceRoll:
    """Roll a single die twice and keep the lower result.

    Args:
        notation: Single-die notation (e.g., "1d20+5")
        roll_type: Optional roll label

    Returns:
        DiceRoll with both draws in `rolls` and disadvantage=True

    Raises:
        InvalidNotationError: If notation is invalid
        UnsupportedForMultiDieError: If notation rolls more than one die
    """
    return _roll_twice(notation, roll_type, advantage=False)


def roll_request(request: DiceRollRequest) -> DiceRoll:
    """Roll dice for a validated player request."""
    if request.advantage:
        result = roll_with_advantage(request.notation, request.type)
    elif request.disadvantage:
        result = roll_with_disadvantage(request.notation, request.type)
    else:
        result = roll(request.notation, request.type)

    logger.debug(
        "Dice rolled",
        extra={"notation": result.notation, "rolls": result.rolls, "total": result.total},
    )
    return result


def is_critical_hit(dice_roll: DiceRoll) -> bool:
    """Check whether a d20 roll is a natural 20.

    With advantage or disadvantage either draw counts.
    """
    if dice_roll.sides != 20:
        return False
    if dice_roll.advantage or dice_roll.disadvantage:
        return any(r == 20 for r in dice_roll.rolls)
    return dice_roll.rolls[0] == 20


def is_critical_miss(dice_roll: DiceRoll) -> bool:
    """Check whether a d20 roll is a natural 1.

    With advantage or disadvantage every draw must be a 1.
    """
    if dice_roll.sides != 20:
        return False
    if dice_roll.advantage or dice_roll.disadvantage:
        return all(r == 1 for r in dice_roll.rolls)
    return dice_roll.rolls[0] == 1


def format_roll(dice_roll: DiceRoll) -> str:
    """Format a dice roll for display.

    Examples:
        >>> format_roll(DiceRoll(notation="1d20+5", ..., rolls=[13], total=18))
        '1d20+5 → [13] +5 = 18'
    """
    rolls_str = ", ".join(str(r) for r in dice_roll.rolls)
    modifier_str = f" {dice_roll.modifier:+d}" if dice_roll.modifier != 0 else ""

    result = f"{dice_roll.notation} → [{rolls_str}]{modifier_str} = {dice_roll.total}"

    if dice_roll.advantage:
        result += " (Advantage)"
    if dice_roll.disadvantage:
        result += " (Disadvantage)"
    if is_critical_hit(dice_roll):
        result += " CRITICAL HIT!"
    if is_critical_miss(dice_roll):
        result += " CRITICAL MISS!"

    return result
