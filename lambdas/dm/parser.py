"""Parser for extracting structured events from narrator responses."""

import re

from aws_lambda_powertools import Logger

from shared.dice import parse_notation
from shared.exceptions import InvalidNotationError

from .extractors import extract_hp_change, extract_item_gain, extract_xp_gain
from .models import DiceRequirement, NarratorEvents

logger = Logger(child=True)

# [DICE-REQUIRED: 1d20+3 stealth dc:15 desc:"Sneak past the guard"]
DICE_REQUIRED_PATTERN = re.compile(
    r"\[DICE-REQUIRED:\s*"
    r"(?P<notation>\d*d\d+(?:[+-]\d+)?)"
    r"(?:\s+(?P<skill>[^\s\]:\"]+))?"
    r"(?:\s+dc:\s*(?P<dc>\d+))?"
    r"(?:\s+desc:\s*\"(?P<desc>[^\"]*)\")?"
    r"\s*\]",
    re.IGNORECASE,
)

# Older narrator prompts write [DICE: 1d20 attack]
LEGACY_DICE_PATTERN = re.compile(
    r"\[DICE:\s*(?P<notation>\d*d\d+(?:[+-]\d+)?)(?:\s+(?P<skill>[^\]]+?))?\s*\]",
    re.IGNORECASE,
)


def _valid_notation(notation: str) -> bool:
    try:
        parse_notation(notation)
    except InvalidNotationError as e:
        logger.warning(f"Ignoring dice tag with bad notation: {e}", extra={"notation": notation})
        return False
    return True


def parse_dice_requirement(text: str) -> DiceRequirement | None:
    """Find the roll the narrator asked for.

    DICE-REQUIRED tags take precedence over the legacy DICE tag. Tags with
    notation the dice engine cannot roll are ignored.

    Args:
        text: Narrator response

    Returns:
        DiceRequirement, or None if no usable tag is present
    """
    if not text:
        return None

    for match in DICE_REQUIRED_PATTERN.finditer(text):
        notation = match.group("notation").lower()
        if not _valid_notation(notation):
            continue
        dc = match.group("dc")
        return DiceRequirement(
            notation=notation,
            skill=match.group("skill"),
            dc=int(dc) if dc else None,
            description=match.group("desc"),
        )

    for match in LEGACY_DICE_PATTERN.finditer(text):
        notation = match.group("notation").lower()
        if not _valid_notation(notation):
            continue
        skill = match.group("skill")
        return DiceRequirement(notation=notation, skill=skill.strip() if skill else None)

    return None


def parse_narrator_response(text: str, current_hp: int) -> NarratorEvents:
    """Run every extractor over a narrator response.

    Extraction never fails: anything unrecognized comes back as a neutral
    event with confidence 0.

    Args:
        text: Narrator response
        current_hp: Character HP before this turn

    Returns:
        NarratorEvents
    """
    events = NarratorEvents(
        dice_requirement=parse_dice_requirement(text),
        hp_change=extract_hp_change(text, current_hp),
        xp_gain=extract_xp_gain(text),
        item_gain=extract_item_gain(text),
    )

    logger.debug(
        "Parsed narrator response",
        extra={
            "dice_required": events.dice_requirement is not None,
            "hp_change": events.hp_change.change,
            "xp_gain": events.xp_gain.gain,
            "item_found": events.item_gain.found,
        },
    )
    return events
