"""Extract HP, XP and item events from narrator text.

Each extractor looks for its structured bracket tag first. A tag is
authoritative (confidence 1.0). Without one, localized phrase rules are
tried in order and the first hit wins with that rule's confidence. If
nothing matches, a neutral event with confidence 0 is returned.
"""

import json
import re
from collections.abc import Callable

from aws_lambda_powertools import Logger
from pydantic import ValidationError

from shared.rules import Rule, RuleTable

from .models import HPChangeEvent, ItemGainEvent, ItemPayload, XPChangeEvent

logger = Logger(child=True)

HP_TAG_PATTERN = re.compile(r"\[HP-CHANGE:\s*([+-]?\d+)\s*\]", re.IGNORECASE)
XP_TAG_PATTERN = re.compile(r"\[XP-GAIN:\s*\+?(\d+)\s*\]", re.IGNORECASE)
ITEM_TAG_PATTERN = re.compile(r"\[ITEM-GAIN:\s*(\{.*?\})\s*\]", re.IGNORECASE | re.DOTALL)

# HP rules: (sign, magnitude) for deltas, "absolute" for a target HP value.
# Every phrasing is addressed to the player; "the goblin takes 8 damage" is not an HP change.
DAMAGE = -1
HEALING = 1
ABSOLUTE = 0

HP_RULES: RuleTable[int] = RuleTable(
    [
        Rule.compile(r"\b(?:(?:utrpěl|utržil|ztratil)a?\s+jsi|jsi\s+(?:utrpěl|utržil|ztratil)a?|utrpíš|utržíš|ztrácíš|ztratíš)\s+(\d+)\s*(?:bod\w*\s+)?(?:zranění|poškození|životů|hp)", DAMAGE, 0.9),
        Rule.compile(r"\byou(?:'ve|\s+have)?\s+(?:take|taken|took|suffer|suffered|lose|lost)\s+(\d+)\s*(?:points?\s+of\s+)?(?:damage|hp|hit\s+points?)", DAMAGE, 0.9),
        Rule.compile(r"\b(?:zasáh\w*\s+tě|tě\s+zasáh\w*|zraní\s+tě|tě\s+zraní)\D{0,20}?(\d+)\s*(?:bod\w*\s+)?(?:zranění|poškození)", DAMAGE, 0.8),
        Rule.compile(r"\b(?:hits?\s+you|strikes?\s+you|wounds?\s+you)\s+for\s+(\d+)", DAMAGE, 0.8),
        Rule.compile(r"\b(?:tě\s+(?:vyléčí|uzdraví)\w*|(?:vyléčí|uzdraví)\w*\s+tě|(?:vyléčil|obnovil|získal)a?\s+(?:jsi|sis)|jsi\s+(?:vyléčil|obnovil|získal)a?|léčíš|obnovuješ|obnovíš|získáváš|získáš)\s+(?:o\s+)?(\d+)\s*(?:bod\w*\s+)?(?:životů|hp)", HEALING, 0.9),
        Rule.compile(r"\byou(?:'ve|\s+have)?\s+(?:heal|healed|regain|regained|recover|recovered)\s+(\d+)\s*(?:hp|hit\s+points?|health)", HEALING, 0.9),
        Rule.compile(r"\b(?:máš|máte|zbývá\s+ti)\s+(?:nyní\s+|teď\s+)?(\d+)\s*(?:životů|hp)", ABSOLUTE, 0.6),
        Rule.compile(r"\b(?:you\s+(?:now\s+)?have|you're\s+(?:now\s+)?at|you\s+are\s+(?:now\s+)?at)\s+(\d+)\s*(?:hp|hit\s+points?)", ABSOLUTE, 0.6),
    ]
)

XP_RULES: RuleTable[None] = RuleTable(
    [
        Rule.compile(r"\b(?:získáváš|získal\w*|dostáváš|obdržel\w*)\s+(?:jsi\s+)?(\d+)\s*(?:xp|zkušenost\w*|bod\w*\s+zkušenost\w*)", None, 0.9),
        Rule.compile(r"\b(?:gain|gains|gained|earn|earns|earned|receive|receives|received)\s+(\d+)\s*(?:xp|experience(?:\s+points?)?)", None, 0.9),
        Rule.compile(r"\+\s*(\d+)\s*(?:xp|zkušenost\w*)", None, 0.8),
        Rule.compile(r"(\d+)\s*(?:xp|zkušenostních\s+bodů|experience\s+points)", None, 0.6),
    ]
)

# Captures the bare item name after a "found X" phrase
_ITEM_NAME = r"([^\W\d_][\w' -]*?)(?=[.,!?;:\n]|$)"

# Past-tense acquisitions only; "you take cover" or "nacházíš se" is not loot
ITEM_RULES: RuleTable[None] = RuleTable(
    [
        Rule.compile(rf"\b(?:(?:našel|našla|získal|získala|sebral|sebrala|vzal|vzala)\s+jsi)\s+{_ITEM_NAME}", None, 0.7, re.IGNORECASE | re.MULTILINE),
        Rule.compile(rf"\b(?:you\s+(?:found|picked\s+up|took|obtained|received))\s+{_ITEM_NAME}", None, 0.7, re.IGNORECASE | re.MULTILINE),
    ]
)

# Text item candidates mentioning XP or currency are rewards, not items
_REWARD_TOKEN = re.compile(r"\d+\s*(?:xp|zkušenost|zlat|gold|coins?|mincí|gp)", re.IGNORECASE)
_ARTICLE = re.compile(r"^(?:an?|the|some)\s+", re.IGNORECASE)

ITEM_NAME_MIN_LENGTH = 3
ITEM_NAME_MAX_LENGTH = 50


def _tag_or_text(
    text: str,
    tag: Callable[[str], tuple[str, object] | None],
    rules: RuleTable,
    accept: Callable[[re.Match[str], Rule], object | None],
) -> tuple[str, float, str, object] | None:
    """Shared tag-then-text resolution.

    Returns:
        (source, confidence, raw, payload) or None if nothing matched
    """
    if not text:
        return None

    tagged = tag(text)
    if tagged is not None:
        raw, payload = tagged
        return "pattern", 1.0, raw, payload

    hit = rules.first_match(text, accept)
    if hit is None:
        return None
    return "text", hit.confidence, hit.raw, hit.payload


def extract_hp_change(text: str, current_hp: int) -> HPChangeEvent:
    """Find an HP change in narrator text.

    Args:
        text: Narrator response
        current_hp: Character HP before the change, used by absolute phrasings

    Returns:
        HPChangeEvent with a signed change
    """

    def tag(value: str) -> tuple[str, int] | None:
        match = HP_TAG_PATTERN.search(value)
        return (match.group(0), int(match.group(1))) if match else None

    def accept(match: re.Match[str], rule: Rule[int]) -> int:
        amount = int(match.group(1))
        if rule.value == ABSOLUTE:
            return amount - current_hp
        return amount * rule.value

    found = _tag_or_text(text, tag, HP_RULES, accept)
    if found is None:
        return HPChangeEvent()

    source, confidence, raw, change = found
    logger.debug("HP change extracted", extra={"change": change, "source": source, "raw": raw})
    return HPChangeEvent(change=change, source=source, confidence=confidence, raw=raw)


def extract_xp_gain(text: str) -> XPChangeEvent:
    """Find an XP gain in narrator text. XP is never lost."""

    def tag(value: str) -> tuple[str, int] | None:
        match = XP_TAG_PATTERN.search(value)
        return (match.group(0), int(match.group(1))) if match else None

    def accept(match: re.Match[str], rule: Rule[None]) -> int:
        return int(match.group(1))

    found = _tag_or_text(text, tag, XP_RULES, accept)
    if found is None:
        return XPChangeEvent()

    source, confidence, raw, gain = found
    logger.debug("XP gain extracted", extra={"gain": gain, "source": source, "raw": raw})
    return XPChangeEvent(gain=gain, source=source, confidence=confidence, raw=raw)


def _parse_item_tag(text: str) -> tuple[str, ItemPayload] | None:
    """Parse the first well-formed ITEM-GAIN tag.

    Malformed JSON or a payload missing name, type or rarity is logged and
    skipped so text rules can still run.
    """
    for match in ITEM_TAG_PATTERN.finditer(text):
        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse ITEM-GAIN JSON: {e}", extra={"raw": match.group(0)})
            continue

        if not isinstance(data, dict):
            logger.warning("ITEM-GAIN payload is not an object", extra={"raw": match.group(0)})
            continue

        missing = [key for key in ("name", "type", "rarity") if not data.get(key)]
        if missing:
            logger.warning("ITEM-GAIN missing required fields", extra={"missing": missing})
            continue

        try:
            return match.group(0), ItemPayload.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Failed to validate ITEM-GAIN payload: {e}")
    return None


def _accept_item_name(match: re.Match[str], rule: Rule[None]) -> ItemPayload | None:
    if _REWARD_TOKEN.search(match.group(0)):
        return None

    name = _ARTICLE.sub("", match.group(1).strip())
    if not ITEM_NAME_MIN_LENGTH <= len(name) <= ITEM_NAME_MAX_LENGTH:
        return None
    return ItemPayload(name=name)


def extract_item_gain(text: str) -> ItemGainEvent:
    """Find an item the narrator handed out.

    Text matches only recover a name, so type and rarity default to
    misc / common.
    """
    found = _tag_or_text(text, _parse_item_tag, ITEM_RULES, _accept_item_name)
    if found is None:
        return ItemGainEvent()

    source, confidence, raw, item = found
    logger.debug(
        "Item gain extracted",
        extra={"item": item.name, "source": source, "confidence": confidence},
    )
    return ItemGainEvent(found=True, item=item, source=source, confidence=confidence, raw=raw)
