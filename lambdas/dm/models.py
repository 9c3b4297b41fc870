"""Pydantic models for narrator events and turn results."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.models import SpellSlot
from validation.validator import DetectedSpell

ITEM_TYPES = ("weapon", "armor", "potion", "accessory", "misc")
ITEM_RARITIES = ("common", "uncommon", "rare", "very_rare", "legendary")

ItemType = Literal["weapon", "armor", "potion", "accessory", "misc"]
ItemRarity = Literal["common", "uncommon", "rare", "very_rare", "legendary"]
EventSource = Literal["pattern", "text"]


class StatBonuses(BaseModel):
    """Ability and defense bonuses granted by an item."""

    model_config = ConfigDict(populate_by_name=True)

    strength: int | None = None
    dexterity: int | None = None
    constitution: int | None = None
    intelligence: int | None = None
    wisdom: int | None = None
    charisma: int | None = None
    ac_bonus: int | None = Field(default=None, alias="acBonus")
    hp_bonus: int | None = Field(default=None, alias="hpBonus")


class ItemPayload(BaseModel):
    """An item the narrator handed out.

    Accepts the camelCase keys the narrator writes inside ITEM-GAIN tags.
    Unknown type or rarity values are coerced to "misc" / "common".
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    type: ItemType = "misc"
    rarity: ItemRarity = "common"
    description: str | None = None
    damage: str | None = None
    armor_value: int | None = Field(default=None, alias="armorValue")
    stat_bonuses: StatBonuses | None = Field(default=None, alias="statBonuses")
    requires_attunement: bool = Field(default=False, alias="requiresAttunement")
    quantity: int = 1

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str:
        """Unknown item types fall back to misc."""
        value = str(v).strip().lower() if v is not None else ""
        return value if value in ITEM_TYPES else "misc"

    @field_validator("rarity", mode="before")
    @classmethod
    def coerce_rarity(cls, v: Any) -> str:
        """Unknown rarities fall back to common ("very rare" is accepted)."""
        value = str(v).strip().lower().replace(" ", "_") if v is not None else ""
        return value if value in ITEM_RARITIES else "common"

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> int:
        """Quantity is at least 1."""
        try:
            quantity = int(v)
        except (TypeError, ValueError):
            return 1
        return quantity if quantity >= 1 else 1


class _ExtractedEvent(BaseModel):
    """Common fields of an extracted event.

    A structured tag always means confidence 1.0; no source means nothing
    was found and confidence is 0.
    """

    source: EventSource | None = None
    """Where the event came from: a bracket tag, free text, or nowhere."""

    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    """How unambiguous the match was."""

    raw: str | None = None
    """The matched substring."""

    @model_validator(mode="after")
    def check_confidence(self) -> "_ExtractedEvent":
        if self.source is None and self.confidence != 0.0:
            raise ValueError("Events without a source must have confidence 0")
        if self.source == "pattern" and self.confidence != 1.0:
            raise ValueError("Tag events must have confidence 1.0")
        return self


class HPChangeEvent(_ExtractedEvent):
    """HP delta found in narrator text (negative for damage)."""

    change: int = 0


class XPChangeEvent(_ExtractedEvent):
    """XP gain found in narrator text."""

    gain: int = Field(default=0, ge=0)


class ItemGainEvent(_ExtractedEvent):
    """Item found in narrator text."""

    found: bool = False
    item: ItemPayload | None = None


class DiceRequirement(BaseModel):
    """A roll the narrator asked the player to make."""

    notation: str
    """Dice notation, e.g. "1d20+3"."""

    skill: str | None = None
    """Skill or roll type, e.g. "stealth" or "attack"."""

    dc: int | None = None
    """Difficulty class to beat."""

    description: str | None = None
    """Why the roll is needed."""


class NarratorEvents(BaseModel):
    """Everything extracted from one narrator response."""

    dice_requirement: DiceRequirement | None = None
    hp_change: HPChangeEvent = Field(default_factory=HPChangeEvent)
    xp_gain: XPChangeEvent = Field(default_factory=XPChangeEvent)
    item_gain: ItemGainEvent = Field(default_factory=ItemGainEvent)


class TurnResult(BaseModel):
    """Full result of one player action."""

    valid: bool
    """False when the action was rejected before reaching the narrator."""

    reason: str | None = None
    """Why the action was rejected."""

    narrative: str = ""
    """The narrator's response text."""

    detected_spell: DetectedSpell | None = None
    """Spell the action cast."""

    spell_slot_consumed: bool = False
    """Whether a spell slot was spent this turn."""

    events: NarratorEvents = Field(default_factory=NarratorEvents)
    """Events parsed from the narrative."""

    hp: int | None = None
    """HP after this turn."""

    xp: int | None = None
    """XP after this turn."""

    should_level_up: bool = False
    """True when this turn's XP gain reached the next level's threshold."""

    next_level_xp: int | None = None
    """XP needed for the next level, set when XP was gained."""

    character_died: bool = False
    """True when HP reached 0 this turn."""

    pending_item: ItemPayload | None = None
    """Item awaiting player confirmation before it is added."""

    spell_slots: dict[int, SpellSlot] | None = None
    """Slot pool after a rest."""
