"""Pydantic models for characters as seen by the rules engine."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class CharacterClass(str, Enum):
    """D&D 5e character classes."""

    BARBARIAN = "barbarian"
    BARD = "bard"
    CLERIC = "cleric"
    DRUID = "druid"
    FIGHTER = "fighter"
    MONK = "monk"
    PALADIN = "paladin"
    RANGER = "ranger"
    ROGUE = "rogue"
    SORCERER = "sorcerer"
    WARLOCK = "warlock"
    WIZARD = "wizard"


# Total XP needed to reach each level (D&D 5e)
XP_THRESHOLDS: dict[int, int] = {
    2: 300,
    3: 900,
    4: 2700,
    5: 6500,
    6: 14000,
    7: 23000,
    8: 34000,
    9: 48000,
    10: 64000,
    11: 85000,
    12: 100000,
    13: 120000,
    14: 140000,
    15: 165000,
    16: 195000,
    17: 225000,
    18: 265000,
    19: 305000,
    20: 355000,
}


class KnownSpell(BaseModel):
    """A spell the character has learned."""

    spell_name: str = Field(..., min_length=1, max_length=100)
    spell_level: int = Field(default=0, ge=0, le=9)
    """Spell level; 0 is a cantrip with unlimited casts."""

    @property
    def is_cantrip(self) -> bool:
        return self.spell_level == 0


class SpellSlot(BaseModel):
    """Slot counter for one spell level."""

    current: int = Field(..., ge=0)
    maximum: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_current_within_maximum(self) -> "SpellSlot":
        """Ensure current never exceeds maximum."""
        if self.current > self.maximum:
            raise ValueError("current spell slots cannot exceed maximum")
        return self


class Character(BaseModel):
    """Player character fields consumed by validation and extraction."""

    character_id: str
    user_id: str
    name: str = Field(..., min_length=1, max_length=50)
    character_class: str
    level: int = Field(default=1, ge=1, le=20)
    hp: int = Field(default=1, ge=0)
    max_hp: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0)
    known_spells: list[KnownSpell] = Field(default_factory=list)
    spell_slots: dict[int, SpellSlot] = Field(default_factory=dict)
    """Slot pool keyed by spell level (1-9)."""

    def find_known_spell(self, spell_name: str) -> KnownSpell | None:
        """Look up a known spell by exact name."""
        for spell in self.known_spells:
            if spell.spell_name == spell_name:
                return spell
        return None

    @property
    def next_level_xp(self) -> int | None:
        """XP needed for the next level, or None at the level cap."""
        return XP_THRESHOLDS.get(self.level + 1)

    def can_level_up(self) -> bool:
        threshold = self.next_level_xp
        return threshold is not None and self.xp >= threshold

    def has_class(self, character_class: CharacterClass) -> bool:
        """Compare the class case-insensitively ("Warlock" == "warlock")."""
        return self.character_class.strip().lower() == character_class.value

    def to_db_keys(self) -> tuple[str, str]:
        """Get DynamoDB PK and SK for this character.

        Returns:
            Tuple of (PK, SK)
        """
        return f"USER#{self.user_id}", f"CHAR#{self.character_id}"

    def to_db_item(self) -> tuple[str, str, dict[str, Any]]:
        """Convert to DynamoDB item format.

        DynamoDB map keys must be strings, so slot levels are stored as "1", "2", ...

        Returns:
            Tuple of (PK, SK, data dict)
        """
        pk, sk = self.to_db_keys()
        data = self.model_dump(exclude={"user_id", "character_id", "spell_slots"})
        data["spell_slots"] = {
            str(level): slot.model_dump() for level, slot in self.spell_slots.items()
        }
        return pk, sk, data

    @classmethod
    def from_db_item(cls, item: dict[str, Any]) -> "Character":
        """Create Character from DynamoDB item.

        Args:
            item: DynamoDB item dict

        Returns:
            Character instance
        """
        user_id = item["PK"].replace("USER#", "")
        character_id = item["SK"].replace("CHAR#", "")
        data = {
            k: v
            for k, v in item.items()
            if k not in ("PK", "SK", "created_at", "updated_at")
        }
        slots = data.pop("spell_slots", {}) or {}
        return cls(
            user_id=user_id,
            character_id=character_id,
            spell_slots={
                int(level): {"current": int(s["current"]), "maximum": int(s["maximum"])}
                for level, s in slots.items()
            },
            **data,
        )
