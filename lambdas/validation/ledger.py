"""Spell slot bookkeeping and rest rules."""

from aws_lambda_powertools import Logger
from pydantic import BaseModel, Field

from character.service import CharacterService
from shared.models import Character, CharacterClass, SpellSlot

logger = Logger(child=True)

# Classes that regain every spell slot on a short rest (pact magic)
SHORT_REST_SLOT_CLASSES = frozenset({CharacterClass.WARLOCK})


class RestResult(BaseModel):
    """Outcome of a rest."""

    rest_type: str
    """"long" or "short"."""

    restored: list[str] = Field(default_factory=list)
    """Human-readable list of restored resources."""

    spell_slots: dict[int, SpellSlot] = Field(default_factory=dict)
    """Slot pool after the rest."""

    hp: int
    """HP after the rest."""


class SpellResourceLedger:
    """Tracks, spends and restores a character's spell slots."""

    def __init__(self, characters: CharacterService) -> None:
        """Initialize ledger.

        Args:
            characters: Character persistence collaborator
        """
        self.characters = characters

    def is_available(self, character: Character, spell_name: str) -> bool:
        """Check whether the character can cast a spell right now.

        Cantrips are always available. Leveled spells need a slot of their
        level with current > 0. Unknown spells and missing slot levels are
        unavailable.
        """
        spell = character.find_known_spell(spell_name)
        if spell is None:
            return False
        if spell.is_cantrip:
            return True

        slot = character.spell_slots.get(spell.spell_level)
        return slot is not None and slot.current > 0

    def consume(self, character: Character, spell_level: int) -> bool:
        """Spend one slot of the given level.

        Never drives a counter negative: an exhausted or missing level is a
        logged no-op.

        Returns:
            True if a slot was spent
        """
        slot = self.characters.decrement_spell_slot(character, spell_level)
        if slot is None:
            logger.warning(
                "Spell slot missing or already empty",
                extra={"character_id": character.character_id, "spell_level": spell_level},
            )
            return False

        logger.info(
            "Spell slot consumed",
            extra={
                "character_id": character.character_id,
                "spell_level": spell_level,
                "remaining": slot.current,
                "maximum": slot.maximum,
            },
        )
        return True

    def long_rest(self, character: Character) -> RestResult:
        """Restore every spell slot and HP to maximum."""
        slots = self.characters.restore_spell_slots(character)
        hp = self.characters.set_hp(character, character.max_hp)

        restored = [f"HP restored to {hp}"]
        if slots:
            restored.append(f"All spell slots restored ({len(slots)} levels)")

        logger.info(
            "Long rest completed",
            extra={"character_id": character.character_id, "slot_levels": len(slots), "hp": hp},
        )
        return RestResult(rest_type="long", restored=restored, spell_slots=slots, hp=hp)

    def short_rest(self, character: Character) -> RestResult:
        """Apply short rest rules.

        Only pact-magic classes regain spell slots on a short rest; every
        other class keeps its current slots. Limited-use class features are
        not tracked here.
        """
        restored: list[str] = []
        slots = character.spell_slots

        if any(character.has_class(cls) for cls in SHORT_REST_SLOT_CLASSES):
            slots = self.characters.restore_spell_slots(character)
            restored.append("All spell slots restored (pact magic)")

        logger.info(
            "Short rest completed",
            extra={
                "character_id": character.character_id,
                "character_class": character.character_class,
                "restored": restored,
            },
        )
        return RestResult(rest_type="short", restored=restored, spell_slots=slots, hp=character.hp)
