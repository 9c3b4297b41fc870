"""Pre-flight validation of player actions before they reach the narrator."""

from aws_lambda_powertools import Logger
from pydantic import BaseModel

from shared.models import Character
from shared.utils import truncate

from .forbidden import ForbiddenContentFilter
from .ledger import SpellResourceLedger
from .spell_catalog import get_spell_level
from .spells import SpellCastDetector

logger = Logger(child=True)

# Unknown-spell guidance lists only low-level spells
GUIDANCE_MAX_SPELL_LEVEL = 3


class DetectedSpell(BaseModel):
    """Spell an action casts."""

    name: str
    level: int


class ValidationResult(BaseModel):
    """Outcome of validating a player action.

    Invalid results always carry a reason; valid ones may name the spell
    being cast so its slot can be spent after the narrator responds.
    """

    valid: bool
    reason: str | None = None
    detected_spell: DetectedSpell | None = None

    @classmethod
    def ok(cls, detected_spell: DetectedSpell | None = None) -> "ValidationResult":
        return cls(valid=True, detected_spell=detected_spell)

    @classmethod
    def rejected(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)


class ActionValidator:
    """Checks an action against content rules and the character's spell resources."""

    def __init__(
        self,
        ledger: SpellResourceLedger,
        content_filter: ForbiddenContentFilter | None = None,
        spell_detector: SpellCastDetector | None = None,
    ) -> None:
        self.ledger = ledger
        self.content_filter = content_filter or ForbiddenContentFilter()
        self.spell_detector = spell_detector or SpellCastDetector()

    def validate(self, character: Character, action: str) -> ValidationResult:
        """Validate a player action.

        Forbidden content is checked before spell detection, so an
        anachronistic action is rejected even if it also casts a spell.

        Args:
            character: The acting character
            action: Player action text

        Returns:
            ValidationResult
        """
        logger.debug(
            "Validating action",
            extra={"character_id": character.character_id, "action": truncate(action)},
        )

        forbidden_reason = self.content_filter.check(action)
        if forbidden_reason:
            return ValidationResult.rejected(forbidden_reason)

        spell_name = self.spell_detector.detect(action, character.known_spells)
        if spell_name is None:
            return ValidationResult.ok()

        known = character.find_known_spell(spell_name)
        if known is None:
            available = ", ".join(
                f"{s.spell_name} (L{s.spell_level})"
                for s in character.known_spells
                if s.spell_level <= GUIDANCE_MAX_SPELL_LEVEL
            )
            level = get_spell_level(spell_name)
            label = f"{spell_name} (L{level})" if level is not None else spell_name
            reason = (
                f'Your character does not know the spell "{label}". '
                f"Known spells: {available or 'none'}"
            )
            logger.info("Unknown spell rejected", extra={"spell": spell_name})
            return ValidationResult.rejected(reason)

        if not self.ledger.is_available(character, spell_name):
            remaining = ", ".join(
                f"Level {level}: {slot.current}/{slot.maximum}"
                for level, slot in sorted(character.spell_slots.items())
                if slot.current > 0
            )
            advice = (
                f"Remaining slots: {remaining}"
                if remaining
                else "All spell slots are spent. Rest to recover them."
            )
            reason = (
                f"No level {known.spell_level} spell slot left for "
                f'"{known.spell_name}". {advice}'
            )
            logger.info(
                "Spell slot unavailable",
                extra={"spell": known.spell_name, "spell_level": known.spell_level},
            )
            return ValidationResult.rejected(reason)

        return ValidationResult.ok(
            DetectedSpell(name=known.spell_name, level=known.spell_level)
        )
