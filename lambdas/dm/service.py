"""Narrator turn service: validate an action, call the narrator, apply events."""

from typing import Protocol

from aws_lambda_powertools import Logger

from character.service import CharacterService
from shared.config import Config, get_config
from shared.db import DynamoDBClient
from shared.exceptions import ConfigurationError, GameStateError, QuotaExceededError
from shared.models import Character
from shared.quota import QuotaTracker, get_quota_message
from shared.quota_limits import QuotaLimits
from shared.retry import with_retry, with_tracking
from shared.usage_log import UsageLog
from validation.ledger import SpellResourceLedger
from validation.validator import ActionValidator

from .models import TurnResult
from .parser import parse_narrator_response

logger = Logger(child=True)

NARRATOR_OPERATION = "narrator_action"

# Substring match on the lowercased action
LONG_REST_KEYWORDS = (
    "long rest",
    "dlouhý odpočinek",
    "odpočinu si",
    "odpočinout",
    "odpočívám",
    "usnout",
    "spát",
)


class NarratorClient(Protocol):
    """Protocol for the text generator that narrates a turn."""

    def send_action(self, system_prompt: str, context: str, action: str) -> str:
        """Send a player action and return the narrative."""
        ...


def is_long_rest_action(action: str) -> bool:
    """Check whether an action asks for a long rest."""
    lowered = action.lower()
    return any(keyword in lowered for keyword in LONG_REST_KEYWORDS)


class NarratorTurnService:
    """Runs one player turn through the rules engine."""

    def __init__(
        self,
        characters: CharacterService,
        quota_tracker: QuotaTracker,
        narrator: NarratorClient | None = None,
        validator: ActionValidator | None = None,
        config: Config | None = None,
    ):
        """Initialize narrator turn service.

        Args:
            characters: Character persistence collaborator
            quota_tracker: Per-user request quota tracker
            narrator: Optional pre-configured narrator (for testing)
            validator: Optional action validator. Defaults to one using a
                ledger over the character service.
            config: Optional config. Defaults to get_config().
        """
        self.characters = characters
        self.quota_tracker = quota_tracker
        self.ledger = SpellResourceLedger(characters)
        self.validator = validator or ActionValidator(self.ledger)
        self._narrator = narrator
        self._config = config

    @property
    def config(self) -> Config:
        if self._config is None:
            self._config = get_config()
        return self._config

    def _get_narrator(self) -> NarratorClient:
        """Lazy initialization of the Claude narrator."""
        if self._narrator is None:
            api_key = self.config.anthropic_api_key
            if not api_key:
                raise ConfigurationError("Anthropic API key is not configured", "ANTHROPIC_API_KEY")

            from dm.claude_client import ClaudeNarrator

            self._narrator = ClaudeNarrator(api_key)
            logger.info("Using Claude via Anthropic API")
        return self._narrator

    def process_action(
        self,
        user_id: str,
        character_id: str,
        action: str,
        system_prompt: str,
        context: str,
    ) -> TurnResult:
        """Process a player action and return the turn result.

        Args:
            user_id: User ID
            character_id: Character ID
            action: Player action text
            system_prompt: Narrator system prompt
            context: Scene and character context for the narrator

        Returns:
            TurnResult. Rejected actions come back with valid=False and a
            reason; the narrator is not called for them.

        Raises:
            NotFoundError: Character not found
            GameStateError: Character is dead
            QuotaExceededError: User is over the request quota
        """
        character = self.characters.get_character(user_id, character_id)
        if character.hp <= 0:
            raise GameStateError("Character is dead", current_state="dead")

        logger.info(
            "Processing player action",
            extra={
                "user_id": user_id,
                "character_id": character_id,
                "action_length": len(action),
            },
        )

        rest_slots = None
        if is_long_rest_action(action):
            rest = self.ledger.long_rest(character)
            rest_slots = rest.spell_slots

        validation = self.validator.validate(character, action)
        if not validation.valid:
            logger.info("Action rejected", extra={"reason": validation.reason})
            return TurnResult(
                valid=False,
                reason=validation.reason,
                hp=character.hp,
                xp=character.xp,
                spell_slots=rest_slots,
            )

        stats = self.quota_tracker.get_quota_stats(user_id)
        if stats.exceeded:
            logger.warning(
                "Narrator quota exceeded",
                extra={
                    "user_id": user_id,
                    "requests_last_minute": stats.requests_last_minute,
                    "requests_last_day": stats.requests_last_day,
                },
            )
            raise QuotaExceededError(get_quota_message(stats), user_id=user_id)

        narrative = self._narrate(user_id, system_prompt, context, action)

        slot_consumed = False
        detected = validation.detected_spell
        if detected is not None and detected.level > 0:
            slot_consumed = self.ledger.consume(character, detected.level)

        events = parse_narrator_response(narrative, character.hp)
        result = TurnResult(
            valid=True,
            narrative=narrative,
            detected_spell=detected,
            spell_slot_consumed=slot_consumed,
            events=events,
            spell_slots=rest_slots,
        )

        self._apply_hp(character, result)
        self._apply_xp(character, result)
        self._offer_item(result)

        result.hp = character.hp
        result.xp = character.xp
        return result

    def _narrate(self, user_id: str, system_prompt: str, context: str, action: str) -> str:
        """Call the narrator with retries; the call as a whole counts once against the quota."""
        narrator = self._get_narrator()

        def send() -> str:
            return with_retry(
                lambda: narrator.send_action(system_prompt, context, action),
                max_retries=self.config.narrator_max_retries,
                delay=self.config.narrator_retry_delay,
            )

        return with_tracking(NARRATOR_OPERATION, send, self.quota_tracker, user_id)()

    def _apply_hp(self, character: Character, result: TurnResult) -> None:
        change = result.events.hp_change.change
        if change == 0:
            return

        new_hp = self.characters.set_hp(character, character.hp + change)
        logger.info(
            "HP change applied",
            extra={
                "change": change,
                "hp": new_hp,
                "source": result.events.hp_change.source,
                "confidence": result.events.hp_change.confidence,
            },
        )
        if new_hp <= 0:
            logger.info("Character died", extra={"character_id": character.character_id})
            result.character_died = True

    def _apply_xp(self, character: Character, result: TurnResult) -> None:
        """Add gained XP and flag a pending level-up. Leveling itself is left to the caller."""
        gain = result.events.xp_gain.gain
        if gain <= 0:
            return

        self.characters.add_xp(character, gain)
        result.next_level_xp = character.next_level_xp
        result.should_level_up = character.can_level_up()
        if result.should_level_up:
            logger.info(
                "Level up ready",
                extra={"character_id": character.character_id, "xp": character.xp, "level": character.level},
            )

    def _offer_item(self, result: TurnResult) -> None:
        """Hold a found item for player confirmation instead of adding it."""
        item_gain = result.events.item_gain
        if not item_gain.found or item_gain.item is None:
            return

        if item_gain.confidence >= self.config.item_confirm_min_confidence:
            result.pending_item = item_gain.item
            logger.info("Item awaiting confirmation", extra={"item": item_gain.item.name})
        else:
            logger.info(
                "Item confidence too low, skipping",
                extra={"item": item_gain.item.name, "confidence": item_gain.confidence},
            )

    def confirm_item(self, user_id: str, character_id: str, result: TurnResult) -> dict | None:
        """Add a pending item to the character's inventory once the player accepts it.

        Returns:
            The stored inventory entry, or None if nothing was pending
        """
        if result.pending_item is None:
            return None

        character = self.characters.get_character(user_id, character_id)
        return self.characters.add_item(character, result.pending_item)


def create_turn_service(config: Config | None = None) -> NarratorTurnService:
    """Wire a turn service against the configured DynamoDB table.

    Args:
        config: Optional config. Defaults to get_config().

    Returns:
        NarratorTurnService using Claude as the narrator
    """
    config = config or get_config()
    db = DynamoDBClient(config.table_name)
    limits = QuotaLimits(
        PER_MINUTE=config.quota_limit_per_minute,
        PER_DAY=config.quota_limit_per_day,
    )
    return NarratorTurnService(
        characters=CharacterService(db),
        quota_tracker=QuotaTracker(UsageLog(db), limits=limits),
        config=config,
    )
