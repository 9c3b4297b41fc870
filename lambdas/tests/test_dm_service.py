"""Tests for the narrator turn service."""

from unittest.mock import MagicMock, patch

import pytest

from dm.service import NarratorTurnService, create_turn_service, is_long_rest_action
from shared.config import Config
from shared.exceptions import ConfigurationError, GameStateError, QuotaExceededError
from shared.models import Character, KnownSpell, SpellSlot


def _config(**overrides):
    values = {
        "table_name": "test-table",
        "environment": "test",
        "log_level": "DEBUG",
        "anthropic_api_key": "test-key",
        "narrator_retry_delay": 0.0,
    }
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def characters(wizard):
    """Mock character service holding the wizard fixture."""
    service = MagicMock()
    service.get_character.return_value = wizard

    def set_hp(character, hp):
        character.hp = max(0, min(hp, character.max_hp))
        return character.hp

    def add_xp(character, amount):
        character.xp += amount
        return character.xp

    def decrement(character, level):
        slot = character.spell_slots.get(level)
        if slot is None or slot.current == 0:
            return None
        character.spell_slots[level] = SpellSlot(current=slot.current - 1, maximum=slot.maximum)
        return character.spell_slots[level]

    def restore(character):
        character.spell_slots = {
            level: SpellSlot(current=slot.maximum, maximum=slot.maximum)
            for level, slot in character.spell_slots.items()
        }
        return character.spell_slots

    service.set_hp.side_effect = set_hp
    service.add_xp.side_effect = add_xp
    service.decrement_spell_slot.side_effect = decrement
    service.restore_spell_slots.side_effect = restore
    return service


@pytest.fixture
def quota_tracker():
    tracker = MagicMock()
    tracker.get_quota_stats.return_value.exceeded = False
    return tracker


@pytest.fixture
def narrator():
    mock = MagicMock()
    mock.send_action.return_value = "The corridor stretches on."
    return mock


@pytest.fixture
def service(characters, quota_tracker, narrator):
    return NarratorTurnService(
        characters=characters,
        quota_tracker=quota_tracker,
        narrator=narrator,
        config=_config(),
    )


def _act(service, action):
    return service.process_action("user-1", "char-1", action, "system prompt", "context")


class TestProcessAction:
    """Tests for the turn pipeline."""

    def test_plain_action(self, service, narrator, quota_tracker):
        result = _act(service, "I look around")

        assert result.valid is True
        assert result.narrative == "The corridor stretches on."
        narrator.send_action.assert_called_once_with("system prompt", "context", "I look around")
        quota_tracker.track_usage.assert_called_once_with(
            "user-1", "narrator_action", success=True
        )

    def test_invalid_action_skips_narrator(self, service, narrator, quota_tracker):
        result = _act(service, "I pull out my smartphone")

        assert result.valid is False
        assert "Phones" in result.reason
        narrator.send_action.assert_not_called()
        quota_tracker.get_quota_stats.assert_not_called()

    def test_unknown_spell_rejected(self, service, narrator):
        result = _act(service, "Sešlu Fireball")

        assert result.valid is False
        assert "Fireball" in result.reason
        narrator.send_action.assert_not_called()

    def test_quota_exceeded(self, service, narrator, quota_tracker):
        quota_tracker.get_quota_stats.return_value.exceeded = True
        quota_tracker.get_quota_stats.return_value.remaining_per_minute = 0
        quota_tracker.get_quota_stats.return_value.remaining_per_day = 0

        with pytest.raises(QuotaExceededError):
            _act(service, "I look around")
        narrator.send_action.assert_not_called()

    def test_dead_character(self, service, wizard):
        wizard.hp = 0
        with pytest.raises(GameStateError):
            _act(service, "I look around")

    def test_leveled_spell_consumes_slot(self, service, characters, wizard):
        result = _act(service, "I cast Magic Missile at the goblin")

        assert result.valid is True
        assert result.detected_spell.name == "Magic Missile"
        assert result.spell_slot_consumed is True
        characters.decrement_spell_slot.assert_called_once_with(wizard, 1)
        assert wizard.spell_slots[1].current == 3

    def test_cantrip_does_not_consume(self, service, characters):
        result = _act(service, "I cast Fire Bolt")

        assert result.detected_spell.level == 0
        assert result.spell_slot_consumed is False
        characters.decrement_spell_slot.assert_not_called()

    def test_hp_and_xp_applied(self, service, narrator, characters):
        narrator.send_action.return_value = "Ouch. [HP-CHANGE: -5] You learn. [XP-GAIN: 50]"

        result = _act(service, "I attack the ogre")

        assert result.events.hp_change.change == -5
        assert result.hp == 13
        assert result.xp == 950
        assert result.character_died is False
        assert result.should_level_up is False
        assert result.next_level_xp == 2700

    def test_xp_gain_reaching_threshold_flags_level_up(self, service, narrator):
        narrator.send_action.return_value = "The lich crumbles. [XP-GAIN: 1800]"

        result = _act(service, "I strike the phylactery")

        assert result.xp == 2700
        assert result.should_level_up is True

    def test_no_xp_gain_no_level_up_flag(self, service, wizard):
        """The flag follows a gain this turn, not a stale XP total."""
        wizard.xp = 5000

        result = _act(service, "I look around")

        assert result.should_level_up is False
        assert result.next_level_xp is None

    def test_lethal_damage(self, service, narrator):
        narrator.send_action.return_value = "The dragon's breath engulfs you. [HP-CHANGE: -40]"

        result = _act(service, "I charge the dragon")

        assert result.hp == 0
        assert result.character_died is True

    def test_item_held_for_confirmation(self, service, narrator, characters):
        narrator.send_action.return_value = (
            '[ITEM-GAIN: {"name": "Moonblade", "type": "weapon", "rarity": "legendary"}]'
        )

        result = _act(service, "I search the altar")

        assert result.pending_item.name == "Moonblade"
        characters.add_item.assert_not_called()

    def test_confirm_item_adds_to_inventory(self, service, narrator, characters, wizard):
        narrator.send_action.return_value = "You found a silver dagger."
        result = _act(service, "I search the altar")

        service.confirm_item("user-1", "char-1", result)

        characters.add_item.assert_called_once_with(wizard, result.pending_item)

    def test_low_confidence_item_skipped(self, characters, quota_tracker, narrator):
        service = NarratorTurnService(
            characters=characters,
            quota_tracker=quota_tracker,
            narrator=narrator,
            config=_config(item_confirm_min_confidence=0.9),
        )
        narrator.send_action.return_value = "You found a silver dagger."

        result = _act(service, "I search the altar")

        assert result.events.item_gain.found is True
        assert result.pending_item is None

    def test_long_rest_restores_before_validation(self, service, characters, wizard):
        """Resting first makes an exhausted spell castable again."""
        wizard.hp = 4
        wizard.spell_slots = {1: SpellSlot(current=0, maximum=2)}
        wizard.known_spells = [KnownSpell(spell_name="Magic Missile", spell_level=1)]

        result = _act(service, "Dám si long rest u ohně")

        assert result.valid is True
        assert result.spell_slots == {1: SpellSlot(current=2, maximum=2)}
        assert result.hp == 20

    def test_narrator_failure_retried_and_tracked(self, service, narrator, quota_tracker):
        narrator.send_action.side_effect = [RuntimeError("overloaded"), "Recovered."]

        result = _act(service, "I look around")

        assert result.narrative == "Recovered."
        assert narrator.send_action.call_count == 2
        quota_tracker.track_usage.assert_called_once_with(
            "user-1", "narrator_action", success=True
        )

    def test_narrator_failure_exhausted(self, service, narrator, quota_tracker):
        narrator.send_action.side_effect = RuntimeError("down")

        with pytest.raises(RuntimeError):
            _act(service, "I look around")

        assert narrator.send_action.call_count == 3
        quota_tracker.track_usage.assert_called_once_with(
            "user-1", "narrator_action", success=False, error_code="RuntimeError"
        )


class TestNarratorSetup:
    """Tests for narrator and service wiring."""

    def test_missing_api_key(self, characters, quota_tracker):
        service = NarratorTurnService(
            characters=characters,
            quota_tracker=quota_tracker,
            config=_config(anthropic_api_key=None),
        )
        with pytest.raises(ConfigurationError):
            _act(service, "I look around")

    def test_lazy_claude_narrator(self, characters, quota_tracker):
        service = NarratorTurnService(
            characters=characters, quota_tracker=quota_tracker, config=_config()
        )
        with patch("dm.claude_client.ClaudeNarrator") as mock_narrator:
            mock_narrator.return_value.send_action.return_value = "Hello."
            result = _act(service, "I wave")

        mock_narrator.assert_called_once_with("test-key")
        assert result.narrative == "Hello."

    def test_create_turn_service_uses_config_limits(self, dynamodb_table):
        service = create_turn_service(_config(quota_limit_per_minute=3, quota_limit_per_day=30))

        assert service.quota_tracker.limits.PER_MINUTE == 3
        assert service.quota_tracker.limits.PER_DAY == 30


class TestLongRestKeywords:
    """Tests for long rest detection."""

    @pytest.mark.parametrize("action", ["I take a long rest", "Odpočinu si u ohně", "Jdu spát"])
    def test_detected(self, action):
        assert is_long_rest_action(action) is True

    def test_not_detected(self):
        assert is_long_rest_action("I attack the goblin") is False
