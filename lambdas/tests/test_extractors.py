"""Tests for narrator event extractors."""

import pytest

from dm.extractors import extract_hp_change, extract_item_gain, extract_xp_gain
from dm.models import HPChangeEvent, ItemPayload


class TestExtractHPChange:
    """Tests for HP change extraction."""

    def test_tag_damage(self):
        event = extract_hp_change("The blade bites deep. [HP-CHANGE: -5]", current_hp=20)
        assert event.change == -5
        assert event.source == "pattern"
        assert event.confidence == 1.0
        assert event.raw == "[HP-CHANGE: -5]"

    def test_tag_healing(self):
        event = extract_hp_change("Warmth spreads through you. [HP-CHANGE: +8]", current_hp=3)
        assert event.change == 8

    def test_tag_beats_text(self):
        """A tag wins over a text phrase in the same response."""
        text = "You take 3 damage from the fall. [HP-CHANGE: -7]"
        event = extract_hp_change(text, current_hp=20)
        assert event.change == -7
        assert event.source == "pattern"

    def test_english_damage_phrase(self):
        event = extract_hp_change("The orc swings and you take 6 damage.", current_hp=20)
        assert event.change == -6
        assert event.source == "text"
        assert 0 < event.confidence < 1

    def test_czech_damage_phrase(self):
        event = extract_hp_change("Utrpěl jsi 4 body zranění.", current_hp=20)
        assert event.change == -4

    def test_hits_you_for(self):
        event = extract_hp_change("The troll hits you for 9!", current_hp=20)
        assert event.change == -9

    def test_healing_phrase(self):
        event = extract_hp_change("You regain 5 hit points.", current_hp=10)
        assert event.change == 5
        assert event.source == "text"

    def test_czech_healing_phrase(self):
        event = extract_hp_change("Lektvar tě vyléčí 7 životů.", current_hp=10)
        assert event.change == 7

    def test_absolute_hp_phrase(self):
        """Absolute phrasings become a delta from current HP."""
        event = extract_hp_change("You now have 4 HP left.", current_hp=10)
        assert event.change == -6

    def test_czech_absolute_phrase(self):
        event = extract_hp_change("Máš nyní 15 životů.", current_hp=10)
        assert event.change == 5

    def test_damage_dealt_by_player_is_ignored(self):
        """Damage the player deals is not an HP change for the player."""
        event = extract_hp_change("You deal 8 damage to the goblin.", current_hp=10)
        assert event.change == 0
        assert event.source is None

    @pytest.mark.parametrize(
        "text",
        [
            "You swing hard. The goblin takes 8 damage and staggers.",
            "The troll regains 10 hit points as its wounds close.",
            "Skřet utrpěl 5 bodů zranění a padá.",
            "Kněz vyléčí skřeta o 6 životů.",
        ],
    )
    def test_other_creatures_hp_is_ignored(self, text):
        """Damage and healing of other creatures never changes the player's HP."""
        event = extract_hp_change(text, current_hp=20)
        assert event.change == 0
        assert event.source is None

    def test_feminine_czech_damage_phrase(self):
        assert extract_hp_change("Utrpěla jsi 3 body zranění.", current_hp=20).change == -3

    def test_perfect_tense_damage_phrase(self):
        assert extract_hp_change("You've taken 4 damage from the trap.", current_hp=20).change == -4

    def test_nothing_found(self):
        event = extract_hp_change("The corridor is quiet.", current_hp=10)
        assert event == HPChangeEvent()
        assert event.confidence == 0.0
        assert event.raw is None

    def test_empty_text(self):
        assert extract_hp_change("", current_hp=10).change == 0


class TestExtractXPGain:
    """Tests for XP gain extraction."""

    def test_tag(self):
        event = extract_xp_gain("Victory! [XP-GAIN: 50]")
        assert event.gain == 50
        assert event.source == "pattern"
        assert event.confidence == 1.0

    def test_tag_with_plus(self):
        assert extract_xp_gain("[XP-GAIN: +25]").gain == 25

    def test_english_phrase(self):
        event = extract_xp_gain("You gain 100 XP for defeating the ogre.")
        assert event.gain == 100
        assert event.source == "text"

    def test_czech_phrase(self):
        assert extract_xp_gain("Získáváš 30 zkušeností.").gain == 30

    def test_plus_shorthand(self):
        assert extract_xp_gain("Goblin defeated (+15 XP)").gain == 15

    def test_earlier_rule_has_higher_confidence(self):
        verb = extract_xp_gain("You earned 40 experience points.")
        bare = extract_xp_gain("That was worth 40 experience points.")
        assert verb.confidence > bare.confidence

    def test_tag_beats_text(self):
        event = extract_xp_gain("You gain 10 XP for the fight. [XP-GAIN: 40]")
        assert event.gain == 40
        assert event.source == "pattern"
        assert event.confidence == 1.0
        assert event.raw == "[XP-GAIN: 40]"

    def test_no_negative_tag(self):
        """XP is gain-only; a negative tag is not a match."""
        event = extract_xp_gain("[XP-GAIN: -10]")
        assert event.gain == 0
        assert event.source is None

    def test_nothing_found(self):
        event = extract_xp_gain("You rest by the fire.")
        assert event.gain == 0
        assert event.confidence == 0.0


class TestExtractItemGain:
    """Tests for item gain extraction."""

    def test_tag(self):
        text = (
            'You pry open the chest. [ITEM-GAIN: {"name": "Flame Tongue", "type": "weapon", '
            '"rarity": "rare", "damage": "1d8", "statBonuses": {"strength": 1}, '
            '"requiresAttunement": true}]'
        )
        event = extract_item_gain(text)

        assert event.found is True
        assert event.source == "pattern"
        assert event.confidence == 1.0
        assert event.item.name == "Flame Tongue"
        assert event.item.type == "weapon"
        assert event.item.rarity == "rare"
        assert event.item.stat_bonuses.strength == 1
        assert event.item.requires_attunement is True

    def test_tag_beats_text(self):
        text = (
            '[ITEM-GAIN: {"name": "Moonblade", "type": "weapon", "rarity": "legendary"}] '
            "You found a rusty nail."
        )
        event = extract_item_gain(text)
        assert event.item.name == "Moonblade"
        assert event.source == "pattern"
        assert event.confidence == 1.0

    def test_tag_coerces_invalid_enums(self):
        event = extract_item_gain('[ITEM-GAIN: {"name":"Dagger","type":"bogus","rarity":"bogus"}]')
        assert event.found is True
        assert event.item.type == "misc"
        assert event.item.rarity == "common"

    def test_tag_missing_required_falls_back_to_text(self):
        """A tag without rarity is skipped and text rules still run."""
        text = '[ITEM-GAIN: {"name": "Rope", "type": "misc"}] You found a coil of rope.'
        event = extract_item_gain(text)
        assert event.found is True
        assert event.source == "text"
        assert event.item.name == "coil of rope"

    def test_malformed_json_falls_back(self):
        event = extract_item_gain('[ITEM-GAIN: {"name": "Broken}] The room is empty.')
        assert event.found is False
        assert event.source is None

    def test_text_phrase(self):
        event = extract_item_gain("Beneath the altar you found a silver dagger.")
        assert event.found is True
        assert event.source == "text"
        assert event.item.name == "silver dagger"
        assert event.item.type == "misc"
        assert event.item.rarity == "common"

    def test_czech_text_phrase(self):
        event = extract_item_gain("Našel jsi Elfí plášť!")
        assert event.item.name == "Elfí plášť"

    def test_currency_is_not_an_item(self):
        event = extract_item_gain("You found a pouch with 30 gold.")
        assert event.found is False

    @pytest.mark.parametrize(
        "text",
        [
            "You found it.",
            "You found " + "a" * 60 + ".",
        ],
    )
    def test_name_length_bounds(self, text):
        assert extract_item_gain(text).found is False

    @pytest.mark.parametrize(
        "text",
        [
            "You take cover behind the rock.",
            "You find yourself in a damp cave.",
            "Nacházíš se v temné jeskyni.",
        ],
    )
    def test_present_tense_is_not_an_acquisition(self, text):
        assert extract_item_gain(text).found is False

    def test_feminine_czech_text_phrase(self):
        assert extract_item_gain("Sebrala jsi stříbrný prsten.").item.name == "stříbrný prsten"

    def test_nothing_found(self):
        event = extract_item_gain("The goblin flees into the dark.")
        assert event.found is False
        assert event.item is None
        assert event.confidence == 0.0


class TestItemPayload:
    """Tests for item payload coercion."""

    def test_camel_case_keys(self):
        item = ItemPayload.model_validate(
            {"name": "Chain Mail", "type": "armor", "rarity": "common", "armorValue": 16}
        )
        assert item.armor_value == 16

    def test_very_rare_with_space(self):
        assert ItemPayload(name="Orb", rarity="Very Rare").rarity == "very_rare"

    @pytest.mark.parametrize("quantity", [0, -3, "many", None])
    def test_invalid_quantity_defaults_to_one(self, quantity):
        assert ItemPayload(name="Arrow", quantity=quantity).quantity == 1

    def test_valid_quantity_kept(self):
        assert ItemPayload(name="Arrow", quantity=20).quantity == 20
