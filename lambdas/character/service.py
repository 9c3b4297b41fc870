"""Character service - reads and writes the character state the engine mutates."""

from typing import TYPE_CHECKING

from aws_lambda_powertools import Logger

from shared.db import DynamoDBClient
from shared.models import Character, SpellSlot

if TYPE_CHECKING:
    from dm.models import ItemPayload

logger = Logger()


class CharacterService:
    """Persistence collaborator for characters (HP, XP, spell slots, inventory)."""

    def __init__(self, db_client: DynamoDBClient) -> None:
        """Initialize character service.

        Args:
            db_client: DynamoDB client instance
        """
        self.db = db_client

    def get_character(self, user_id: str, character_id: str) -> Character:
        """Load a character.

        Args:
            user_id: The user's ID
            character_id: The character's ID

        Returns:
            Character model

        Raises:
            NotFoundError: If character doesn't exist
        """
        item = self.db.get_item_or_raise(
            pk=f"USER#{user_id}",
            sk=f"CHAR#{character_id}",
            resource_type="Character",
            resource_id=character_id,
        )
        return Character.from_db_item(item)

    def save_character(self, character: Character) -> None:
        """Store a full character record."""
        pk, sk, data = character.to_db_item()
        self.db.put_item(pk=pk, sk=sk, data=data)

    def set_hp(self, character: Character, hp: int) -> int:
        """Set current HP, clamped to [0, max_hp].

        Returns:
            The HP value stored
        """
        new_hp = max(0, min(hp, character.max_hp))
        pk, sk = character.to_db_keys()
        self.db.update_item(pk=pk, sk=sk, updates={"hp": new_hp})
        character.hp = new_hp

        logger.info(
            "HP updated",
            extra={"character_id": character.character_id, "hp": new_hp, "max_hp": character.max_hp},
        )
        return new_hp

    def add_xp(self, character: Character, amount: int) -> int:
        """Atomically add experience.

        Returns:
            The new XP total
        """
        pk, sk = character.to_db_keys()
        item = self.db.add_to_attribute(pk=pk, sk=sk, attribute="xp", amount=amount)
        new_xp = int(item["xp"]) if item else character.xp + amount
        character.xp = new_xp

        logger.info(
            "XP added",
            extra={"character_id": character.character_id, "gain": amount, "xp": new_xp},
        )
        return new_xp

    def decrement_spell_slot(self, character: Character, spell_level: int) -> SpellSlot | None:
        """Spend one slot of a level, only if one is left.

        The check and the decrement are a single conditional write, so
        concurrent actions cannot spend the same slot twice.

        Returns:
            The slot after the decrement, or None if none was available
        """
        pk, sk = character.to_db_keys()
        item = self.db.decrement_if_positive(
            pk=pk, sk=sk, path=["spell_slots", str(spell_level), "current"]
        )
        if item is None:
            return None

        stored = item["spell_slots"][str(spell_level)]
        slot = SpellSlot(current=int(stored["current"]), maximum=int(stored["maximum"]))
        character.spell_slots[spell_level] = slot
        return slot

    def restore_spell_slots(self, character: Character) -> dict[int, SpellSlot]:
        """Refill every spell slot level to its maximum.

        Returns:
            The restored slot pool
        """
        restored = {
            level: SpellSlot(current=slot.maximum, maximum=slot.maximum)
            for level, slot in character.spell_slots.items()
        }
        if restored:
            pk, sk = character.to_db_keys()
            self.db.update_item(
                pk=pk,
                sk=sk,
                updates={
                    "spell_slots": {str(level): s.model_dump() for level, s in restored.items()}
                },
            )
        character.spell_slots = restored
        return restored

    def add_item(self, character: Character, item: "ItemPayload") -> dict:
        """Insert an item into the character's inventory.

        Returns:
            The stored inventory entry
        """
        entry = item.model_dump(exclude_none=True)
        pk, sk = character.to_db_keys()
        self.db.append_to_list(pk=pk, sk=sk, attribute="inventory", entries=[entry])

        logger.info(
            "Item added",
            extra={
                "character_id": character.character_id,
                "item": item.name,
                "rarity": item.rarity,
            },
        )
        return entry
