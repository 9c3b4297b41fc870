"""Spell catalog and localized aliases.

The catalog lets the validator recognize spells a character does not know,
so casting them can be refused instead of silently passed to the narrator.
"""

# Canonical spell name -> spell level (0 = cantrip)
SPELL_CATALOG: dict[str, int] = {
    # Cantrips
    "Fire Bolt": 0,
    "Mage Hand": 0,
    "Ray of Frost": 0,
    "Light": 0,
    "Sacred Flame": 0,
    "Spare the Dying": 0,
    "Guidance": 0,
    # Level 1
    "Bless": 1,
    "Burning Hands": 1,
    "Cure Wounds": 1,
    "Detect Magic": 1,
    "Divine Favor": 1,
    "Healing Word": 1,
    "Magic Missile": 1,
    "Shield": 1,
    "Shield of Faith": 1,
    "Sleep": 1,
    "Thunderous Smite": 1,
    # Level 2
    "Aid": 2,
    "Invisibility": 2,
    "Lesser Restoration": 2,
    "Misty Step": 2,
    "Scorching Ray": 2,
    "Zone of Truth": 2,
    # Level 3
    "Counterspell": 3,
    "Fireball": 3,
    "Lightning Bolt": 3,
}

# Canonical spell name -> lowercase synonyms a player may write (Czech and English)
SPELL_ALIASES: dict[str, tuple[str, ...]] = {
    "Fireball": ("ohnivá koule", "ohnivou kouli", "fireball"),
    "Magic Missile": ("magická střela", "magickou střelu", "magic missile"),
    "Cure Wounds": ("vyléčení ran", "vyléčení", "cure wounds", "heal", "léčení"),
    "Shield": ("štít", "shield"),
    "Fire Bolt": ("ohnivý šíp", "ohnivou střelu", "fire bolt"),
    "Healing Word": ("léčivé slovo", "healing word"),
    "Bless": ("požehnání", "bless", "požehnej"),
}


def get_spell_level(spell_name: str) -> int | None:
    """Look up a catalog spell's level by case-insensitive name."""
    lowered = spell_name.lower()
    for name, level in SPELL_CATALOG.items():
        if name.lower() == lowered:
            return level
    return None
