"""Detects spell casting in free-text player actions."""

from collections.abc import Iterable, Mapping

from aws_lambda_powertools import Logger

from shared.models import KnownSpell
from shared.rules import Rule, RuleTable
from shared.utils import truncate

from .spell_catalog import SPELL_ALIASES, SPELL_CATALOG

logger = Logger(child=True)

# A run of letter-only words, e.g. "magic missile at the goblin"
_PHRASE = r"([^\W\d_]+(?:[ \t]+[^\W\d_]+)*)"

# Captured phrases shorter than this are too vague to fuzzy-match
MIN_PHRASE_LENGTH = 3

CASTING_RULES: RuleTable[str] = RuleTable(
    [
        Rule.compile(rf"\b(?:sešlu|sesílám|cast|casts|casting)\s+{_PHRASE}", "cast"),
        Rule.compile(rf"\b(?:kouzlo|kouzlem|spell)\s+{_PHRASE}", "noun"),
        Rule.compile(rf"\b(?:vyčaruji|vyčarovat|conjure)\s+{_PHRASE}", "conjure"),
        Rule.compile(rf"\b(?:použiju|vyvolám)\s+{_PHRASE}", "use"),
    ]
)

# Rule kinds whose captures may name a spell the character does not know
EXPLICIT_CASTING = frozenset({"cast", "noun"})


def _contained_names(text: str, names: Iterable[str]) -> list[str]:
    """Names occurring in text, longest first ("Shield of Faith" before "Shield")."""
    hits = [name for name in names if name.lower() in text]
    return sorted(hits, key=len, reverse=True)


def _fuzzy_match(phrase: str, names: Iterable[str]) -> str | None:
    """Match a captured phrase against spell names by containment in either direction."""
    names = list(names)
    for name in names:
        if name.lower() == phrase:
            return name

    contained = _contained_names(phrase, names)
    if contained:
        return contained[0]

    if len(phrase) < MIN_PHRASE_LENGTH:
        return None
    for name in names:
        if phrase in name.lower():
            return name
    return None


class SpellCastDetector:
    """Resolves which spell, if any, a player action casts."""

    def __init__(
        self,
        aliases: Mapping[str, Iterable[str]] = SPELL_ALIASES,
        catalog: Mapping[str, int] = SPELL_CATALOG,
        casting_rules: RuleTable[str] = CASTING_RULES,
    ) -> None:
        self.aliases = aliases
        self.catalog = catalog
        self.casting_rules = casting_rules

    def detect(self, action: str, known_spells: list[KnownSpell]) -> str | None:
        """Find the spell an action casts.

        Resolution order, first hit wins:
        1. a known spell's name appears in the action
        2. one of a known spell's localized aliases appears in the action
        3. a casting phrase ("cast X", "sešlu X") names a known spell
        4. an explicit casting phrase ("cast X", "kouzlo X") names a catalog
           spell the character does not know

        Args:
            action: Player action text
            known_spells: The character's known spells

        Returns:
            The spell name, or None if the action is not spell-related
        """
        if not action:
            return None

        lowered = action.lower()
        known_names = [spell.spell_name for spell in known_spells]

        contained = _contained_names(lowered, known_names)
        if contained:
            return self._found(action, contained[0], "name")

        for name in known_names:
            for alias in self.aliases.get(name, ()):
                if alias in lowered:
                    return self._found(action, name, "alias")

        phrases = self._casting_phrases(action)

        for _, phrase in phrases:
            match = _fuzzy_match(phrase, known_names)
            if match:
                return self._found(action, match, "casting_phrase")

        # Unknown spells are still spell casting; the validator rejects them.
        # Only explicit casting phrases reach the catalog.
        for kind, phrase in phrases:
            if kind not in EXPLICIT_CASTING:
                continue
            match = _fuzzy_match(phrase, self.catalog) or self._alias_in(phrase)
            if match:
                return self._found(action, match, "catalog")

        return None

    def _casting_phrases(self, action: str) -> list[tuple[str, str]]:
        phrases = []
        for rule in self.casting_rules:
            for match in rule.pattern.finditer(action):
                phrases.append((rule.value, match.group(1).strip().lower()))
        return phrases

    def _alias_in(self, phrase: str) -> str | None:
        for name, aliases in self.aliases.items():
            if any(alias in phrase for alias in aliases):
                return name
        return None

    def _found(self, action: str, spell_name: str, via: str) -> str:
        logger.info(
            "Spell detected",
            extra={"action": truncate(action), "spell": spell_name, "via": via},
        )
        return spell_name
