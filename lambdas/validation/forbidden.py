"""Rejects player actions that break the fantasy setting."""

from aws_lambda_powertools import Logger

from shared.rules import Rule, RuleTable
from shared.utils import truncate

logger = Logger(child=True)

# Ordered from most to least specific; the first matching rule's reason wins.
FORBIDDEN_RULES: RuleTable[str] = RuleTable(
    [
        Rule.compile(
            r"\b(?:počítač\w*|computer\w*|pc|laptop\w*)\b",
            "Computers do not exist in this world. Try a spell or seek out a mage instead.",
        ),
        Rule.compile(
            r"\b(?:hitler\w*|stalin\w*|lenin\w*|modern\w*|moderní\w*|současnost\w*)\b"
            r"|21\.\s*(?:století|century)",
            "References to modern history make no sense in a fantasy world.",
        ),
        Rule.compile(
            r"\b(?:auto|automobil\w*|cars?|trucks?|bus|letadl\w*|airplanes?"
            r"|helikoptér\w*|helicopters?)\b",
            "Motor vehicles do not exist here. Use a horse, a wagon or a ship.",
        ),
        Rule.compile(
            r"\b(?:telefon\w*|phones?|mobil\w*|smartphone\w*|iphone\w*|android\w*)\b",
            "Phones do not exist. Use the Message spell or send a courier.",
        ),
        Rule.compile(
            r"\b(?:internet\w*|wi-?fi|bluetooth|usb|e-?mail\w*)\b|\bwww\.",
            "Digital technology does not exist in this world.",
        ),
        Rule.compile(
            r"\b(?:pušk\w*|pistol\w*|revolver\w*|samopal\w*|granát\w*|bomb\w*|dynamit\w*"
            r"|guns?|rifles?|shotguns?|grenades?)\b",
            "Firearms and explosives do not exist here. Use a sword, a bow or a spell.",
        ),
    ]
)


class ForbiddenContentFilter:
    """Ordered anachronism filter for player actions."""

    def __init__(self, rules: RuleTable[str] = FORBIDDEN_RULES) -> None:
        self.rules = rules

    def check(self, action: str) -> str | None:
        """Return the reason of the first matching rule, or None.

        Args:
            action: Player action text

        Returns:
            Rejection reason, or None if the action is allowed
        """
        hit = self.rules.first_match(action)
        if hit is None:
            return None

        logger.info(
            "Forbidden action detected",
            extra={"action": truncate(action), "matched": hit.raw},
        )
        return hit.rule.value
