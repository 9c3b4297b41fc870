"""Pre-flight action validation: content rules, spell detection, spell slots."""

from .forbidden import ForbiddenContentFilter
from .ledger import RestResult, SpellResourceLedger
from .spells import SpellCastDetector
from .validator import ActionValidator, DetectedSpell, ValidationResult

__all__ = [
    "ActionValidator",
    "DetectedSpell",
    "ForbiddenContentFilter",
    "RestResult",
    "SpellCastDetector",
    "SpellResourceLedger",
    "ValidationResult",
]
