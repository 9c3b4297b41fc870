"""Ordered rule tables: regex rules evaluated in order, first match wins.

Each rule carries a payload (`value`) and a fixed confidence. Callers can
pass an `accept` hook that turns a regex match into a result payload, or
returns None to reject the candidate and keep scanning.
"""

import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Rule(Generic[T]):
    """A single regex rule."""

    pattern: re.Pattern[str]
    value: T
    confidence: float = 1.0

    @classmethod
    def compile(
        cls,
        pattern: str,
        value: T,
        confidence: float = 1.0,
        flags: int = re.IGNORECASE,
    ) -> "Rule[T]":
        """Build a rule from a pattern string."""
        return cls(re.compile(pattern, flags), value, confidence)


@dataclass(frozen=True)
class RuleMatch(Generic[T]):
    """A rule that matched, with the regex match and accepted payload."""

    rule: Rule[T]
    match: re.Match[str]
    payload: Any = None

    @property
    def confidence(self) -> float:
        return self.rule.confidence

    @property
    def raw(self) -> str:
        return self.match.group(0)


class RuleTable(Generic[T]):
    """Ordered collection of rules."""

    def __init__(self, rules: Iterable[Rule[T]]) -> None:
        self.rules: tuple[Rule[T], ...] = tuple(rules)

    def __iter__(self) -> Iterator[Rule[T]]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def first_match(
        self,
        text: str,
        accept: Callable[[re.Match[str], Rule[T]], Any] | None = None,
    ) -> RuleMatch[T] | None:
        """Return the first rule matching the text.

        Rules are tried in declaration order. Within a rule every occurrence
        is tried in turn, so a rejected candidate does not hide a later
        acceptable one.

        Args:
            text: Text to scan
            accept: Optional hook mapping a match to a payload; returning
                None rejects the candidate

        Returns:
            RuleMatch for the winning rule, or None
        """
        if not text:
            return None

        for rule in self.rules:
            for match in rule.pattern.finditer(text):
                if accept is None:
                    return RuleMatch(rule=rule, match=match)
                payload = accept(match, rule)
                if payload is not None:
                    return RuleMatch(rule=rule, match=match, payload=payload)
        return None
