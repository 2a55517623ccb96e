"""Filter rule models.

A rule is a single stateless predicate over a Candidate. Rules are frozen
dataclasses so they can be collected in sets; regular expressions are compiled
once at construction and reused for every candidate of a run.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Pattern

from cloudsweep.errors import ConfigurationError
from cloudsweep.models.candidate import Candidate, as_utc


class RuleType(Enum):
    """Rule kinds supported by the policy engine."""

    NAME = "name"
    TAG = "tag"
    CREATED_AFTER = "created_after"
    CREATED_BEFORE = "created_before"


def compile_pattern(pattern: str, flags: int = 0) -> Pattern[str]:
    """Compile a rule regex, raising ConfigurationError if it is invalid."""
    try:
        return re.compile(pattern, flags)
    except (re.error, TypeError) as e:
        raise ConfigurationError(f"Invalid regular expression {pattern!r}: {e}") from e


class Rule(ABC):
    """Abstract base class for all filter rules."""

    rule_type: ClassVar[RuleType]

    @abstractmethod
    def matches(self, candidate: Candidate) -> bool:
        """Return True if the rule matches the candidate."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description used in decision reasons."""


@dataclass(frozen=True)
class NameMatches(Rule):
    """Regex searched in the candidate name (case-insensitive by default)."""

    rule_type: ClassVar[RuleType] = RuleType.NAME

    pattern: str
    ignore_case: bool = True
    _regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        flags = re.IGNORECASE if self.ignore_case else 0
        object.__setattr__(self, "_regex", compile_pattern(self.pattern, flags))

    def matches(self, candidate: Candidate) -> bool:
        if candidate.name is None:
            return False
        return self._regex.search(candidate.name) is not None

    def describe(self) -> str:
        return f"name matches /{self.pattern}/"


@dataclass(frozen=True)
class TagMatches(Rule):
    """Regex searched in the value of one tag. An absent key never matches."""

    rule_type: ClassVar[RuleType] = RuleType.TAG

    key: str
    pattern: str
    ignore_case: bool = False
    _regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.key:
            raise ConfigurationError("Tag rule requires a tag key")
        flags = re.IGNORECASE if self.ignore_case else 0
        object.__setattr__(self, "_regex", compile_pattern(self.pattern, flags))

    def matches(self, candidate: Candidate) -> bool:
        value = candidate.tags.get(self.key)
        if value is None:
            return False
        return self._regex.search(value) is not None

    def describe(self) -> str:
        return f"tag {self.key} matches /{self.pattern}/"


@dataclass(frozen=True)
class CreatedAfter(Rule):
    """Strictly created after a point in time. Unknown creation time never matches."""

    rule_type: ClassVar[RuleType] = RuleType.CREATED_AFTER

    when: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "when", as_utc(self.when))

    def matches(self, candidate: Candidate) -> bool:
        if candidate.created_at is None:
            return False
        return candidate.created_at > self.when

    def describe(self) -> str:
        return f"created after {self.when.isoformat()}"


@dataclass(frozen=True)
class CreatedBefore(Rule):
    """Strictly created before a point in time. Unknown creation time never matches."""

    rule_type: ClassVar[RuleType] = RuleType.CREATED_BEFORE

    when: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "when", as_utc(self.when))

    def matches(self, candidate: Candidate) -> bool:
        if candidate.created_at is None:
            return False
        return candidate.created_at < self.when

    def describe(self) -> str:
        return f"created before {self.when.isoformat()}"
