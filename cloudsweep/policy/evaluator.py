"""Policy evaluation for candidate resources.

Evaluates candidates against include/exclude rule sets to decide whether they
should be acted upon.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from cloudsweep.models.candidate import EXCLUSION_TAG_KEY, Candidate
from cloudsweep.models.rule import Rule, TagMatches

EXCLUSION_TAG_RULE = TagMatches(EXCLUSION_TAG_KEY, "^true$")


@dataclass(frozen=True)
class Policy:
    """Include/exclude rule configuration for one resource type.

    Decision order:
        1. Exclusion tag set to "true" (unless honor_exclusion_tag is off) -> excluded
        2. Any exclude rule matches -> excluded
        3. Include rules present -> included only if at least one matches
        4. Otherwise -> included

    Rule order within a set never affects the outcome.

    Attributes:
        include_rules: Rules narrowing the candidates acted upon
        exclude_rules: Rules protecting candidates from deletion
        honor_exclusion_tag: Protect candidates tagged cloud-nuke-excluded=true
    """

    include_rules: FrozenSet[Rule] = field(default_factory=frozenset)
    exclude_rules: FrozenSet[Rule] = field(default_factory=frozenset)
    honor_exclusion_tag: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "include_rules", frozenset(self.include_rules))
        object.__setattr__(self, "exclude_rules", frozenset(self.exclude_rules))

    @classmethod
    def build(
        cls,
        include: Optional[Iterable[Rule]] = None,
        exclude: Optional[Iterable[Rule]] = None,
        honor_exclusion_tag: bool = True,
    ) -> Policy:
        """Build a policy from any iterables of rules."""
        return cls(
            include_rules=frozenset(include or ()),
            exclude_rules=frozenset(exclude or ()),
            honor_exclusion_tag=honor_exclusion_tag,
        )

    @property
    def is_empty(self) -> bool:
        return not self.include_rules and not self.exclude_rules

    @property
    def effective_exclude_rules(self) -> FrozenSet[Rule]:
        """Configured exclude rules plus the exclusion tag rule when honored."""
        if self.honor_exclusion_tag:
            return self.exclude_rules | {EXCLUSION_TAG_RULE}
        return self.exclude_rules

    def should_include(self, candidate: Candidate) -> bool:
        """Decide whether a candidate should be acted upon.

        Args:
            candidate: Candidate resource

        Returns:
            True if the candidate is included
        """
        if any(rule.matches(candidate) for rule in self.effective_exclude_rules):
            return False

        if self.include_rules:
            return any(rule.matches(candidate) for rule in self.include_rules)

        return True

    def explain(self, candidate: Candidate) -> tuple[bool, str]:
        """Decide like should_include() and return the reason for the decision.

        Useful for debug logging of why a resource was kept or selected.

        Args:
            candidate: Candidate resource

        Returns:
            Tuple of (included, reason)
        """
        excluded_by = sorted(rule.describe() for rule in self.effective_exclude_rules if rule.matches(candidate))
        if excluded_by:
            return False, f"excluded: {', '.join(excluded_by)}"

        if self.include_rules:
            included_by = sorted(rule.describe() for rule in self.include_rules if rule.matches(candidate))
            if included_by:
                return True, f"included: {', '.join(included_by)}"
            return False, "no include rule matched"

        return True, "included by default"


def should_include(candidate: Candidate, policy: Policy) -> bool:
    """Module-level form of Policy.should_include()."""
    return policy.should_include(candidate)
