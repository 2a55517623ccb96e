"""Policy evaluation for candidate resources."""

from __future__ import annotations

from cloudsweep.policy.evaluator import Policy, should_include

__all__ = ["Policy", "should_include"]
