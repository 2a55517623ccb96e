"""Data models for candidates, rules, batch jobs and deletion results."""

from __future__ import annotations

from cloudsweep.models.batch_job import BatchJob
from cloudsweep.models.candidate import Candidate
from cloudsweep.models.deletion_outcome import DeletionOutcome, OutcomeStatus
from cloudsweep.models.rule import CreatedAfter, CreatedBefore, NameMatches, Rule, RuleType, TagMatches
from cloudsweep.models.run_summary import ResourceTypeSummary, RunStatus, RunSummary

__all__ = [
    "BatchJob",
    "Candidate",
    "CreatedAfter",
    "CreatedBefore",
    "DeletionOutcome",
    "NameMatches",
    "OutcomeStatus",
    "ResourceTypeSummary",
    "Rule",
    "RuleType",
    "RunStatus",
    "RunSummary",
    "TagMatches",
]
