"""Run summary model.

Per resource type counts and failure reasons for one deletion run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from cloudsweep.models.deletion_outcome import DeletionOutcome, OutcomeStatus


class RunStatus(Enum):
    """Overall run status.

    State rules:
        all attempted deletions succeeded -> completed
        some failed, some succeeded -> partial
        some failed, none succeeded -> failed
    """

    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ResourceTypeSummary:
    """Counts for one resource type.

    Attributes:
        resource_type: Resource type name
        found_count: Candidates listed
        excluded_count: Candidates rejected by the policy
        succeeded_count: Identifiers deleted
        failed_count: Identifiers whose delete call or confirmation errored
        timed_out_count: Identifiers whose deletion was never confirmed
        cancelled_count: Identifiers never dispatched because the run was cancelled
        failures: Failure reason per identifier
        errors: General errors (e.g. listing failures) for this type
    """

    resource_type: str
    found_count: int = 0
    excluded_count: int = 0
    succeeded_count: int = 0
    failed_count: int = 0
    timed_out_count: int = 0
    cancelled_count: int = 0
    failures: dict[str, str] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def attempted_count(self) -> int:
        return self.succeeded_count + self.failed_count + self.timed_out_count + self.cancelled_count

    def add_outcome(self, outcome: DeletionOutcome) -> None:
        """Count one deletion outcome."""
        if outcome.status == OutcomeStatus.SUCCEEDED:
            self.succeeded_count += 1
            return

        if outcome.status == OutcomeStatus.TIMED_OUT:
            self.timed_out_count += 1
        elif outcome.status == OutcomeStatus.CANCELLED:
            self.cancelled_count += 1
        else:
            self.failed_count += 1
        self.failures[outcome.identifier] = outcome.error_message or outcome.status.value


@dataclass
class RunSummary:
    """Summary of a whole run across resource types."""

    resource_types: dict[str, ResourceTypeSummary] = field(default_factory=dict)

    def for_type(self, resource_type: str) -> ResourceTypeSummary:
        """Return the summary for a resource type, creating it on first use."""
        if resource_type not in self.resource_types:
            self.resource_types[resource_type] = ResourceTypeSummary(resource_type=resource_type)
        return self.resource_types[resource_type]

    def add_outcomes(self, resource_type: str, outcomes: Iterable[DeletionOutcome]) -> None:
        summary = self.for_type(resource_type)
        for outcome in outcomes:
            summary.add_outcome(outcome)

    @property
    def succeeded_count(self) -> int:
        return sum(s.succeeded_count for s in self.resource_types.values())

    @property
    def unsuccessful_count(self) -> int:
        return sum(
            s.failed_count + s.timed_out_count + s.cancelled_count + len(s.errors)
            for s in self.resource_types.values()
        )

    @property
    def status(self) -> RunStatus:
        if self.unsuccessful_count > 0:
            if self.succeeded_count > 0:
                return RunStatus.PARTIAL
            return RunStatus.FAILED
        return RunStatus.COMPLETED

    def failure_for(self, resource_type: str, identifier: str) -> Optional[str]:
        summary = self.resource_types.get(resource_type)
        if summary is None:
            return None
        return summary.failures.get(identifier)
