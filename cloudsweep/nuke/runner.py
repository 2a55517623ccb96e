"""Run orchestration across resource types.

For each resource type: list candidates, apply the configured policy, split the
included identifiers into invocations no larger than the hard ceiling and hand
each invocation to the batch orchestrator. Results flow into the injected
report collector.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Optional

from cloudsweep.config import Config, OrchestrationSettings
from cloudsweep.errors import ConfigurationError
from cloudsweep.models.batch_job import BatchJob
from cloudsweep.models.deletion_outcome import DeletionOutcome
from cloudsweep.models.run_summary import RunSummary
from cloudsweep.nuke.dependency import DependencyResolver
from cloudsweep.nuke.orchestrator import BatchOrchestrator
from cloudsweep.nuke.resource import NukeableResource
from cloudsweep.reporting.collector import ReportCollector
from cloudsweep.reporting.renderers import SummaryRenderer

logger = logging.getLogger(__name__)


class NukeRunner:
    """Deletes the policy-selected resources of several resource types.

    Resource types are processed one at a time, dependants first according to
    their deleted_after declarations. A listing failure is reported and the run
    moves on to the next type. Once the cancel event is set no further deletion
    is dispatched; identifiers left over are reported as cancelled.
    """

    def __init__(
        self,
        resources: Iterable[NukeableResource],
        config: Optional[Config] = None,
        reporter: Optional[ReportCollector] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize runner.

        Args:
            resources: Resource types to process
            config: Policies and orchestration settings (default: empty config)
            reporter: Collector receiving found/deleted/error events (optional)
            cancel_event: Event aborting the run between chunks (optional)
            sleep: Sleep function for confirmation polling and batch pauses
            clock: Monotonic clock used for timeouts
        """
        self.resources = list(resources)
        self.config = config or Config()
        self.reporter = reporter or ReportCollector()
        self.cancel_event = cancel_event or threading.Event()
        self._sleep = sleep
        self._clock = clock
        self._started = False

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        """Stop dispatching further deletions."""
        logger.warning("Cancellation requested")
        self.cancel_event.set()

    def ordered_resources(self) -> list[NukeableResource]:
        """Return resources in deletion order.

        Raises:
            ConfigurationError: If resource types are duplicated or their
                deleted_after declarations form a cycle
        """
        by_type: dict[str, NukeableResource] = {}
        for resource in self.resources:
            if resource.resource_type in by_type:
                raise ConfigurationError(f"Resource type registered twice: {resource.resource_type}")
            by_type[resource.resource_type] = resource

        resolver = DependencyResolver()
        for resource in self.resources:
            for dependant in resource.deleted_after:
                resolver.add_dependency(parent=resource.resource_type, child=dependant)

        try:
            order = resolver.compute_deletion_order(by_type)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        return [by_type[resource_type] for resource_type in order]

    def run(self) -> RunSummary:
        """Process every resource type and complete the report.

        A runner runs once; its reporter is completed at the end of the run.

        Returns:
            Summary of the run

        Raises:
            ConfigurationError: If resource ordering or settings are invalid
            RuntimeError: If the runner has already been run
        """
        if self._started:
            raise RuntimeError("NukeRunner.run() can only be called once, create a new runner")
        self._started = True

        summary_renderer = SummaryRenderer()
        self.reporter.add_renderer(summary_renderer)

        try:
            for resource in self.ordered_resources():
                if self.cancelled:
                    logger.warning(f"Run cancelled, not processing {resource.resource_type}")
                    continue
                self.nuke_resource(resource)
        finally:
            self.reporter.complete()

        summary = summary_renderer.summary
        logger.info(
            f"Run {summary.status.value}: {summary.succeeded_count} deleted, "
            f"{summary.unsuccessful_count} not deleted"
        )
        return summary

    def nuke_resource(self, resource: NukeableResource) -> list[DeletionOutcome]:
        """List, filter and delete one resource type.

        Args:
            resource: Resource type to process

        Returns:
            Outcomes of every included identifier, in listing order
        """
        resource_type = resource.resource_type
        try:
            candidates = list(resource.list_candidates())
        except Exception as e:
            logger.error(f"[Failed] Unable to list {resource_type}: {e}")
            self.reporter.record_error(resource_type, f"Unable to list {resource_type}", e)
            return []

        policy = self.config.policy_for(resource_type)
        identifiers: list[str] = []
        for candidate in candidates:
            included, reason = policy.explain(candidate)
            self.reporter.record_found(resource_type, candidate.identifier, included, reason)
            if included:
                identifiers.append(candidate.identifier)
            else:
                logger.debug(f"Skipping {resource_type} {candidate.identifier}: {reason}")

        unique = list(dict.fromkeys(identifiers))
        if len(unique) != len(identifiers):
            logger.warning(f"Listing of {resource_type} returned {len(identifiers) - len(unique)} duplicate(s)")

        logger.info(f"Found {len(candidates)} {resource_type}, {len(unique)} selected for deletion")
        if not unique:
            return []

        settings = self.effective_settings(resource)
        orchestrator = BatchOrchestrator(
            poll_interval=settings.poll_interval,
            confirm_timeout=settings.confirm_timeout,
            cancel_event=self.cancel_event,
            sleep=self._sleep,
            clock=self._clock,
        )

        outcomes: list[DeletionOutcome] = []
        invocations = [
            unique[start : start + settings.hard_ceiling] for start in range(0, len(unique), settings.hard_ceiling)
        ]
        for index, invocation in enumerate(invocations):
            if index > 0 and settings.batch_pause > 0 and not self.cancelled:
                logger.debug(f"Pausing {settings.batch_pause}s before next batch of {resource_type}")
                self._sleep(settings.batch_pause)

            job = BatchJob(
                resource_type=resource_type,
                identifiers=invocation,
                max_batch_size=settings.max_batch_size,
                max_concurrency=settings.max_concurrency,
                hard_ceiling=settings.hard_ceiling,
            )
            batch_outcomes = self._nuke_job(orchestrator, resource, job)
            self.reporter.record_outcomes(batch_outcomes, resource_type)
            outcomes.extend(batch_outcomes)

        return outcomes

    def effective_settings(self, resource: NukeableResource) -> OrchestrationSettings:
        """Configured settings for a resource type, capped by its provider limits."""
        settings = self.config.settings_for(resource.resource_type)
        return settings.merged(
            {
                "max_batch_size": min(settings.max_batch_size, resource.max_batch_size),
                "max_concurrency": min(settings.max_concurrency, resource.max_concurrency),
                "hard_ceiling": min(settings.hard_ceiling, resource.hard_ceiling),
            }
        )

    @staticmethod
    def _nuke_job(orchestrator: BatchOrchestrator, resource: NukeableResource, job: BatchJob) -> list[DeletionOutcome]:
        confirm = resource.confirm_deleted if resource.confirms_deletion else None
        if resource.supports_bulk_delete:
            return orchestrator.nuke_bulk(job, resource.bulk_delete, confirm)
        return orchestrator.nuke(job, resource.delete, confirm)
