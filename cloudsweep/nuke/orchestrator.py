"""Batch deletion orchestrator.

Drives deletion of the identifiers of one resource type to completion with a
fixed-size worker pool, per-identifier failure isolation and an optional
confirmation wait for providers that delete asynchronously.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Mapping, Optional, Sequence

from cloudsweep.errors import ConfirmationTimeoutError, DeletionError, RunCancelledError
from cloudsweep.models.batch_job import BatchJob
from cloudsweep.models.deletion_outcome import DeletionOutcome, OutcomeStatus
from cloudsweep.nuke.waiter import DEFAULT_CONFIRM_TIMEOUT, DEFAULT_POLL_INTERVAL, ConfirmFunc, wait_until_deleted

logger = logging.getLogger(__name__)

DeleteFunc = Callable[[str], None]
# Native bulk delete: identifiers -> per-identifier error (None = deleted)
BulkDeleteFunc = Callable[[Sequence[str]], Mapping[str, Optional[BaseException]]]


class BatchOrchestrator:
    """Bounded-concurrency deletion orchestrator.

    The delete call is issued at most once per identifier per invocation; the
    confirmation wait retries only the read-only status check. Errors are
    collected per identifier and never abort sibling deletions.

    Attributes:
        poll_interval: Seconds between confirmation checks
        confirm_timeout: Maximum seconds to wait for confirmation per identifier
        cancel_event: When set, no further chunk is dispatched (optional)
    """

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize orchestrator.

        Args:
            poll_interval: Seconds between confirmation checks (default: 10)
            confirm_timeout: Confirmation timeout in seconds (default: 300)
            cancel_event: Event aborting the run between chunks (optional)
            sleep: Sleep function used by the confirmation wait
            clock: Monotonic clock used for timeouts and durations
        """
        self.poll_interval = poll_interval
        self.confirm_timeout = confirm_timeout
        self.cancel_event = cancel_event
        self._sleep = sleep
        self._clock = clock

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def nuke(
        self,
        job: BatchJob,
        delete: DeleteFunc,
        confirm_deleted: Optional[ConfirmFunc] = None,
    ) -> list[DeletionOutcome]:
        """Delete every identifier of a job, one delete call per identifier.

        Args:
            job: Batch job to process
            delete: Deletes one identifier, raising on failure
            confirm_deleted: Returns True once an identifier is gone (optional,
                required for providers that delete asynchronously)

        Returns:
            One DeletionOutcome per identifier, in input order

        Raises:
            TooManyResourcesError: If the job exceeds its hard ceiling
            ConfigurationError: If the job is otherwise invalid
        """
        job.validate()
        if not job.identifiers:
            logger.debug(f"No {job.resource_type} to nuke")
            return []

        logger.info(f"Deleting {len(job.identifiers)} {job.resource_type}")
        outcomes: dict[str, DeletionOutcome] = {}
        lock = threading.Lock()

        def run_worker(identifier: str) -> None:
            outcome = self._delete_one(job.resource_type, identifier, delete, confirm_deleted)
            with lock:
                outcomes[identifier] = outcome

        with self._pool(job) as pool:
            for chunk in self._dispatchable_chunks(job, outcomes, lock):
                self._wait_for(pool.submit(run_worker, identifier) for identifier in chunk)

        return self._collect(job, outcomes)

    def nuke_bulk(
        self,
        job: BatchJob,
        bulk_delete: BulkDeleteFunc,
        confirm_deleted: Optional[ConfirmFunc] = None,
    ) -> list[DeletionOutcome]:
        """Delete every identifier of a job using a native bulk delete call.

        One bulk call is issued per chunk. Its per-item response becomes one
        outcome per identifier; identifiers missing from the response are
        failed, and a bulk call that raises fails its whole chunk.

        Args:
            job: Batch job to process
            bulk_delete: Deletes a chunk, returning an error (or None) per identifier
            confirm_deleted: Returns True once an identifier is gone (optional)

        Returns:
            One DeletionOutcome per identifier, in input order

        Raises:
            TooManyResourcesError: If the job exceeds its hard ceiling
            ConfigurationError: If the job is otherwise invalid
        """
        job.validate()
        if not job.identifiers:
            logger.debug(f"No {job.resource_type} to nuke")
            return []

        logger.info(f"Deleting {len(job.identifiers)} {job.resource_type} in bulk")
        outcomes: dict[str, DeletionOutcome] = {}
        lock = threading.Lock()

        def confirm_worker(identifier: str, started: float) -> None:
            outcome = self._confirm_one(job.resource_type, identifier, confirm_deleted, started)
            with lock:
                outcomes[identifier] = outcome

        with self._pool(job) as pool:
            for chunk in self._dispatchable_chunks(job, outcomes, lock):
                started = self._clock()
                try:
                    response = dict(bulk_delete(list(chunk)) or {})
                except Exception as e:
                    logger.error(f"[Failed] {job.resource_type} bulk delete of {len(chunk)}: {e}")
                    response = {identifier: e for identifier in chunk}

                to_confirm = []
                for identifier in chunk:
                    if identifier not in response:
                        error: Optional[BaseException] = DeletionError(identifier, "no result reported by bulk delete")
                    else:
                        error = response[identifier]

                    if error is not None:
                        with lock:
                            outcomes[identifier] = self._failure(job.resource_type, identifier, error, started)
                    else:
                        to_confirm.append(identifier)

                self._wait_for(pool.submit(confirm_worker, identifier, started) for identifier in to_confirm)

        return self._collect(job, outcomes)

    def _delete_one(
        self,
        resource_type: str,
        identifier: str,
        delete: DeleteFunc,
        confirm_deleted: Optional[ConfirmFunc],
    ) -> DeletionOutcome:
        """Delete and optionally confirm one identifier. Never raises Exception."""
        started = self._clock()
        try:
            delete(identifier)
        except Exception as e:
            return self._failure(resource_type, identifier, e, started)

        return self._confirm_one(resource_type, identifier, confirm_deleted, started)

    def _confirm_one(
        self,
        resource_type: str,
        identifier: str,
        confirm_deleted: Optional[ConfirmFunc],
        started: float,
    ) -> DeletionOutcome:
        if confirm_deleted is not None:
            try:
                wait_until_deleted(
                    identifier,
                    confirm_deleted,
                    poll_interval=self.poll_interval,
                    timeout=self.confirm_timeout,
                    sleep=self._sleep,
                    clock=self._clock,
                )
            except Exception as e:
                return self._failure(resource_type, identifier, e, started)

        logger.debug(f"[OK] Deleted {resource_type}: {identifier}")
        return DeletionOutcome(
            identifier=identifier,
            status=OutcomeStatus.SUCCEEDED,
            resource_type=resource_type,
            duration_seconds=self._clock() - started,
        )

    def _failure(
        self,
        resource_type: str,
        identifier: str,
        error: BaseException,
        started: float,
    ) -> DeletionOutcome:
        if isinstance(error, ConfirmationTimeoutError):
            status = OutcomeStatus.TIMED_OUT
        else:
            status = OutcomeStatus.FAILED

        logger.error(f"[Failed] {resource_type} {identifier}: {error}")
        return DeletionOutcome(
            identifier=identifier,
            status=status,
            error=error,
            resource_type=resource_type,
            duration_seconds=self._clock() - started,
        )

    def _pool(self, job: BatchJob) -> ThreadPoolExecutor:
        workers = min(job.max_concurrency, len(job.identifiers))
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"nuke-{job.resource_type}")

    def _dispatchable_chunks(self, job: BatchJob, outcomes: dict[str, DeletionOutcome], lock: threading.Lock):
        """Yield chunks until the run is cancelled, then cancel what is left."""
        chunks = list(job.chunks())
        for index, chunk in enumerate(chunks):
            if self.cancelled:
                remaining = [identifier for rest in chunks[index:] for identifier in rest]
                logger.warning(f"Run cancelled, skipping {len(remaining)} {job.resource_type}")
                with lock:
                    for identifier in remaining:
                        outcomes[identifier] = DeletionOutcome(
                            identifier=identifier,
                            status=OutcomeStatus.CANCELLED,
                            error=RunCancelledError(identifier),
                            resource_type=job.resource_type,
                        )
                return
            logger.debug(f"Dispatching chunk {index + 1}/{len(chunks)} of {job.resource_type} ({len(chunk)})")
            yield chunk

    @staticmethod
    def _wait_for(futures) -> None:
        pending: list[Future] = list(futures)
        wait(pending)
        for future in pending:
            # Workers catch Exception themselves, anything surfacing here is a bug
            future.result()

    @staticmethod
    def _collect(job: BatchJob, outcomes: dict[str, DeletionOutcome]) -> list[DeletionOutcome]:
        missing = [identifier for identifier in job.identifiers if identifier not in outcomes]
        if missing:
            raise RuntimeError(f"No outcome recorded for {len(missing)} {job.resource_type}: {missing}")

        succeeded = sum(1 for outcome in outcomes.values() if outcome.deleted)
        logger.info(f"[OK] {succeeded} of {len(job.identifiers)} {job.resource_type} deleted")
        return [outcomes[identifier] for identifier in job.identifiers]
