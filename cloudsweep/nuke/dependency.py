"""Dependency resolution for deletion ordering.

Two pieces live here:

* DependencyResolver builds a dependency graph and computes a deletion order
  (dependants first) using Kahn's algorithm. The runner uses it to order
  resource types.
* CompositeTeardown deletes the child sub-resources of a composite parent
  (e.g. node groups and Fargate profiles of an EKS cluster) before the parent
  itself, and can be handed to the orchestrator as an opaque delete operation.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Callable, Iterable, Optional, Sequence

from cloudsweep.errors import ConfigurationError, DependencyError
from cloudsweep.models.batch_job import DEFAULT_MAX_BATCH_SIZE, DEFAULT_MAX_CONCURRENCY, BatchJob
from cloudsweep.nuke.orchestrator import BatchOrchestrator
from cloudsweep.nuke.waiter import DEFAULT_CONFIRM_TIMEOUT, DEFAULT_POLL_INTERVAL, wait_until_deleted

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Dependency graph construction and deletion ordering.

    Edges point from a child to the parents that may only be deleted after it.
    For example a subnet is a child of its VPC: the subnet is deleted first.

    Attributes:
        graph: Mapping of node -> parents that depend on it being deleted first
    """

    def __init__(self) -> None:
        self.graph: dict[str, list[str]] = {}

    def add_dependency(self, parent: str, child: str) -> None:
        """Record that parent may only be deleted after child.

        Args:
            parent: Node deleted last (e.g. "vpc")
            child: Node deleted first (e.g. "subnet")
        """
        parents = self.graph.setdefault(child, [])
        if parent not in parents:
            parents.append(parent)
        self.graph.setdefault(parent, [])

    def has_cycle(self) -> bool:
        """Return True if the graph contains a circular dependency."""
        visiting: set[str] = set()
        done: set[str] = set()

        def visit(node: str) -> bool:
            if node in done:
                return False
            if node in visiting:
                return True
            visiting.add(node)
            for parent in self.graph.get(node, []):
                if visit(parent):
                    return True
            visiting.discard(node)
            done.add(node)
            return False

        return any(visit(node) for node in list(self.graph))

    def compute_deletion_order(self, nodes: Iterable[str]) -> list[str]:
        """Compute a deletion order where every child precedes its parents.

        Edges to nodes outside the given collection are ignored. Independent
        nodes keep their input order.

        Args:
            nodes: Nodes to order

        Returns:
            Nodes in deletion order

        Raises:
            ValueError: If the nodes contain a circular dependency
        """
        tiers = self.get_deletion_tiers(nodes)
        return [node for tier in sorted(tiers) for node in tiers[tier]]

    def get_deletion_tiers(self, nodes: Iterable[str]) -> dict[int, list[str]]:
        """Group nodes into tiers that can be deleted together.

        Tier 1 holds nodes nothing else has to wait for; tier N+1 holds nodes
        whose children are all in tiers 1..N.

        Args:
            nodes: Nodes to group

        Returns:
            Mapping of tier number (starting at 1) -> nodes

        Raises:
            ValueError: If the nodes contain a circular dependency
        """
        ordered = list(dict.fromkeys(nodes))
        members = set(ordered)

        pending_children = {node: 0 for node in ordered}
        for child in ordered:
            for parent in self.graph.get(child, []):
                if parent in members:
                    pending_children[parent] += 1

        tiers: dict[int, list[str]] = {}
        current = [node for node in ordered if pending_children[node] == 0]
        placed = 0
        tier = 1

        while current:
            tiers[tier] = current
            placed += len(current)
            ready = []
            for child in current:
                for parent in self.graph.get(child, []):
                    if parent not in members:
                        continue
                    pending_children[parent] -= 1
                    if pending_children[parent] == 0:
                        ready.append(parent)
            # Keep input order inside a tier
            current = [node for node in ordered if node in set(ready)]
            tier += 1

        if placed != len(ordered):
            stuck = sorted(node for node, count in pending_children.items() if count > 0)
            raise ValueError(f"Circular dependency detected among: {', '.join(stuck)}")

        return tiers


class TeardownState(Enum):
    """Composite teardown states.

    State transitions:
        pending → children_deleting → children_confirmed → parent_deleting → parent_confirmed
        any state → failed (a required step errored or timed out)
    """

    PENDING = "pending"
    CHILDREN_DELETING = "children_deleting"
    CHILDREN_CONFIRMED = "children_confirmed"
    PARENT_DELETING = "parent_deleting"
    PARENT_CONFIRMED = "parent_confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class ChildKind:
    """One kind of child resource belonging to a composite parent.

    Attributes:
        name: Child kind name used in logs (e.g. "nodegroup")
        list_children: Returns the child identifiers of a parent
        delete: Deletes one child, called as delete(parent_id, child_id)
        confirm_deleted: Returns True once a child is gone (optional)
        sequential: Provider disallows concurrent mutation of this kind
        max_concurrency: Worker pool size when not sequential
        max_batch_size: Chunk size when not sequential
    """

    name: str
    list_children: Callable[[str], Iterable[str]]
    delete: Callable[[str, str], None]
    confirm_deleted: Optional[Callable[[str, str], bool]] = None
    sequential: bool = False
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be positive for child kind {self.name}")
        if self.max_batch_size < 1:
            raise ConfigurationError(f"max_batch_size must be positive for child kind {self.name}")


@dataclass
class TeardownResult:
    """Result of tearing down one composite parent."""

    parent_id: str
    state: TeardownState = TeardownState.PENDING
    error: Optional[BaseException] = None
    history: list[TeardownState] = field(default_factory=lambda: [TeardownState.PENDING])

    @property
    def succeeded(self) -> bool:
        return self.state == TeardownState.PARENT_CONFIRMED

    def advance(self, state: TeardownState) -> None:
        self.state = state
        self.history.append(state)

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.advance(TeardownState.FAILED)


class CompositeTeardown:
    """Children-before-parent teardown of a composite resource.

    Independent child kinds are torn down concurrently; each kind deletes its
    children under the orchestrator's bounded concurrency, or strictly one at a
    time (confirmed before the next) when the kind is sequential. Child errors
    are aggregated into a single DependencyError and block the parent delete.
    """

    def __init__(
        self,
        resource_type: str,
        child_kinds: Sequence[ChildKind],
        delete_parent: Callable[[str], None],
        confirm_parent: Optional[Callable[[str], bool]] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.resource_type = resource_type
        self.child_kinds = list(child_kinds)
        self.delete_parent = delete_parent
        self.confirm_parent = confirm_parent
        self.poll_interval = poll_interval
        self.confirm_timeout = confirm_timeout
        self._sleep = sleep
        self._clock = clock

    def delete(self, parent_id: str) -> None:
        """Tear down a parent, raising its failure reason if it did not complete.

        Lets a CompositeTeardown be passed to BatchOrchestrator.nuke() as the
        delete operation.
        """
        result = self.teardown(parent_id)
        if not result.succeeded:
            raise result.error

    def teardown(self, parent_id: str) -> TeardownResult:
        """Delete all children of a parent, then the parent itself.

        Args:
            parent_id: Parent resource identifier

        Returns:
            TeardownResult in parent_confirmed or failed state
        """
        result = TeardownResult(parent_id=parent_id)
        result.advance(TeardownState.CHILDREN_DELETING)

        errors = self._delete_children(parent_id)
        if errors:
            logger.error(f"[Failed] {self.resource_type} {parent_id}: {len(errors)} child deletion error(s)")
            result.fail(DependencyError(parent_id, errors))
            return result
        result.advance(TeardownState.CHILDREN_CONFIRMED)

        result.advance(TeardownState.PARENT_DELETING)
        try:
            self.delete_parent(parent_id)
            if self.confirm_parent is not None:
                self._wait(parent_id, self.confirm_parent)
        except Exception as e:
            logger.debug(f"[Failed] Failed deleting {self.resource_type} {parent_id}: {e}")
            result.fail(e)
            return result

        result.advance(TeardownState.PARENT_CONFIRMED)
        logger.debug(f"Deleted {self.resource_type} {parent_id} and all of its children")
        return result

    def _delete_children(self, parent_id: str) -> list[BaseException]:
        if not self.child_kinds:
            return []

        errors: list[BaseException] = []
        with ThreadPoolExecutor(
            max_workers=len(self.child_kinds), thread_name_prefix=f"teardown-{self.resource_type}"
        ) as pool:
            futures = [pool.submit(self._delete_kind, parent_id, kind) for kind in self.child_kinds]
            for future in futures:
                errors.extend(future.result())
        return errors

    def _delete_kind(self, parent_id: str, kind: ChildKind) -> list[BaseException]:
        try:
            children = list(dict.fromkeys(kind.list_children(parent_id)))
        except Exception as e:
            logger.debug(f"[Failed] Unable to list {kind.name} of {self.resource_type} {parent_id}: {e}")
            return [e]

        if not children:
            return []

        logger.debug(f"Deleting {len(children)} {kind.name} of {self.resource_type} {parent_id}")
        if kind.sequential:
            return self._delete_sequentially(parent_id, kind, children)

        confirm = partial(kind.confirm_deleted, parent_id) if kind.confirm_deleted else None
        orchestrator = BatchOrchestrator(
            poll_interval=self.poll_interval,
            confirm_timeout=self.confirm_timeout,
            sleep=self._sleep,
            clock=self._clock,
        )
        job = BatchJob(
            resource_type=f"{self.resource_type}/{kind.name}",
            identifiers=children,
            max_batch_size=kind.max_batch_size,
            max_concurrency=kind.max_concurrency,
            # The provider bounds how many children one parent can have
            hard_ceiling=len(children),
        )
        outcomes = orchestrator.nuke(job, partial(kind.delete, parent_id), confirm)
        return [outcome.error for outcome in outcomes if not outcome.deleted and outcome.error is not None]

    def _delete_sequentially(self, parent_id: str, kind: ChildKind, children: list[str]) -> list[BaseException]:
        # Every child is attempted once even if an earlier one failed
        errors: list[BaseException] = []
        for child in children:
            try:
                kind.delete(parent_id, child)
                if kind.confirm_deleted is not None:
                    self._wait(child, partial(kind.confirm_deleted, parent_id))
            except Exception as e:
                logger.debug(f"[Failed] Failed deleting {kind.name} {child} of {self.resource_type} {parent_id}: {e}")
                errors.append(e)
                continue
            logger.debug(f"Deleted {kind.name} {child} of {self.resource_type} {parent_id}")
        return errors

    def _wait(self, identifier: str, confirm: Callable[[str], bool]) -> None:
        wait_until_deleted(
            identifier,
            confirm,
            poll_interval=self.poll_interval,
            timeout=self.confirm_timeout,
            sleep=self._sleep,
            clock=self._clock,
        )
