"""Capability interface implemented once per resource type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Optional, Sequence

from cloudsweep.models.batch_job import DEFAULT_HARD_CEILING, DEFAULT_MAX_BATCH_SIZE, DEFAULT_MAX_CONCURRENCY
from cloudsweep.models.candidate import Candidate


class NukeableResource(ABC):
    """Abstract base class for all nukeable resource types.

    Each resource type should:
    1. Have a unique resource_type name
    2. List live resources as Candidates
    3. Delete a single identifier, raising on failure
    4. Override confirm_deleted() and set confirms_deletion when the provider
       deletes asynchronously, or override bulk_delete() and set
       supports_bulk_delete when the provider has a native bulk call

    The orchestrator and policy engine depend only on this interface.
    """

    # Resource types whose instances must be deleted before this one
    deleted_after: tuple[str, ...] = ()

    confirms_deletion: bool = False
    supports_bulk_delete: bool = False

    @property
    @abstractmethod
    def resource_type(self) -> str:
        """Unique resource type name.

        Returns:
            String identifier (e.g., "nat-gateway")
        """

    @property
    def max_batch_size(self) -> int:
        return DEFAULT_MAX_BATCH_SIZE

    @property
    def max_concurrency(self) -> int:
        return DEFAULT_MAX_CONCURRENCY

    @property
    def hard_ceiling(self) -> int:
        return DEFAULT_HARD_CEILING

    @abstractmethod
    def list_candidates(self) -> Iterable[Candidate]:
        """List live resources of this type.

        Returns:
            Candidates for policy evaluation
        """

    @abstractmethod
    def delete(self, identifier: str) -> None:
        """Delete a single resource.

        Args:
            identifier: Resource identifier

        Raises:
            Exception: If the provider rejected the delete call
        """

    def confirm_deleted(self, identifier: str) -> bool:
        """Return True once the provider reports the resource gone."""
        raise NotImplementedError(f"{self.resource_type} does not confirm deletion")

    def bulk_delete(self, identifiers: Sequence[str]) -> Mapping[str, Optional[BaseException]]:
        """Delete several resources in one provider call.

        Returns:
            Mapping of identifier -> error, None meaning deleted
        """
        raise NotImplementedError(f"{self.resource_type} has no bulk delete")
