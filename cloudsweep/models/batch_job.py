"""Batch job model.

One orchestrator invocation: the identifiers of a single resource type plus
the limits they must be deleted under.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from cloudsweep.errors import ConfigurationError, TooManyResourcesError

DEFAULT_MAX_BATCH_SIZE = 10
DEFAULT_MAX_CONCURRENCY = 10
# Circuit breaker against provider rate limiting
DEFAULT_HARD_CEILING = 100


@dataclass(frozen=True)
class BatchJob:
    """Batch job entity.

    Validation rules:
        - max_batch_size, max_concurrency and hard_ceiling must be positive
        - identifiers must be unique and non-empty
        - len(identifiers) must not exceed hard_ceiling (never truncated)

    Attributes:
        resource_type: Resource type name (e.g. "nat-gateway")
        identifiers: Ordered identifiers to delete
        max_batch_size: Largest chunk dispatched at once
        max_concurrency: Worker pool size
        hard_ceiling: Maximum identifiers per orchestrator invocation
    """

    resource_type: str
    identifiers: Sequence[str]
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    hard_ceiling: int = DEFAULT_HARD_CEILING

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifiers", tuple(self.identifiers))

    def validate(self) -> bool:
        """Validate job invariants.

        Returns:
            True if validation passes

        Raises:
            TooManyResourcesError: If identifiers exceed the hard ceiling
            ConfigurationError: If any other validation rule fails
        """
        for name in ("max_batch_size", "max_concurrency", "hard_ceiling"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be positive for {self.resource_type}")

        if len(self.identifiers) > self.hard_ceiling:
            raise TooManyResourcesError(self.resource_type, len(self.identifiers), self.hard_ceiling)

        if any(not identifier for identifier in self.identifiers):
            raise ConfigurationError(f"Empty identifier in {self.resource_type} batch")

        if len(set(self.identifiers)) != len(self.identifiers):
            raise ConfigurationError(f"Duplicate identifiers in {self.resource_type} batch")

        return True

    def chunks(self) -> Iterator[tuple[str, ...]]:
        """Yield consecutive chunks of at most max_batch_size identifiers."""
        for start in range(0, len(self.identifiers), self.max_batch_size):
            yield tuple(self.identifiers[start : start + self.max_batch_size])
