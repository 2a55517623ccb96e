"""Exception hierarchy for resource deletion.

Configuration-class errors abort an orchestrator call before any mutation.
Everything else is recorded on the per-identifier outcome.
"""

from __future__ import annotations

from typing import Iterable, Optional


class CloudSweepError(Exception):
    """Base class for all cloudsweep errors."""


class ConfigurationError(CloudSweepError):
    """Invalid rule, policy, batch job or configuration file."""


class TooManyResourcesError(ConfigurationError):
    """More identifiers were passed to one orchestrator call than the hard ceiling allows."""

    def __init__(self, resource_type: str, count: int, limit: int) -> None:
        self.resource_type = resource_type
        self.count = count
        self.limit = limit
        super().__init__(f"too many {resource_type} requested at once ({count} > {limit} limit)")


class DeletionError(CloudSweepError):
    """A provider rejected a delete call for a single identifier.

    Attributes:
        identifier: Resource identifier the call was issued for
        error_code: Provider error code when known (e.g. "AccessDenied")
    """

    def __init__(self, identifier: str, message: str, error_code: Optional[str] = None) -> None:
        self.identifier = identifier
        self.error_code = error_code
        prefix = f"{error_code}: " if error_code else ""
        super().__init__(f"{prefix}{message}")


class ConfirmationTimeoutError(CloudSweepError):
    """The provider did not confirm removal within the wait timeout.

    The final state of the resource is unknown.
    """

    def __init__(self, identifier: str, timeout: float) -> None:
        self.identifier = identifier
        self.timeout = timeout
        super().__init__(f"deletion of {identifier} not confirmed after {timeout:g}s")


class RunCancelledError(CloudSweepError):
    """The run was cancelled before the identifier was dispatched."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"run cancelled before {identifier} was dispatched")


class DependencyError(CloudSweepError):
    """Aggregated failures of child resources that block a parent deletion."""

    def __init__(self, parent: str, errors: Iterable[BaseException]) -> None:
        self.parent = parent
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} error(s) tearing down children of {parent}: {details}")
