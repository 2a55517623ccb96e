"""Deletion outcome model.

Result of the deletion attempt for a single identifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutcomeStatus(Enum):
    """Individual identifier deletion status."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DeletionOutcome:
    """Deletion outcome entity.

    The orchestrator produces exactly one outcome per identifier it was asked to
    process.

    Validation rules:
        - status=succeeded: no error
        - any other status: requires error

    Attributes:
        identifier: Resource identifier
        status: Deletion result
        error: Failure reason (optional)
        resource_type: Resource type the identifier belongs to (optional)
        duration_seconds: Time spent on delete and confirmation (optional)
    """

    identifier: str
    status: OutcomeStatus
    error: Optional[BaseException] = None
    resource_type: Optional[str] = None
    duration_seconds: Optional[float] = None

    @property
    def deleted(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return str(self.error) or type(self.error).__name__

    def validate(self) -> bool:
        """Validate outcome invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status == OutcomeStatus.SUCCEEDED:
            if self.error is not None:
                raise ValueError("Succeeded status cannot have an error")
        elif self.error is None:
            raise ValueError(f"{self.status.value} status requires an error")

        return True
