"""Report collector.

Receives found/deleted/error events from a run and routes them to renderers.
The collector is passed explicitly to whoever produces events; there is no
process-wide report state.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from cloudsweep.models.deletion_outcome import DeletionOutcome, OutcomeStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceFound:
    """A listed candidate and the policy decision taken for it."""

    resource_type: str
    identifier: str
    included: bool
    reason: str = ""


@dataclass(frozen=True)
class ResourceDeleted:
    """Deletion result of one identifier."""

    resource_type: str
    identifier: str
    status: OutcomeStatus
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


@dataclass(frozen=True)
class GeneralError:
    """An error not tied to one identifier (e.g. a listing failure)."""

    resource_type: str
    description: str
    error: str


Event = Union[ResourceFound, ResourceDeleted, GeneralError]


class Renderer(ABC):
    """Processes events and produces output."""

    @abstractmethod
    def on_event(self, event: Event) -> None:
        """Called for each event, serialized by the collector."""

    @abstractmethod
    def render(self) -> None:
        """Called once at the end to produce final output."""


class ReportCollector:
    """Routes events to renderers.

    Event emission is serialized, so renderers need no locking of their own.
    """

    def __init__(self, renderers: Optional[Iterable[Renderer]] = None) -> None:
        self._lock = threading.Lock()
        self._renderers: list[Renderer] = list(renderers or [])
        self._closed = False

    def add_renderer(self, renderer: Optional[Renderer]) -> None:
        if renderer is None:
            return
        with self._lock:
            self._renderers.append(renderer)

    def record_found(self, resource_type: str, identifier: str, included: bool, reason: str = "") -> None:
        self._emit(ResourceFound(resource_type, identifier, included, reason))

    def record_outcome(self, outcome: DeletionOutcome, resource_type: Optional[str] = None) -> None:
        """Record one deletion outcome."""
        self._emit(
            ResourceDeleted(
                resource_type=resource_type or outcome.resource_type or "unknown",
                identifier=outcome.identifier,
                status=outcome.status,
                error=outcome.error_message,
            )
        )

    def record_outcomes(self, outcomes: Iterable[DeletionOutcome], resource_type: Optional[str] = None) -> None:
        for outcome in outcomes:
            self.record_outcome(outcome, resource_type)

    def record_error(self, resource_type: str, description: str, error: BaseException) -> None:
        self._emit(GeneralError(resource_type, description, str(error)))

    def complete(self) -> None:
        """Mark collection as finished and render final output.

        Safe to call multiple times; later calls are no-ops.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            renderers = list(self._renderers)

        for renderer in renderers:
            renderer.render()

    def _emit(self, event: Event) -> None:
        with self._lock:
            if self._closed:
                logger.debug(f"Dropping event after completion: {event}")
                return
            for renderer in self._renderers:
                renderer.on_event(event)
