"""Report renderers: in-memory summary and Rich terminal table."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cloudsweep.models.deletion_outcome import DeletionOutcome, OutcomeStatus
from cloudsweep.models.run_summary import RunSummary
from cloudsweep.reporting.collector import Event, GeneralError, Renderer, ResourceDeleted, ResourceFound

STATUS_STYLES = {
    OutcomeStatus.SUCCEEDED: "[green]deleted[/green]",
    OutcomeStatus.FAILED: "[red]failed[/red]",
    OutcomeStatus.TIMED_OUT: "[orange1]timed out[/orange1]",
    OutcomeStatus.CANCELLED: "[yellow]cancelled[/yellow]",
}


class SummaryRenderer(Renderer):
    """Accumulates events into a RunSummary.

    Attributes:
        summary: Per resource type counts and failure reasons
    """

    def __init__(self) -> None:
        self.summary = RunSummary()

    def on_event(self, event: Event) -> None:
        type_summary = self.summary.for_type(event.resource_type)

        if isinstance(event, ResourceFound):
            type_summary.found_count += 1
            if not event.included:
                type_summary.excluded_count += 1
        elif isinstance(event, ResourceDeleted):
            type_summary.add_outcome(
                DeletionOutcome(
                    identifier=event.identifier,
                    status=event.status,
                    error=None if event.success else RuntimeError(event.error or event.status.value),
                    resource_type=event.resource_type,
                )
            )
        elif isinstance(event, GeneralError):
            type_summary.errors.append(f"{event.description}: {event.error}")

    def render(self) -> None:
        pass


class RichTableRenderer(Renderer):
    """Prints a per-identifier result table and per-type counts using Rich."""

    def __init__(self, console: Optional[Console] = None, max_error_length: int = 80) -> None:
        self.console = console or Console()
        self.max_error_length = max_error_length
        self._summary = SummaryRenderer()
        self._deleted: list[ResourceDeleted] = []
        self._errors: list[GeneralError] = []

    def on_event(self, event: Event) -> None:
        self._summary.on_event(event)
        if isinstance(event, ResourceDeleted):
            self._deleted.append(event)
        elif isinstance(event, GeneralError):
            self._errors.append(event)

    def render(self) -> None:
        summary = self._summary.summary
        if not summary.resource_types:
            self.console.print("No resources found.")
            return

        if self._deleted:
            table = Table(title="Deletion Results")
            table.add_column("Identifier")
            table.add_column("Resource Type")
            table.add_column("Result", style="bold")
            table.add_column("Error")
            for event in self._deleted:
                table.add_row(
                    escape(event.identifier),
                    event.resource_type,
                    STATUS_STYLES[event.status],
                    escape(self._truncate(event.error)),
                )
            self.console.print(table)

        counts = Table(title="Summary")
        counts.add_column("Resource Type")
        for column in ("Found", "Excluded", "Deleted", "Failed", "Timed Out", "Cancelled"):
            counts.add_column(column, justify="right")
        for resource_type, type_summary in sorted(summary.resource_types.items()):
            counts.add_row(
                resource_type,
                str(type_summary.found_count),
                str(type_summary.excluded_count),
                str(type_summary.succeeded_count),
                str(type_summary.failed_count),
                str(type_summary.timed_out_count),
                str(type_summary.cancelled_count),
            )
        self.console.print(counts)

        for error in self._errors:
            description = escape(error.description)
            self.console.print(f"[red]✗[/red] {error.resource_type}: {description}: {escape(error.error)}")

        self.console.print(f"Run status: [bold]{summary.status.value}[/bold]")

    def _truncate(self, text: Optional[str]) -> str:
        if not text:
            return ""
        if len(text) > self.max_error_length:
            return text[: self.max_error_length - 3] + "..."
        return text
