"""Tests for ReportCollector."""

from __future__ import annotations

import threading
from unittest.mock import Mock

from cloudsweep.errors import ConfirmationTimeoutError
from cloudsweep.models.deletion_outcome import DeletionOutcome, OutcomeStatus
from cloudsweep.reporting.collector import GeneralError, ReportCollector, ResourceDeleted, ResourceFound


class TestReportCollector:
    """Test suite for ReportCollector."""

    def test_events_routed_to_every_renderer(self) -> None:
        """Test each renderer receives each event."""
        first, second = Mock(), Mock()
        collector = ReportCollector([first])
        collector.add_renderer(second)
        collector.add_renderer(None)

        collector.record_found("nat-gateway", "nat-001", True, "included by default")

        expected = ResourceFound("nat-gateway", "nat-001", True, "included by default")
        first.on_event.assert_called_once_with(expected)
        second.on_event.assert_called_once_with(expected)

    def test_record_outcome(self) -> None:
        """Test outcomes become ResourceDeleted events with error text."""
        renderer = Mock()
        collector = ReportCollector([renderer])

        collector.record_outcome(
            DeletionOutcome(
                identifier="nat-001",
                status=OutcomeStatus.TIMED_OUT,
                error=ConfirmationTimeoutError("nat-001", 300),
                resource_type="nat-gateway",
            )
        )

        event = renderer.on_event.call_args.args[0]
        assert event == ResourceDeleted(
            "nat-gateway", "nat-001", OutcomeStatus.TIMED_OUT, "deletion of nat-001 not confirmed after 300s"
        )
        assert event.success is False

    def test_record_outcomes_with_explicit_type(self) -> None:
        """Test an explicit resource type wins over the outcome's."""
        renderer = Mock()
        collector = ReportCollector([renderer])

        collector.record_outcomes(
            [DeletionOutcome(identifier="a", status=OutcomeStatus.SUCCEEDED)], resource_type="cloudwatch-dashboard"
        )

        event = renderer.on_event.call_args.args[0]
        assert event.resource_type == "cloudwatch-dashboard"
        assert event.success is True

    def test_record_error(self) -> None:
        """Test general errors carry the error text."""
        renderer = Mock()
        collector = ReportCollector([renderer])

        collector.record_error("ec2", "Unable to list ec2", RuntimeError("AccessDenied"))

        renderer.on_event.assert_called_once_with(GeneralError("ec2", "Unable to list ec2", "AccessDenied"))

    def test_complete_is_idempotent(self) -> None:
        """Test renderers render once and later events are dropped."""
        renderer = Mock()
        collector = ReportCollector([renderer])

        collector.complete()
        collector.complete()
        collector.record_found("x", "a", True)

        renderer.render.assert_called_once()
        renderer.on_event.assert_not_called()

    def test_concurrent_emission_is_serialized(self) -> None:
        """Test events from many threads are delivered one at a time."""
        lock = threading.Lock()
        active = 0
        peak = 0
        count = 0

        def on_event(event) -> None:
            nonlocal active, peak, count
            with lock:
                active += 1
                peak = max(peak, active)
                count += 1
            with lock:
                active -= 1

        renderer = Mock()
        renderer.on_event.side_effect = on_event
        collector = ReportCollector([renderer])

        threads = [
            threading.Thread(target=lambda i=i: collector.record_found("x", f"id-{i}", True)) for i in range(20)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert count == 20
        assert peak == 1
