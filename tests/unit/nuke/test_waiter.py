"""Tests for the confirmation waiter."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from cloudsweep.errors import ConfirmationTimeoutError
from cloudsweep.nuke.waiter import wait_until_deleted


class TestWaitUntilDeleted:
    """Test suite for wait_until_deleted."""

    def test_returns_immediately_when_already_deleted(self, clock) -> None:
        """Test no sleep happens when the first check confirms."""
        confirm = Mock(return_value=True)

        wait_until_deleted("nat-001", confirm, poll_interval=10, timeout=300, sleep=clock.sleep, clock=clock)

        confirm.assert_called_once_with("nat-001")
        assert clock.sleeps == []

    def test_polls_until_confirmed(self, clock) -> None:
        """Test checks repeat at the poll interval until True."""
        confirm = Mock(side_effect=[False, False, True])

        wait_until_deleted("nat-001", confirm, poll_interval=10, timeout=300, sleep=clock.sleep, clock=clock)

        assert confirm.call_count == 3
        assert clock.sleeps == [10, 10]

    def test_times_out(self, clock) -> None:
        """Test an always-false check raises after the timeout instead of hanging."""
        confirm = Mock(return_value=False)

        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            wait_until_deleted("nat-001", confirm, poll_interval=10, timeout=25, sleep=clock.sleep, clock=clock)

        assert exc_info.value.identifier == "nat-001"
        assert exc_info.value.timeout == 25
        # Last sleep is clipped to the remaining time
        assert clock.sleeps == [10, 10, 5]
        assert clock.now == 25

    def test_zero_timeout_checks_once(self, clock) -> None:
        """Test a zero timeout still performs one check."""
        confirm = Mock(return_value=False)

        with pytest.raises(ConfirmationTimeoutError):
            wait_until_deleted("x", confirm, poll_interval=10, timeout=0, sleep=clock.sleep, clock=clock)

        confirm.assert_called_once()

    def test_check_errors_propagate(self, clock) -> None:
        """Test errors from the status check are not swallowed."""
        confirm = Mock(side_effect=RuntimeError("throttled"))

        with pytest.raises(RuntimeError, match="throttled"):
            wait_until_deleted("x", confirm, sleep=clock.sleep, clock=clock)
