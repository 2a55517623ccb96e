"""Confirmation wait for providers that delete asynchronously.

Polls a read-only status check until the provider reports the resource gone or
a wall-clock timeout elapses. The mutating delete call is never retried here.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from cloudsweep.errors import ConfirmationTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_CONFIRM_TIMEOUT = 300.0

ConfirmFunc = Callable[[str], bool]


def wait_until_deleted(
    identifier: str,
    confirm_deleted: ConfirmFunc,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_CONFIRM_TIMEOUT,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Block until confirm_deleted(identifier) returns True.

    Args:
        identifier: Resource identifier to check
        confirm_deleted: Status check returning True once the resource is gone
        poll_interval: Seconds between checks
        timeout: Maximum seconds to wait
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Raises:
        ConfirmationTimeoutError: If the timeout elapses first
        Exception: Whatever confirm_deleted raises, unchanged
    """
    deadline = clock() + timeout
    attempt = 0

    while True:
        attempt += 1
        if confirm_deleted(identifier):
            logger.debug(f"Deletion of {identifier} confirmed after {attempt} check(s)")
            return

        remaining = deadline - clock()
        if remaining <= 0:
            raise ConfirmationTimeoutError(identifier, timeout)

        logger.debug(f"{identifier} not deleted yet, checking again in {min(poll_interval, remaining):.1f}s")
        sleep(min(poll_interval, remaining))
