"""Shared fixtures for AWS resource tests."""

from __future__ import annotations

from typing import Callable

import pytest
from botocore.exceptions import ClientError


def _client_error(code: str, operation: str = "Operation", message: str = "error") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    """Factory for botocore ClientErrors with a given error code."""
    return _client_error
