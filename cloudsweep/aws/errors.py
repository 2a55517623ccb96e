"""Helpers for botocore ClientError handling."""

from __future__ import annotations

from typing import Iterable

from botocore.exceptions import ClientError

from cloudsweep.errors import DeletionError


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


def error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", str(error))


def is_not_found(error: BaseException, codes: Iterable[str]) -> bool:
    """Return True if error is a ClientError carrying one of the given codes."""
    return isinstance(error, ClientError) and error_code(error) in set(codes)


def to_deletion_error(identifier: str, error: ClientError) -> DeletionError:
    """Convert a ClientError raised by a delete call into a DeletionError."""
    deletion_error = DeletionError(identifier, error_message(error), error_code=error_code(error))
    deletion_error.__cause__ = error
    return deletion_error
