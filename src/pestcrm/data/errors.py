"""Exceptions raised while loading or validating calendar data."""

from __future__ import annotations


class DataFetchError(ConnectionError):
    """A query against the data API failed or the API is not configured."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"Failed to load {source}: {message}")
        self.source = source


class InvariantViolation(ValueError):
    """A record breaks a domain invariant and must be left out of the totals."""

    def __init__(self, record_id: str | None, message: str) -> None:
        super().__init__(f"{message} (record {record_id or 'unknown'})")
        self.record_id = record_id
