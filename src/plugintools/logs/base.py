"""Protocols for what the log follower consumes (duck-typed, no inheritance required)."""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LogServer(Protocol):
    """The two server operations the follower needs."""

    def get_config(self) -> dict[str, Any]:
        """Return the server configuration document."""
        ...

    def get_logs(self, page: int, per_page: int) -> list[str]:
        """Return one page of raw log records, oldest first within the page."""
        ...


@runtime_checkable
class RecordSink(Protocol):
    def write(self, records: list[str]) -> None:
        """Write records in the given order."""
        ...
