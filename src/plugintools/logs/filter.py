"""Reduce a page of server log records to those of one plugin since a given instant."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from .entry import decode_meta, parse_timestamp, sanitize

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PluginLogFilter:
    """Keep records whose ``plugin_id`` matches and whose timestamp is >= ``since``.

    A record that cannot be decoded aborts the whole page: it means the
    server stopped writing JSON logs, and skipping it would hide exactly the
    records the operator asked for.
    """

    def __init__(self, plugin_id: str, since: datetime = EPOCH) -> None:
        if since.tzinfo is None:
            raise ValueError("since must be timezone-aware")
        self.plugin_id = plugin_id
        self.since = since

    def matches(self, line: str) -> bool:
        meta = decode_meta(line)
        if meta.plugin_id != self.plugin_id:
            return False
        # >= so a record stamped exactly at session start is still shown
        return parse_timestamp(meta.timestamp) >= self.since

    def filter(self, logs: Iterable[str]) -> list[str]:
        return [sanitize(line) for line in logs if self.matches(line)]


def filter_entries(logs: Iterable[str] | None, plugin_id: str, since: datetime = EPOCH) -> list[str]:
    """Return the matching subsequence of ``logs``, order preserved."""
    if not logs:
        return []
    return PluginLogFilter(plugin_id, since).filter(logs)
