"""Codec for a single server log record.

Only two fields are ever looked at: ``plugin_id`` and ``timestamp``. The
record text itself is passed through untouched so the tool keeps working as
the server adds fields to its log envelope.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime

from ..errors import ErrorKind, PluginctlError

# Server layout: "2023-12-18 10:58:53.091 +01:00". A UTC server writes "Z"
# in place of the offset.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f %z"
_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3} (?:[+-]\d{2}:\d{2}|Z)$",
    re.ASCII,
)


@dataclass(frozen=True)
class LogMeta:
    plugin_id: str | None
    timestamp: str | None


def parse_timestamp(raw: str | None) -> datetime:
    """Parse a record timestamp into an aware datetime.

    Raises PluginctlError(BAD_TIMESTAMP) for anything but the exact server
    layout, including a missing value.
    """
    if not isinstance(raw, str) or not _TIMESTAMP_RE.match(raw):
        raise PluginctlError(ErrorKind.BAD_TIMESTAMP, f"unknown timestamp format: {raw!r}")
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.strptime(raw, TIMESTAMP_FORMAT)
    except ValueError as exc:
        # e.g. month 13 passes the pattern but not the calendar
        raise PluginctlError(ErrorKind.BAD_TIMESTAMP, f"unknown timestamp format: {raw!r}") from exc


def decode_meta(line: str) -> LogMeta:
    """Extract ``plugin_id`` and the raw ``timestamp`` from a JSON record."""
    try:
        entry = json.loads(line)
    except json.JSONDecodeError as exc:
        raise PluginctlError(ErrorKind.BAD_JSON, "failed to unmarshal log entry into JSON") from exc
    if not isinstance(entry, dict):
        raise PluginctlError(ErrorKind.BAD_JSON, "log entry is not a JSON object")

    fields: dict[str, str | None] = {}
    for name in ("plugin_id", "timestamp"):
        value = entry.get(name)
        # null decodes as absent; any other non-string is a malformed record
        if value is not None and not isinstance(value, str):
            raise PluginctlError(ErrorKind.BAD_JSON, f"log entry field {name!r} is not a string")
        fields[name] = value
    return LogMeta(plugin_id=fields["plugin_id"], timestamp=fields["timestamp"])


def sanitize(line: str) -> str:
    """Drop the single leading newline some server versions prefix records with."""
    if line.startswith("\n"):
        return line[1:]
    return line
