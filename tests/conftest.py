"""Shared pytest fixtures for pluginctl tests."""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

PLUGIN_ID = "some.plugin.id"


def format_timestamp(ts: datetime) -> str:
    """Render ``ts`` the way the server stamps its JSON log records."""
    offset = ts.strftime("%z")
    return ts.strftime("%Y-%m-%d %H:%M:%S.") + f"{ts.microsecond // 1000:03d} {offset[:3]}:{offset[3:]}"


def make_record(message: str, ts: datetime, plugin_id: str | None = PLUGIN_ID) -> str:
    entry: dict[str, Any] = {"timestamp": format_timestamp(ts), "level": "info", "msg": message}
    if plugin_id is not None:
        entry["plugin_id"] = plugin_id
    return json.dumps(entry)


class FakeServer:
    """In-memory stand-in for MattermostClient.

    ``pages`` maps a page number to its records; each ``get_logs`` call is
    recorded in ``calls``.
    """

    def __init__(self, pages: dict[int, list[str]] | None = None, file_json: Any = True) -> None:
        self.pages: dict[int, list[str]] = pages or {}
        self.config: dict[str, Any] = {"LogSettings": {"FileJson": file_json}}
        self.calls: list[tuple[int, int]] = []
        self.actions: list[tuple[str, str]] = []
        self.closed = False

    def get_config(self) -> dict[str, Any]:
        return self.config

    def get_logs(self, page: int, per_page: int) -> list[str]:
        self.calls.append((page, per_page))
        return list(self.pages.get(page, []))

    def upload_plugin_forced(self, bundle: Any, filename: str = "plugin.tar.gz") -> dict[str, Any]:
        self.actions.append(("upload", bundle.read().decode()))
        return {}

    def enable_plugin(self, plugin_id: str) -> None:
        self.actions.append(("enable", plugin_id))

    def disable_plugin(self, plugin_id: str) -> None:
        self.actions.append(("disable", plugin_id))

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeServer":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class ListSink:
    def __init__(self) -> None:
        self.records: list[str] = []

    def write(self, records: list[str]) -> None:
        self.records.extend(records)


@pytest.fixture()
def now() -> datetime:
    return datetime(2023, 12, 18, 10, 58, 53, 91000, tzinfo=timezone(timedelta(hours=1)))


@pytest.fixture()
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture()
def sink() -> ListSink:
    return ListSink()
