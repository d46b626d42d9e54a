"""Tests for the pluginctl and manifest command lines."""
from __future__ import annotations

import json
import os
import signal
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from conftest import PLUGIN_ID, FakeServer, make_record
from plugintools import cli
from plugintools.errors import ErrorKind, PluginctlError


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def connected(monkeypatch: pytest.MonkeyPatch, fake_server: FakeServer) -> list[Any]:
    """Route connect_client to ``fake_server`` and record the deadlines passed."""
    deadlines: list[Any] = []

    def _connect(deadline: float | None) -> FakeServer:
        deadlines.append(deadline)
        return fake_server

    monkeypatch.setattr(cli, "connect_client", _connect)
    return deadlines


def _records(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.startswith("{")]


# ---------------------------------------------------------------------------
# Usage errors
# ---------------------------------------------------------------------------

class TestUsage:
    @pytest.mark.parametrize("args", [
        [],
        ["bogus", PLUGIN_ID],
        ["enable"],
        ["enable", PLUGIN_ID, "extra"],
        ["deploy", PLUGIN_ID],
        ["logs"],
    ])
    def test_prints_fixed_help(self, runner: CliRunner, args: list[str]) -> None:
        result = runner.invoke(cli.main, args)
        assert result.exit_code == 1
        assert "Failed:" in result.output
        assert "pluginctl logs-watch <plugin id>" in result.output

    def test_help_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(cli.main, ["--help"])
        assert result.exit_code == 0
        assert "logs-watch" in result.output


# ---------------------------------------------------------------------------
# Plugin administration
# ---------------------------------------------------------------------------

class TestAdminCommands:
    def test_enable(self, runner: CliRunner, connected: list[Any], fake_server: FakeServer) -> None:
        result = runner.invoke(cli.main, ["enable", PLUGIN_ID])
        assert result.exit_code == 0, result.output
        assert fake_server.actions == [("enable", PLUGIN_ID)]
        assert fake_server.closed
        assert connected[0] is not None

    def test_disable(self, runner: CliRunner, connected: list[Any], fake_server: FakeServer) -> None:
        assert runner.invoke(cli.main, ["disable", PLUGIN_ID]).exit_code == 0
        assert fake_server.actions == [("disable", PLUGIN_ID)]

    def test_reset(self, runner: CliRunner, connected: list[Any], fake_server: FakeServer) -> None:
        assert runner.invoke(cli.main, ["reset", PLUGIN_ID]).exit_code == 0
        assert fake_server.actions == [("disable", PLUGIN_ID), ("enable", PLUGIN_ID)]

    def test_deploy(
        self, runner: CliRunner, connected: list[Any], fake_server: FakeServer, tmp_path: Path
    ) -> None:
        bundle = tmp_path / "demo.tar.gz"
        bundle.write_bytes(b"payload")
        result = runner.invoke(cli.main, ["deploy", PLUGIN_ID, str(bundle)])
        assert result.exit_code == 0, result.output
        assert fake_server.actions == [("upload", "payload"), ("enable", PLUGIN_ID)]

    def test_deploy_missing_bundle(
        self, runner: CliRunner, connected: list[Any], tmp_path: Path
    ) -> None:
        result = runner.invoke(cli.main, ["deploy", PLUGIN_ID, str(tmp_path / "nope.tar.gz")])
        assert result.exit_code == 1
        assert "Failed: invalid configuration: failed to open" in result.output

    def test_configuration_error(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        def _connect(deadline: float | None) -> FakeServer:
            raise PluginctlError(ErrorKind.CONFIG_INVALID, "MM_SERVICESETTINGS_SITEURL is not set")

        monkeypatch.setattr(cli, "connect_client", _connect)
        result = runner.invoke(cli.main, ["enable", PLUGIN_ID])
        assert result.exit_code == 1
        assert "Failed: invalid configuration: MM_SERVICESETTINGS_SITEURL is not set" in result.output


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------

class TestLogsCommands:
    def test_logs_prints_matching_records(
        self, runner: CliRunner, connected: list[Any], fake_server: FakeServer
    ) -> None:
        ts = datetime(2023, 12, 18, 9, 58, 53, tzinfo=timezone.utc)
        mine = make_record("mine", ts)
        other = make_record("other", ts, plugin_id="other.plugin")
        fake_server.pages = {0: ["\n" + mine, other]}

        result = runner.invoke(cli.main, ["logs", PLUGIN_ID])
        assert result.exit_code == 0, result.output
        assert _records(result.output) == [mine]
        assert json.loads(_records(result.output)[0])["msg"] == "mine"
        assert fake_server.calls == [(0, 500)]

    def test_logs_requires_json_logging(
        self, runner: CliRunner, connected: list[Any], fake_server: FakeServer
    ) -> None:
        fake_server.config = {"LogSettings": {"FileJson": False}}
        result = runner.invoke(cli.main, ["logs", PLUGIN_ID])
        assert result.exit_code == 1
        assert "Failed: precondition not met: JSON output for file logs are disabled" in result.output

    def test_logs_bad_record(
        self, runner: CliRunner, connected: list[Any], fake_server: FakeServer
    ) -> None:
        fake_server.pages = {0: ['{"plugin_id": "some.plugin.id", "timestamp": "2023-12-18 10:58:53"}']}
        result = runner.invoke(cli.main, ["logs", PLUGIN_ID])
        assert result.exit_code == 1
        assert "Failed: bad timestamp" in result.output

    def test_logs_watch_has_no_deadline(
        self, runner: CliRunner, connected: list[Any], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        followed: list[str] = []

        def _follow(server: Any, plugin_id: str, sink: Any, cancel: Any) -> None:
            followed.append(plugin_id)
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "follow", _follow)
        result = runner.invoke(cli.main, ["logs-watch", PLUGIN_ID])
        assert result.exit_code == 0, result.output
        assert followed == [PLUGIN_ID]
        assert connected == [None]

    def test_logs_watch_sigterm_aborts_inflight_fetch(
        self, runner: CliRunner, connected: list[Any], fake_server: FakeServer,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _slow_get_logs(page: int, per_page: int) -> list[str]:
            os.kill(os.getpid(), signal.SIGTERM)
            time.sleep(10)
            return []

        monkeypatch.setattr(fake_server, "get_logs", _slow_get_logs)
        handler_before = signal.getsignal(signal.SIGTERM)

        started = time.monotonic()
        result = runner.invoke(cli.main, ["logs-watch", PLUGIN_ID])
        elapsed = time.monotonic() - started

        assert result.exit_code == 0, result.output
        assert elapsed < 5.0
        assert signal.getsignal(signal.SIGTERM) is handler_before

    def test_logs_watch_error(
        self, runner: CliRunner, connected: list[Any], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _follow(server: Any, plugin_id: str, sink: Any, cancel: Any) -> None:
            raise PluginctlError(ErrorKind.TRANSPORT, "failed to get logs from Mattermost")

        monkeypatch.setattr(cli, "follow", _follow)
        result = runner.invoke(cli.main, ["logs-watch", PLUGIN_ID])
        assert result.exit_code == 1
        assert "Failed: transport: failed to get logs from Mattermost" in result.output


# ---------------------------------------------------------------------------
# manifest
# ---------------------------------------------------------------------------

class TestManifestCommands:
    @pytest.fixture()
    def plugin_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        (tmp_path / "plugin.json").write_text(
            json.dumps({"id": "com.example.demo", "server": {"executable": "plugin.exe"}}),
            encoding="utf-8",
        )
        (tmp_path / "server").mkdir()
        monkeypatch.chdir(tmp_path)
        return tmp_path

    def test_plugin_id(self, runner: CliRunner, plugin_root: Path) -> None:
        result = runner.invoke(cli.manifest_main, ["plugin_id"])
        assert result.exit_code == 0
        assert result.output == "com.example.demo"

    def test_has_server(self, runner: CliRunner, plugin_root: Path) -> None:
        assert runner.invoke(cli.manifest_main, ["has_server"]).output == "true"

    def test_has_webapp(self, runner: CliRunner, plugin_root: Path) -> None:
        result = runner.invoke(cli.manifest_main, ["has_webapp"])
        assert result.exit_code == 0
        assert result.output == ""

    def test_apply(self, runner: CliRunner, plugin_root: Path) -> None:
        result = runner.invoke(cli.manifest_main, ["apply"])
        assert result.exit_code == 0, result.output
        assert 'const PluginId = "com.example.demo"' in (plugin_root / "server" / "plugin_id.go").read_text()

    def test_unknown_command(self, runner: CliRunner, plugin_root: Path) -> None:
        result = runner.invoke(cli.manifest_main, ["explode"])
        assert result.exit_code == 1
        assert "manifest apply" in result.output

    def test_missing_manifest(self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli.manifest_main, ["plugin_id"])
        assert result.exit_code == 1
        assert "Failed: invalid configuration: failed to find manifest" in result.output
