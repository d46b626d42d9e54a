"""Command-line entry points.

pluginctl: administer a plugin on a running Mattermost server:
    pluginctl deploy     <plugin id> <bundle path>   Upload bundle, then enable
    pluginctl enable     <plugin id>                 Enable the plugin
    pluginctl disable    <plugin id>                 Disable the plugin
    pluginctl reset      <plugin id>                 Disable, then enable
    pluginctl logs       <plugin id>                 Print the plugin's recent server logs
    pluginctl logs-watch <plugin id>                 Follow the plugin's server logs

manifest: propagate plugin.json into the server and webapp sources:
    manifest plugin_id | has_server | has_webapp | apply
"""
from __future__ import annotations

import logging
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Any, NoReturn

import click
from rich.console import Console

from .client.api import MattermostClient
from .client.transport import resolve_transport
from .config import Settings
from .errors import PluginctlError
from .logs.follower import follow, tail
from .logs.sink import StreamSink
from .manifest import apply_manifest, find_manifest
from .plugins import deploy as deploy_plugin
from .plugins import disable_plugin, enable_plugin, reset_plugin

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)

COMMAND_TIMEOUT = 120.0

PLUGINCTL_HELP = """
Usage:
    pluginctl deploy <plugin id> <bundle path>
    pluginctl disable <plugin id>
    pluginctl enable <plugin id>
    pluginctl reset <plugin id>
    pluginctl logs <plugin id>
    pluginctl logs-watch <plugin id>
"""

MANIFEST_HELP = """
Usage:
    manifest plugin_id
    manifest has_server
    manifest has_webapp
    manifest apply
"""

# ── Helpers ─────────────────────────────────────────────────────────────────


def _fail(message: str, help_text: str = "") -> NoReturn:
    err_console.print(f"Failed: {message}", markup=False, highlight=False, soft_wrap=True)
    if help_text:
        err_console.print(help_text, markup=False, highlight=False, soft_wrap=True, end="")
    sys.exit(1)


class FixedHelpGroup(click.Group):
    """Command group that renders every failure as ``Failed: ...`` and exits 1.

    Usage errors (unknown command, wrong number of arguments) are followed by
    the group's fixed help text.
    """

    def __init__(self, *args: Any, help_text: str = "", **kwargs: Any) -> None:
        kwargs.setdefault("no_args_is_help", False)
        super().__init__(*args, **kwargs)
        self.help_text = help_text

    def main(self, args: Any = None, prog_name: str | None = None, **extra: Any) -> Any:
        extra["standalone_mode"] = False
        try:
            rv = super().main(args=args, prog_name=prog_name, **extra)
        except click.UsageError as exc:
            _fail(exc.format_message(), self.help_text)
        except PluginctlError as exc:
            _fail(exc.describe())
        except click.Abort:
            _fail("aborted")
        # --help / --version come back as an exit code
        if isinstance(rv, int) and rv:
            sys.exit(rv)
        return rv


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(message)s",
        stream=sys.stderr,
    )


def connect_client(deadline: float | None) -> MattermostClient:
    """Resolve the transport from the environment and open a client."""
    transport = resolve_transport(Settings())
    return MattermostClient.connect(transport, deadline=deadline)


# ── pluginctl ───────────────────────────────────────────────────────────────


@click.group(cls=FixedHelpGroup, help_text=PLUGINCTL_HELP)
@click.version_option(version="1.0.0", prog_name="pluginctl")
@click.pass_context
def main(ctx: click.Context) -> None:
    """pluginctl: deploy and inspect a plugin on a Mattermost server."""
    _configure_logging()
    ctx.obj = {"deadline": time.monotonic() + COMMAND_TIMEOUT}


@main.command()
@click.argument("plugin_id")
@click.argument("bundle_path", type=click.Path(path_type=Path))
@click.pass_obj
def deploy(obj: dict[str, Any], plugin_id: str, bundle_path: Path) -> None:
    """Upload a plugin bundle (replacing any installed version) and enable it."""
    with connect_client(obj["deadline"]) as client:
        deploy_plugin(client, plugin_id, bundle_path)


@main.command()
@click.argument("plugin_id")
@click.pass_obj
def enable(obj: dict[str, Any], plugin_id: str) -> None:
    """Enable the plugin."""
    with connect_client(obj["deadline"]) as client:
        enable_plugin(client, plugin_id)


@main.command()
@click.argument("plugin_id")
@click.pass_obj
def disable(obj: dict[str, Any], plugin_id: str) -> None:
    """Disable the plugin."""
    with connect_client(obj["deadline"]) as client:
        disable_plugin(client, plugin_id)


@main.command()
@click.argument("plugin_id")
@click.pass_obj
def reset(obj: dict[str, Any], plugin_id: str) -> None:
    """Disable and re-enable the plugin."""
    with connect_client(obj["deadline"]) as client:
        reset_plugin(client, plugin_id)


@main.command()
@click.argument("plugin_id")
@click.pass_obj
def logs(obj: dict[str, Any], plugin_id: str) -> None:
    """Print the plugin's entries among the last 500 server log records.

    Requires LogSettings.FileJson to be enabled on the server.
    """
    with connect_client(obj["deadline"]) as client:
        tail(client, plugin_id, StreamSink())


@main.command("logs-watch")
@click.argument("plugin_id")
def logs_watch(plugin_id: str) -> None:
    """Follow the plugin's server logs until interrupted (Ctrl+C).

    Runs without the command deadline.
    """
    cancel = threading.Event()

    def _on_sigterm(signum: int, frame: Any) -> None:
        cancel.set()
        # Same path as Ctrl-C, so an in-flight request is abandoned too
        signal.default_int_handler(signum, frame)

    in_main_thread = threading.current_thread() is threading.main_thread()
    previous = signal.signal(signal.SIGTERM, _on_sigterm) if in_main_thread else None

    try:
        with connect_client(None) as client:
            follow(client, plugin_id, StreamSink(), cancel)
    except KeyboardInterrupt:
        logger.info("Stopped.")
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)


# ── manifest ────────────────────────────────────────────────────────────────


@click.group(cls=FixedHelpGroup, help_text=MANIFEST_HELP)
def manifest_main() -> None:
    """manifest: read plugin.json from the current directory."""
    _configure_logging()


@manifest_main.command("plugin_id")
def plugin_id_cmd() -> None:
    """Print the plugin id."""
    click.echo(find_manifest().id, nl=False)


@manifest_main.command("has_server")
def has_server_cmd() -> None:
    """Print "true" if the plugin has a server component."""
    if find_manifest().has_server():
        click.echo("true", nl=False)


@manifest_main.command("has_webapp")
def has_webapp_cmd() -> None:
    """Print "true" if the plugin has a webapp component."""
    if find_manifest().has_webapp():
        click.echo("true", nl=False)


@manifest_main.command("apply")
def apply_cmd() -> None:
    """Write the plugin id into server/plugin_id.go and webapp/src/plugin_id.js."""
    apply_manifest(find_manifest())


if __name__ == "__main__":
    main()
