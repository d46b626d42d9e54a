"""Plugin administration on a running server: deploy, enable, disable, reset."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Protocol

from .errors import ErrorKind, PluginctlError

logger = logging.getLogger(__name__)


class PluginAdmin(Protocol):
    def upload_plugin_forced(self, bundle: BinaryIO, filename: str = ...) -> dict[str, Any]: ...

    def enable_plugin(self, plugin_id: str) -> None: ...

    def disable_plugin(self, plugin_id: str) -> None: ...


def deploy(client: PluginAdmin, plugin_id: str, bundle_path: Path) -> None:
    """Upload a bundle and enable the plugin.

    Fails if plugin uploads are disabled on the server.
    """
    try:
        bundle = bundle_path.open("rb")
    except OSError as exc:
        raise PluginctlError(ErrorKind.CONFIG_INVALID, f"failed to open {bundle_path}") from exc

    with bundle:
        logger.info("Uploading plugin via API.")
        client.upload_plugin_forced(bundle, filename=bundle_path.name)

    enable_plugin(client, plugin_id)


def enable_plugin(client: PluginAdmin, plugin_id: str) -> None:
    logger.info("Enabling plugin.")
    client.enable_plugin(plugin_id)


def disable_plugin(client: PluginAdmin, plugin_id: str) -> None:
    logger.info("Disabling plugin.")
    client.disable_plugin(plugin_id)


def reset_plugin(client: PluginAdmin, plugin_id: str) -> None:
    """Disable then re-enable; stops at the first failure."""
    disable_plugin(client, plugin_id)
    enable_plugin(client, plugin_id)
