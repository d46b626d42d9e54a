"""Plugin manifest (``plugin.json``) loading and propagation of the plugin id.

The manifest is decoded strictly: unknown fields are rejected so that
nothing the model does not know about can be silently dropped.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from .errors import ErrorKind, PluginctlError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "plugin.json"

SERVER_PLUGIN_ID_PATH = Path("server") / "plugin_id.go"
WEBAPP_PLUGIN_ID_PATH = Path("webapp") / "src" / "plugin_id.js"

PLUGIN_ID_GO_TEMPLATE = """package main

const PluginId = "{id}"
"""

PLUGIN_ID_JS_TEMPLATE = """export default '{id}';
"""


class ServerManifest(BaseModel):
    class Config:
        extra = "forbid"

    executables: dict[str, str] | None = None
    executable: str | None = None


class WebappManifest(BaseModel):
    class Config:
        extra = "forbid"

    bundle_path: str | None = None
    bundle_hash: str | None = None


class Manifest(BaseModel):
    """The subset of the server's plugin manifest the build tooling understands."""

    class Config:
        extra = "forbid"

    id: str
    name: str | None = None
    description: str | None = None
    homepage_url: str | None = None
    support_url: str | None = None
    release_notes_url: str | None = None
    icon_path: str | None = None
    version: str | None = None
    min_server_version: str | None = None
    requires_configuration: bool | None = None
    server: ServerManifest | None = None
    webapp: WebappManifest | None = None
    settings_schema: dict[str, Any] | None = None
    props: dict[str, Any] | None = None

    def has_server(self) -> bool:
        return self.server is not None

    def has_webapp(self) -> bool:
        return self.webapp is not None


def find_manifest(directory: Path = Path(".")) -> Manifest:
    """Load and strictly validate ``plugin.json`` from ``directory``."""
    path = directory / MANIFEST_FILENAME
    if not path.is_file():
        raise PluginctlError(
            ErrorKind.CONFIG_INVALID,
            f"failed to find manifest in {directory.resolve()}",
        )
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise PluginctlError(ErrorKind.CONFIG_INVALID, f"failed to open {path}") from exc
    except json.JSONDecodeError as exc:
        raise PluginctlError(ErrorKind.CONFIG_INVALID, "failed to parse manifest") from exc

    try:
        return Manifest.model_validate(raw)
    except ValidationError as exc:
        raise PluginctlError(ErrorKind.CONFIG_INVALID, "failed to parse manifest") from exc


def apply_manifest(manifest: Manifest, root: Path = Path(".")) -> list[Path]:
    """Write the plugin id constant into the server and webapp sources.

    Only the components the manifest declares are touched. Returns the paths
    written.
    """
    written: list[Path] = []
    targets = [
        (manifest.has_server(), SERVER_PLUGIN_ID_PATH, PLUGIN_ID_GO_TEMPLATE),
        (manifest.has_webapp(), WEBAPP_PLUGIN_ID_PATH, PLUGIN_ID_JS_TEMPLATE),
    ]
    for wanted, rel_path, template in targets:
        if not wanted:
            continue
        path = root / rel_path
        try:
            path.write_text(template.format(id=manifest.id), encoding="utf-8")
        except OSError as exc:
            raise PluginctlError(ErrorKind.CONFIG_INVALID, f"failed to write {rel_path}") from exc
        logger.debug("Wrote plugin id to %s", path)
        written.append(path)
    return written
