"""Check that the server writes its file logs as JSON before tailing them."""
from __future__ import annotations

import logging

from ..errors import ErrorKind, PluginctlError
from .base import LogServer

logger = logging.getLogger(__name__)

JSON_LOGS_DISABLED = (
    "JSON output for file logs are disabled. Please enable "
    "LogSettings.FileJson via the configuration in Mattermost."
)


def ensure_json_logs(server: LogServer) -> None:
    """Raise PRECONDITION_NOT_MET unless ``LogSettings.FileJson`` is true.

    The setting is nullable on the server; both a missing value and ``false``
    fail.
    """
    cfg = server.get_config()
    log_settings = cfg.get("LogSettings")
    if not isinstance(log_settings, dict) or log_settings.get("FileJson") is not True:
        raise PluginctlError(ErrorKind.PRECONDITION_NOT_MET, JSON_LOGS_DISABLED)
    logger.debug("Server writes JSON file logs")
