"""Print a plugin's server logs once, or follow them until cancelled."""
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable

from .base import LogServer, RecordSink
from .filter import EPOCH, filter_entries
from .pager import Pager
from .preflight import ensure_json_logs

logger = logging.getLogger(__name__)

TAIL_WINDOW = 500
POLL_INTERVAL = 1.0


def tail(server: LogServer, plugin_id: str, sink: RecordSink, window: int = TAIL_WINDOW) -> int:
    """Print the plugin's records among the newest ``window`` server records.

    Returns the number of records written.
    """
    ensure_json_logs(server)
    logs = filter_entries(server.get_logs(0, window), plugin_id, EPOCH)
    sink.write(logs)
    return len(logs)


def follow(
    server: LogServer,
    plugin_id: str,
    sink: RecordSink,
    cancel: threading.Event,
    interval: float = POLL_INTERVAL,
    now: Callable[[], datetime] | None = None,
) -> None:
    """Poll every ``interval`` seconds and print records newer than the start time.

    Returns once ``cancel`` is set; any fetch, decode or write error ends the
    session and propagates. Cancellation is observed between polls only; a
    poll always runs to completion or to its first error.

    Polls never overlap. If one takes longer than ``interval`` the next one
    starts as soon as it finishes.
    """
    ensure_json_logs(server)

    since = now() if now is not None else datetime.now(timezone.utc)
    pager = Pager(server, sink, plugin_id, since)
    logger.info("Watching logs of %s since %s", plugin_id, since.isoformat(timespec="milliseconds"))

    next_tick = time.monotonic() + interval
    while not cancel.wait(max(0.0, next_tick - time.monotonic())):
        pager.poll()
        next_tick += interval
        # Ticks missed during a slow poll collapse into one immediate poll
        if next_tick < time.monotonic():
            next_tick = time.monotonic()
