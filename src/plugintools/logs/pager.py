"""One poll of the server log: walk pages until output from a previous poll is reached."""
from __future__ import annotations

import logging
from datetime import datetime

from .base import LogServer, RecordSink
from .dedup import check_last_emitted
from .filter import PluginLogFilter

logger = logging.getLogger(__name__)

LOGS_PER_PAGE = 100
# The server's log buffer is finite, so the walk always ends; this only
# guards against a server that never repeats a record.
MAX_PAGES = 1000


class Pager:
    """Fetch, filter, dedup and emit new records for one plugin.

    Holds the dedup key between polls. Each :meth:`poll` starts at page 0 and
    stops at the first page that still contains an already-emitted record
    (or is empty after filtering).

    Usage::

        pager = Pager(client, StreamSink(), "com.example.plugin", since=now)
        while ...:
            pager.poll()
    """

    def __init__(
        self,
        server: LogServer,
        sink: RecordSink,
        plugin_id: str,
        since: datetime,
        per_page: int = LOGS_PER_PAGE,
        max_pages: int = MAX_PAGES,
    ) -> None:
        self._server = server
        self._sink = sink
        self._filter = PluginLogFilter(plugin_id, since)
        self._per_page = per_page
        self._max_pages = max_pages
        self.last_emitted = ""

    def fetch(self, page: int) -> list[str]:
        return self._filter.filter(self._server.get_logs(page, self._per_page))

    def poll(self) -> int:
        """Run one pass. Returns the number of records written."""
        written = 0
        for page in range(self._max_pages):
            logs = self.fetch(page)
            to_emit, self.last_emitted, all_new = check_last_emitted(logs, self.last_emitted)
            self._sink.write(to_emit)
            written += len(to_emit)
            if not all_new:
                return written
        logger.warning(
            "Stopped paging after %d pages without reaching previously shown logs", self._max_pages
        )
        return written
