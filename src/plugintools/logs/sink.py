"""Standard-output sink: one record per line, no framing or colour."""
from __future__ import annotations

import sys
from typing import TextIO

from ..errors import ErrorKind, PluginctlError


class StreamSink:
    """Write records verbatim to a text stream, each followed by a newline."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so test runners that swap sys.stdout are honoured
        return self._stream if self._stream is not None else sys.stdout

    def write(self, records: list[str]) -> None:
        if not records:
            return
        stream = self.stream
        try:
            for record in records:
                stream.write(record + "\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            raise PluginctlError(ErrorKind.SINK_WRITE, "failed to write log entry to stdout") from exc
