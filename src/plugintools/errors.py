"""Error kinds raised by pluginctl and rendered once at the CLI entry point."""
from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    PRECONDITION_NOT_MET = "precondition not met"
    TRANSPORT = "transport"
    BAD_JSON = "bad json"
    BAD_TIMESTAMP = "bad timestamp"
    SINK_WRITE = "sink write"
    CONFIG_INVALID = "invalid configuration"


class PluginctlError(Exception):
    """A failure tagged with the kind of thing that went wrong.

    The wrapped cause, if any, is attached with ``raise ... from exc`` and
    folded into the one-line diagnostic by :meth:`describe`.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def describe(self) -> str:
        cause = self.__cause__
        if cause is not None and str(cause) and str(cause) not in self.message:
            return f"{self.kind.value}: {self.message}: {cause}"
        return f"{self.kind.value}: {self.message}"

    def __repr__(self) -> str:
        return f"PluginctlError({self.kind.name}, {self.message!r})"
