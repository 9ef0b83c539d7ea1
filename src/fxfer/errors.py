from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    OPEN = "open"
    READ = "read"
    TOO_LARGE = "too_large"
    CONNECT = "connect"
    WRITE = "write"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.CONNECT, ErrorKind.WRITE)


class FxferError(Exception):
    pass


class ResolveError(FxferError):
    """Host name resolution failed. Not retried; ends the run."""


class WriteError(FxferError, ConnectionError):
    """The connection failed while frames were being written."""
