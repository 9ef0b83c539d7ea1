from __future__ import annotations

import enum
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable

from .config import RetryPolicy
from .errors import ErrorKind
from .net import Connector, Resolver
from .transfer import Transfer, TransferResult

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    SKIPPED = "skipped"


@dataclass(slots=True)
class RetryState:
    max_attempts: int
    attempts: int = 0
    outcome: Outcome | None = None

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


@dataclass(frozen=True, slots=True)
class FileReport:
    path: str
    outcome: Outcome
    attempts: int
    bytes_sent: int = 0
    digest: str | None = None
    error: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED


@dataclass(slots=True)
class ConnectionManager:
    """Connect, transfer, and retry for a single file at a time.

    Every attempt uses a brand-new connection and re-sends the file from the
    start. Connect and write failures are retried per ``policy``; file-side
    failures (open, read, size) end the file immediately.
    """

    host: str
    port: int
    transfer: Transfer = field(default_factory=Transfer)
    policy: RetryPolicy = field(default_factory=RetryPolicy)
    resolver: Resolver = field(default_factory=Resolver)
    connector: Connector = field(default_factory=Connector)
    sleep: Callable[[float], None] = time.sleep

    def send(self, path: str | os.PathLike[str]) -> FileReport:
        name = os.fspath(path)
        # ResolveError propagates: a name that does not resolve is not retried
        endpoints = self.resolver.resolve(self.host, self.port)
        state = RetryState(self.policy.max_attempts)

        while True:
            result = self._attempt(endpoints, path)

            if result.ok:
                state.outcome = Outcome.SUCCEEDED
                return self._report(name, state, result)

            assert result.error is not None
            if not result.error.retryable:
                state.outcome = Outcome.SKIPPED
                logger.error("Skipping %s: %s (%s)", name, result.error.value, result.detail)
                return self._report(name, state, result)

            state.attempts += 1
            if state.exhausted:
                state.outcome = Outcome.EXHAUSTED
                logger.error("Connection error: %s (%d/%d)", result.detail, state.attempts, state.max_attempts)
                logger.error("Failed to send file %s after %d retries.", name, state.max_attempts)
                return self._report(name, state, result)

            logger.error(
                "Connection error: %s - Retrying (%d/%d)",
                result.detail,
                state.attempts,
                state.max_attempts,
            )
            self.sleep(self.policy.delay_s)

    def _attempt(self, endpoints, path) -> TransferResult:
        try:
            sock = self.connector.connect(endpoints)
        except OSError as e:
            return TransferResult.failed(ErrorKind.CONNECT, str(e))

        with sock:
            return self.transfer.send(sock, path)

    @staticmethod
    def _report(name: str, state: RetryState, result: TransferResult) -> FileReport:
        assert state.outcome is not None
        attempts = state.attempts + 1 if state.outcome is not Outcome.EXHAUSTED else state.attempts
        return FileReport(
            path=name,
            outcome=state.outcome,
            attempts=attempts,
            bytes_sent=result.bytes_sent,
            digest=result.digest,
            error=result.error,
        )
