from __future__ import annotations

import hashlib
import logging
import os
import socket
from dataclasses import dataclass, field

from .constants import DEFAULT_CHUNK_SIZE, U32_MAX
from .digest import iter_chunks
from .errors import ErrorKind, WriteError
from .frame import write_chunk, write_frame, write_u32
from .progress import NullProgress, ProgressSink

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransferSession:
    path: str
    total_size: int
    bytes_sent: int = 0
    digest: str | None = None

    @property
    def complete(self) -> bool:
        return self.bytes_sent == self.total_size

    @property
    def percent(self) -> int:
        if self.total_size == 0:
            return 100
        return 100 * self.bytes_sent // self.total_size

    def advance(self, n: int) -> None:
        if self.bytes_sent + n > self.total_size:
            raise ValueError(f"{self.path}: sent {self.bytes_sent + n} of {self.total_size} bytes")
        self.bytes_sent += n


@dataclass(frozen=True, slots=True)
class TransferResult:
    ok: bool
    bytes_sent: int = 0
    digest: str | None = None
    error: ErrorKind | None = None
    detail: str = ""

    @staticmethod
    def failed(kind: ErrorKind, detail: str, bytes_sent: int = 0) -> "TransferResult":
        return TransferResult(ok=False, bytes_sent=bytes_sent, error=kind, detail=detail)


@dataclass(slots=True)
class Transfer:
    """Sends one file over one open connection.

    Wire order: name frame, raw uint32 size, payload chunks, digest frame.
    Failures come back as a ``TransferResult``; the caller owns the socket and
    decides whether to retry on a new one.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    progress: ProgressSink = field(default_factory=NullProgress)

    def send(self, sock: socket.socket, path: str | os.PathLike[str]) -> TransferResult:
        name = os.fspath(path)
        try:
            f = open(path, "rb")
        except OSError as e:
            logger.error("Failed to open file: %s (%s)", name, e)
            return TransferResult.failed(ErrorKind.OPEN, str(e))

        with f:
            try:
                total_size = os.fstat(f.fileno()).st_size
            except OSError as e:
                logger.error("Failed to stat file: %s (%s)", name, e)
                return TransferResult.failed(ErrorKind.READ, str(e))

            name_bytes = name.encode("utf-8", "surrogateescape")
            if total_size > U32_MAX:
                logger.error("File too large for a uint32 size field: %s (%d bytes)", name, total_size)
                return TransferResult.failed(ErrorKind.TOO_LARGE, f"size {total_size} bytes")
            if len(name_bytes) > U32_MAX:
                logger.error("File name too long for a uint32 length field: %d bytes", len(name_bytes))
                return TransferResult.failed(ErrorKind.TOO_LARGE, f"name {len(name_bytes)} bytes")

            session = TransferSession(name, total_size)
            try:
                write_frame(sock, name_bytes)
                write_u32(sock, total_size)
                self._send_payload(sock, f, session)
            except WriteError as e:
                logger.error("Failed to send data: %s (%s)", name, e)
                return TransferResult.failed(ErrorKind.WRITE, str(e), session.bytes_sent)
            except OSError as e:
                logger.error("Failed to read file: %s (%s)", name, e)
                return TransferResult.failed(ErrorKind.READ, str(e), session.bytes_sent)
            finally:
                self.progress.finish(name)

        if not session.complete:
            detail = f"file ended after {session.bytes_sent} of {total_size} bytes"
            logger.error("Failed to read file: %s (%s)", name, detail)
            return TransferResult.failed(ErrorKind.READ, detail, session.bytes_sent)

        assert session.digest is not None
        logger.debug("Calculated MD5: %s", session.digest)
        try:
            write_frame(sock, session.digest.encode("ascii"))
        except WriteError as e:
            logger.error("Failed to send digest: %s (%s)", name, e)
            return TransferResult.failed(ErrorKind.WRITE, str(e), session.bytes_sent)

        logger.info("Sent file: %s (%d bytes), MD5: %s", name, total_size, session.digest)
        return TransferResult(ok=True, bytes_sent=session.bytes_sent, digest=session.digest)

    def _send_payload(self, sock: socket.socket, f, session: TransferSession) -> None:
        h = hashlib.md5()
        for chunk in iter_chunks(f, self.chunk_size, limit=session.total_size):
            write_chunk(sock, chunk)
            h.update(chunk)
            session.advance(len(chunk))
            self.progress.update(session.path, session.percent)

        if session.complete:
            session.digest = h.hexdigest()
