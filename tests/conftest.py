from __future__ import annotations

import io
import socket
import threading
from dataclasses import dataclass

import pytest

from fxfer.frame import read_exact, read_frame, read_u32
from fxfer.net import Endpoint


@dataclass
class WireFile:
    name: str
    size: int
    payload: bytes
    digest: str


class ByteStream:
    """recv() over captured bytes, so the frame readers can parse them."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    def recv(self, n: int) -> bytes:
        return self._buf.read(n)

    def remaining(self) -> bytes:
        return self._buf.read()


def parse_wire(data: bytes) -> WireFile:
    s = ByteStream(data)
    name = read_frame(s).decode("utf-8")
    size = read_u32(s)
    payload = read_exact(s, size)
    digest = read_frame(s).decode("ascii")
    assert s.remaining() == b"", "trailing bytes after digest frame"
    return WireFile(name=name, size=size, payload=payload, digest=digest)


class LoopbackReceiver:
    """Accepts connections on 127.0.0.1 and keeps every byte received."""

    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen()
        self.sock.settimeout(0.1)
        self.host, self.port = self.sock.getsockname()
        self.raw: list[bytes] = []
        self._cond = threading.Condition()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self.sock.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            with conn:
                conn.settimeout(5.0)
                chunks = []
                while True:
                    part = conn.recv(65536)
                    if not part:
                        break
                    chunks.append(part)
            with self._cond:
                self.raw.append(b"".join(chunks))
                self._cond.notify_all()

    def wait_for(self, n: int, timeout: float = 5.0) -> list[bytes]:
        with self._cond:
            assert self._cond.wait_for(lambda: len(self.raw) >= n, timeout=timeout)
            return list(self.raw)

    def files(self, n: int) -> list[WireFile]:
        return [parse_wire(raw) for raw in self.wait_for(n)]

    def close(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2.0)
        self.sock.close()


class RecordingSocket:
    """Stands in for a connected socket; ``fail_on`` is the 0-based sendall call that breaks."""

    def __init__(self, fail_on: int | None = None):
        self.fail_on = fail_on
        self.calls: list[bytes] = []
        self.closed = False

    @property
    def data(self) -> bytes:
        return b"".join(self.calls)

    def sendall(self, data: bytes) -> None:
        if self.fail_on is not None and len(self.calls) >= self.fail_on:
            raise BrokenPipeError(32, "Broken pipe")
        self.calls.append(bytes(data))

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ScriptedConnector:
    """Each connect() pops the next step: an exception to raise or a socket to return."""

    def __init__(self, steps):
        self.steps = list(steps)
        self.sockets: list[RecordingSocket] = []
        self.connects = 0

    def connect(self, endpoints):
        self.connects += 1
        step = self.steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        self.sockets.append(step)
        return step


class StaticResolver:
    def __init__(self):
        self.calls = 0

    def resolve(self, host, port):
        self.calls += 1
        return [Endpoint(socket.AF_INET, socket.SOCK_STREAM, 0, ("127.0.0.1", port))]


class RecordingProgress:
    def __init__(self):
        self.events: list[tuple[str, int]] = []
        self.finished: list[str] = []

    def update(self, name: str, percent: int) -> None:
        self.events.append((name, percent))

    def finish(self, name: str) -> None:
        self.finished.append(name)


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def receiver():
    r = LoopbackReceiver()
    yield r
    r.close()


@pytest.fixture
def closed_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port
