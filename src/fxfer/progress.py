from __future__ import annotations

import sys
import threading
from typing import Protocol, TextIO


class ProgressSink(Protocol):
    def update(self, name: str, percent: int) -> None: ...

    def finish(self, name: str) -> None: ...


class NullProgress:
    def update(self, name: str, percent: int) -> None:
        pass

    def finish(self, name: str) -> None:
        pass


class ConsoleProgress:
    """Carriage-return progress line on a text stream.

    The lock is owned by the caller so several workers (and anything else
    writing to the same console) can share one.
    """

    def __init__(self, stream: TextIO | None = None, lock: threading.Lock | None = None):
        self.stream = stream if stream is not None else sys.stdout
        self.lock = lock if lock is not None else threading.Lock()
        self._dirty = False

    def update(self, name: str, percent: int) -> None:
        with self.lock:
            self.stream.write(f"\rProgress: {percent}%")
            self.stream.flush()
            self._dirty = True

    def finish(self, name: str) -> None:
        with self.lock:
            if self._dirty:
                self.stream.write("\n")
                self.stream.flush()
                self._dirty = False
