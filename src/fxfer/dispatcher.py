from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from .connection import ConnectionManager, FileReport, Outcome

logger = logging.getLogger(__name__)


def walk_files(root: str | os.PathLike[str]) -> Iterator[str]:
    """Yield absolute paths of regular files under ``root`` in sorted order.

    Symlinked directories are not followed; symlinks to regular files are.
    """
    root = os.path.abspath(root)
    if not os.path.isdir(root):
        raise NotADirectoryError(f"not a directory: {root}")

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for fn in sorted(filenames):
            p = os.path.join(dirpath, fn)
            if os.path.isfile(p):
                yield p


@dataclass(slots=True)
class Dispatcher:
    """Runs one ``ConnectionManager.send`` per path.

    With ``workers=1`` one manager sends every file, strictly one after
    another. With more, each file gets a manager of its own from
    ``new_manager``; transfers overlap but reports keep input order.
    """

    new_manager: Callable[[], ConnectionManager]
    workers: int = 1

    def run(self, paths: Iterable[str | os.PathLike[str]]) -> list[FileReport]:
        if self.workers <= 1:
            manager = self.new_manager()
            reports = [self._send_one(manager, p) for p in paths]
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="fxfer") as pool:
                reports = list(pool.map(lambda p: self._send_one(self.new_manager(), p), paths))

        sent = sum(1 for r in reports if r.outcome is Outcome.SUCCEEDED)
        logger.info("All files processed. sent=%d failed=%d", sent, len(reports) - sent)
        return reports

    def _send_one(self, manager: ConnectionManager, path) -> FileReport:
        logger.info("Connecting to server %s on port %s", manager.host, manager.port)
        return manager.send(path)
