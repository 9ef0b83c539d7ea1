from __future__ import annotations

import hashlib
import os
from typing import BinaryIO, Iterator

from .constants import DEFAULT_CHUNK_SIZE


def iter_chunks(f: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE, limit: int | None = None) -> Iterator[bytes]:
    """Yield successive chunks of at most ``chunk_size`` bytes.

    With ``limit`` set, stop once ``limit`` bytes have been yielded even if the
    file has more. A short file simply ends early; callers that need an exact
    byte count check it themselves.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive: {chunk_size}")

    remaining = limit
    while remaining is None or remaining > 0:
        want = chunk_size if remaining is None else min(chunk_size, remaining)
        chunk = f.read(want)
        if not chunk:
            return
        if remaining is not None:
            remaining -= len(chunk)
        yield chunk


def digest_file(path: str | os.PathLike[str], chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Return the lowercase hex md5 of a file, reading it in fixed-size chunks."""
    h = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter_chunks(f, chunk_size):
            h.update(chunk)
    return h.hexdigest()
