from __future__ import annotations

import socket
import struct

from .constants import U32_FORMAT, U32_MAX
from .errors import WriteError

U32 = struct.Struct(U32_FORMAT)


def encode_u32(value: int) -> bytes:
    if not 0 <= value <= U32_MAX:
        raise ValueError(f"value does not fit in uint32: {value}")
    return U32.pack(value)


def encode_frame(payload: bytes) -> bytes:
    return encode_u32(len(payload)) + payload


def _send(sock: socket.socket, data: bytes) -> None:
    try:
        sock.sendall(data)
    except OSError as e:
        raise WriteError(f"failed to send {len(data)} bytes: {e}") from e


def write_u32(sock: socket.socket, value: int) -> None:
    _send(sock, encode_u32(value))


def write_frame(sock: socket.socket, payload: bytes) -> None:
    # length and payload go out in one call so a frame is never half-queued
    _send(sock, encode_frame(payload))


def write_chunk(sock: socket.socket, data: bytes) -> None:
    _send(sock, data)


def read_exact(sock: socket.socket, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        part = sock.recv(n - len(buf))
        if not part:
            raise EOFError(f"stream closed after {len(buf)} of {n} bytes")
        buf.extend(part)
    return bytes(buf)


def read_u32(sock: socket.socket) -> int:
    (value,) = U32.unpack(read_exact(sock, U32.size))
    return value


def read_frame(sock: socket.socket) -> bytes:
    return read_exact(sock, read_u32(sock))
