from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Any, Tuple

from .errors import ResolveError


@dataclass(frozen=True, slots=True)
class Endpoint:
    family: int
    type: int
    proto: int
    sockaddr: Tuple[Any, ...]


class Resolver:
    def resolve(self, host: str, port: int) -> list[Endpoint]:
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolveError(f"cannot resolve {host}:{port}: {e}") from e
        if not infos:
            raise ResolveError(f"no addresses for {host}:{port}")
        return [Endpoint(family, type_, proto, sockaddr) for family, type_, proto, _, sockaddr in infos]


class Connector:
    """Opens a TCP connection to the first endpoint that accepts.

    Raises the last ``OSError`` seen when every endpoint fails.
    """

    def __init__(self, timeout_s: float | None = None):
        self.timeout_s = timeout_s

    def connect(self, endpoints: list[Endpoint]) -> socket.socket:
        if not endpoints:
            raise ConnectionError("no endpoints to connect to")

        last_err: OSError | None = None
        for ep in endpoints:
            try:
                sock = socket.socket(ep.family, ep.type, ep.proto)
            except OSError as e:
                # e.g. an address family the host has disabled
                last_err = e
                continue
            try:
                sock.settimeout(self.timeout_s)
                sock.connect(ep.sockaddr)
            except OSError as e:
                sock.close()
                last_err = e
                continue
            # timeout bounds connect only; frame writes block
            sock.settimeout(None)
            return sock

        assert last_err is not None
        raise last_err
