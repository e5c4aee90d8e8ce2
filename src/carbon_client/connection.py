"""
Connection handle: exactly one TCP connection to a fixed endpoint.

One attempt per call, outcome reported as an exception. No retries, no
backoff and no address resolution happen here.
"""

from __future__ import annotations

import socket
from typing import Optional

from loguru import logger

from .errors import WriteError, map_transport_error
from .models import Endpoint


def _tune(sock: socket.socket, keep_alive: float) -> None:
    idle = max(1, int(keep_alive))
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    if hasattr(socket, "TCP_KEEPIDLE"):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, idle)
    elif hasattr(socket, "TCP_KEEPALIVE"):
        # macOS spelling of the idle option
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPALIVE, idle)
    if hasattr(socket, "TCP_KEEPINTVL"):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, idle)


class Connection:
    """Thin wrapper around a connected stream socket."""

    def __init__(self, sock: socket.socket, endpoint: Optional[Endpoint] = None):
        self._sock: Optional[socket.socket] = sock
        self.endpoint = endpoint

    @classmethod
    def open(cls, endpoint: Endpoint, timeout: float, keep_alive: float) -> "Connection":
        """Make a single connection attempt and tune the new socket.

        Raises:
            ConnectError: refused, unreachable or timed out
            TuningError: socket options could not be applied
        """
        sock: Optional[socket.socket] = None
        try:
            sock = socket.socket(endpoint.family, socket.SOCK_STREAM)
            sock.settimeout(timeout)
            sock.connect(endpoint.sockaddr)
        except OSError as e:
            if sock is not None:
                sock.close()
            raise map_transport_error(e, "connect") from e
        try:
            _tune(sock, keep_alive)
        except OSError as e:
            sock.close()
            raise map_transport_error(e, "tune") from e
        logger.debug(f"Connected to {endpoint} (timeout={timeout}s keep_alive={keep_alive}s)")
        return cls(sock, endpoint)

    @property
    def closed(self) -> bool:
        return self._sock is None

    def write(self, payload: bytes) -> int:
        """Write the whole payload or raise ``WriteError``."""
        if self._sock is None:
            raise WriteError("connection is closed")
        try:
            self._sock.sendall(payload)
        except OSError as e:
            raise map_transport_error(e, "write") from e
        return len(payload)

    def close(self) -> None:
        """Best-effort bidirectional shutdown. Never raises."""
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            sock.close()
        except OSError:
            pass

    def __repr__(self) -> str:
        state = "closed" if self._sock is None else "open"
        return f"Connection(endpoint={self.endpoint}, {state})"
