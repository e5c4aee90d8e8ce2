"""
Pytest configuration and fixtures for carbon_client.

Provides a loopback Carbon listener and a scripted fake transport.
"""

import socket
import threading
import time

import pytest

from carbon_client.config import get_settings
from tests.fakes import FakeTransport


class DummyCarbonServer:
    """Loopback TCP listener that records every byte it receives."""

    def __init__(self):
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(16)
        self._listener.settimeout(0.05)
        self.port = self._listener.getsockname()[1]
        self._lock = threading.Lock()
        self._received = bytearray()
        self._conns: list[socket.socket] = []
        self._stopped = threading.Event()
        self.accepted = 0
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    def _accept_loop(self):
        while not self._stopped.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with self._lock:
                self.accepted += 1
                self._conns.append(conn)
            threading.Thread(target=self._read_loop, args=(conn,), daemon=True).start()

    def _read_loop(self, conn):
        while True:
            try:
                chunk = conn.recv(65536)
            except OSError:
                return
            if not chunk:
                return
            with self._lock:
                self._received.extend(chunk)

    @property
    def received(self) -> bytes:
        with self._lock:
            return bytes(self._received)

    def wait_for(self, nbytes: int, timeout: float = 2.0) -> bytes:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            data = self.received
            if len(data) >= nbytes:
                return data
            time.sleep(0.01)
        return self.received

    def wait_accepted(self, n: int, timeout: float = 2.0) -> int:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline and self.accepted < n:
            time.sleep(0.01)
        return self.accepted

    def stop(self):
        self._stopped.set()
        self._listener.close()
        with self._lock:
            conns, self._conns = self._conns, []
        for c in conns:
            try:
                c.close()
            except OSError:
                pass
        self._thread.join(timeout=1)


@pytest.fixture
def carbon_server():
    """Running loopback Carbon listener."""
    server = DummyCarbonServer()
    yield server
    server.stop()


@pytest.fixture
def closed_port():
    """A loopback port with nothing listening on it."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_transport(monkeypatch):
    """Patch ``Connection.open`` as seen by the client with a FakeTransport."""
    transport = FakeTransport()
    monkeypatch.setattr("carbon_client.client.Connection.open", transport.open)
    return transport
