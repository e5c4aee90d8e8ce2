from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from .config import ClientSettings
from .connection import Connection
from .errors import ConnectError, RetriesExhausted, WriteError
from .metrics import BYTES_SENT_TOTAL, RECONNECTS_TOTAL, SEND_LATENCY_SECONDS, WRITES_TOTAL
from .models import Endpoint, Metric, encode_batch
from .policy import DEFAULT_KEEP_ALIVE, DEFAULT_RETRIES, DEFAULT_TIMEOUT, ResiliencePolicy


class CarbonClient:
    """
    Persistent TCP client for a Graphite Carbon plaintext listener.

    Owns one connection, replaced wholesale by ``reconnect()`` whenever a write
    fails. Not thread-safe: every call may swap the held connection, so use one
    client per thread or guard it with a lock.

    Usage:
        with CarbonClient("127.0.0.1", 2003) as client:
            client.send(Metric(path="app.requests", value="100"))
    """

    def __init__(
        self,
        address: str,
        port: int,
        retries: int = DEFAULT_RETRIES,
        timeout: float = DEFAULT_TIMEOUT,
        keep_alive: float = DEFAULT_KEEP_ALIVE,
    ):
        self._conn: Optional[Connection] = None
        self._endpoint = Endpoint.parse(address, port)
        self._policy = ResiliencePolicy(max_retries=retries, timeout=timeout, keep_alive=keep_alive)
        # No retry here: a client either starts connected or does not exist.
        self._conn = Connection.open(self._endpoint, self._policy.timeout, self._policy.keep_alive)

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "CarbonClient":
        return cls(
            settings.address,
            settings.port,
            retries=settings.retries,
            timeout=settings.timeout,
            keep_alive=settings.keep_alive,
        )

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def policy(self) -> ResiliencePolicy:
        return self._policy

    @property
    def connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    # ---------- connection management ----------

    def reconnect(self) -> None:
        """
        Replace the current connection with a new one.

        Makes at most ``policy.max_retries`` connection attempts. The old
        connection is only closed once the new one is live. Tuning failures
        propagate immediately and do not consume attempts.

        Raises:
            TuningError: socket options failed on a fresh connection
            RetriesExhausted: every attempt failed; carries the last error
        """
        last_error: Optional[BaseException] = None
        attempts = 0
        while attempts < self._policy.max_retries:
            try:
                conn = Connection.open(
                    self._endpoint, self._policy.timeout, self._policy.keep_alive
                )
            except ConnectError as e:
                last_error = e.__cause__ or e
                attempts += 1
                RECONNECTS_TOTAL.labels(outcome="failure").inc()
                logger.warning(
                    f"Reconnect attempt {attempts}/{self._policy.max_retries} "
                    f"to {self._endpoint} failed: {e}"
                )
                continue

            RECONNECTS_TOTAL.labels(outcome="success").inc()
            old, self._conn = self._conn, conn
            if old is not None:
                old.close()
            return

        logger.error(f"Reconnect to {self._endpoint} gave up after {attempts} attempts")
        raise RetriesExhausted(last_error, attempts=attempts, operation="reconnect")

    def close(self) -> None:
        """Shut the connection down. Safe to call multiple times."""
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()

    def __enter__(self) -> "CarbonClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        conn = getattr(self, "_conn", None)
        if conn is not None:
            conn.close()

    # ---------- writes ----------

    def send(self, metric: Metric) -> int:
        """
        Send one metric, reconnecting and retrying on write failure.

        Returns:
            Number of bytes written (the full encoded line)

        Raises:
            RetriesExhausted: from the send loop (last write error) or from
                ``reconnect()``, which aborts the send immediately
            TuningError: a reconnected socket could not be tuned
        """
        return self._deliver(metric.encode(), kind="single")

    def send_batch(self, metrics: Iterable[Metric]) -> int:
        """
        Send metrics as one concatenated write, in the given order.

        Each attempt writes the whole buffer; a batch is never split across
        retries. An empty batch writes nothing and returns 0.
        """
        metrics = list(metrics)
        if not metrics:
            return 0
        return self._deliver(encode_batch(metrics), kind="batch")

    def _write(self, payload: bytes) -> int:
        if self._conn is None:
            raise WriteError("client is closed")
        return self._conn.write(payload)

    def _deliver(self, payload: bytes, kind: str) -> int:
        last_error: Optional[BaseException] = None
        attempts = 0
        with SEND_LATENCY_SECONDS.labels(kind=kind).time():
            while attempts < self._policy.max_retries:
                try:
                    written = self._write(payload)
                except WriteError as e:
                    last_error = e.__cause__ or e
                    WRITES_TOTAL.labels(kind=kind, outcome="failure").inc()
                    logger.warning(
                        f"Write of {len(payload)} bytes to {self._endpoint} failed: {e}; reconnecting"
                    )
                else:
                    WRITES_TOTAL.labels(kind=kind, outcome="success").inc()
                    BYTES_SENT_TOTAL.inc(written)
                    logger.debug(f"Wrote {written} bytes to {self._endpoint}")
                    return written
                # Socket may be broken somewhere; replace it before the next try.
                self.reconnect()
                attempts += 1

        logger.error(f"Send to {self._endpoint} gave up after {attempts} attempts: {last_error}")
        raise RetriesExhausted(last_error, attempts=attempts, operation=f"send_{kind}")

    def __repr__(self) -> str:
        return (
            f"CarbonClient(endpoint={self._endpoint}, retries={self._policy.max_retries}, "
            f"timeout={self._policy.timeout}, keep_alive={self._policy.keep_alive}, "
            f"connected={self.connected})"
        )
