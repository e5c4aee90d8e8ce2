"""
Custom exceptions for the Carbon client.

Transport errors keep the originating ``OSError`` as ``__cause__`` so callers
can inspect errno values; messages are derived from that error.
"""

from __future__ import annotations

from typing import Optional


class CarbonClientError(Exception):
    """Base error for the Carbon client."""

    pass


class AddressParseError(CarbonClientError, ValueError):
    """Endpoint address is not a literal IPv4/IPv6 address (or port is out of range)."""

    pass


class ConnectError(CarbonClientError):
    """Connection attempt timed out or was refused."""

    pass


class TuningError(CarbonClientError):
    """Socket options could not be applied to a freshly opened connection."""

    pass


class WriteError(CarbonClientError):
    """Write on a broken or half-closed connection."""

    pass


class RetriesExhausted(CarbonClientError):
    """All attempts of a retry loop failed.

    ``last_error`` is the most recent low-level error observed by the loop,
    never the first one.
    """

    def __init__(
        self,
        last_error: Optional[BaseException],
        *,
        attempts: int,
        operation: str,
    ):
        self.last_error = last_error
        self.attempts = attempts
        self.operation = operation
        super().__init__(f"Graphite Error: {last_error}")


_STAGES = {
    "connect": ConnectError,
    "tune": TuningError,
    "write": WriteError,
}


def map_transport_error(e: OSError, stage: str) -> CarbonClientError:
    try:
        cls = _STAGES[stage]
    except KeyError:
        raise ValueError(f"Unknown transport stage: {stage}") from None
    err = cls(str(e))
    err.__cause__ = e
    return err
