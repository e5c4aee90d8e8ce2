"""
Data models for the Carbon client.

``Endpoint`` is the fixed collector address; ``Metric`` is one data point
serialized to the Graphite plaintext line format.
"""

from __future__ import annotations

import ipaddress
import math
import socket
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import AddressParseError
from .utils import to_unix_seconds, unix_now

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class Endpoint:
    """Remote collector address. Resolved once, never mutated."""

    address: IPAddress
    port: int

    @classmethod
    def parse(cls, address: str, port: int) -> "Endpoint":
        """Parse a literal IP address and port; hostnames are rejected."""
        if not isinstance(address, str):
            raise AddressParseError(f"address must be text, got {type(address).__name__}")
        try:
            ip = ipaddress.ip_address(address)
        except ValueError as e:
            raise AddressParseError(f"invalid IP address syntax: {address!r}") from e
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
            raise AddressParseError(f"invalid port: {port!r}")
        return cls(address=ip, port=port)

    @property
    def family(self) -> int:
        return socket.AF_INET6 if self.address.version == 6 else socket.AF_INET

    @property
    def sockaddr(self) -> tuple:
        return (str(self.address), self.port)

    def __str__(self) -> str:
        if self.address.version == 6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


class Metric(BaseModel):
    """One Graphite data point: dotted path, literal value, epoch timestamp."""

    model_config = ConfigDict(frozen=True)

    path: str
    value: str
    timestamp: int = Field(default_factory=unix_now, ge=0)

    @field_validator("path", "value")
    @classmethod
    def _no_whitespace(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        if any(ch.isspace() for ch in v):
            raise ValueError("must not contain whitespace")
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v):
        if isinstance(v, bool):
            raise ValueError("timestamp must be a number or datetime, not bool")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("timestamp must be finite")
        if isinstance(v, (datetime, float)):
            return to_unix_seconds(v)
        return v

    def to_line(self) -> str:
        """Plaintext protocol line: ``path value timestamp\\n``."""
        return f"{self.path} {self.value} {self.timestamp}\n"

    def encode(self) -> bytes:
        return self.to_line().encode("utf-8")

    def __str__(self) -> str:
        return self.to_line()


def encode_batch(metrics: Iterable[Metric]) -> bytes:
    """Concatenate encoded lines in caller order."""
    return b"".join(m.encode() for m in metrics)


def parse_line(line: str, prefix: str | None = None) -> Metric | None:
    """
    Parse ``path value [timestamp]`` text into a Metric.

    Blank lines and ``#`` comments return None. A prefix is joined to the
    path with a dot.
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    parts = line.split()
    if len(parts) not in (2, 3):
        raise ValueError(f"expected 'path value [timestamp]', got {line!r}")
    path = join_prefix(prefix, parts[0])
    if len(parts) == 3:
        return Metric(path=path, value=parts[1], timestamp=int(parts[2]))
    return Metric(path=path, value=parts[1])


def join_prefix(prefix: str | None, path: str) -> str:
    return f"{prefix.rstrip('.')}.{path}" if prefix else path
