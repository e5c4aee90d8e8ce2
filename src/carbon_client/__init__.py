"""
Carbon Client Library

A small, reliable client for sending metrics to a Graphite Carbon daemon over
the plaintext TCP protocol, with automatic reconnection and bounded retries.

Usage:
    from carbon_client import CarbonClient, Metric

    with CarbonClient("127.0.0.1", 2003) as client:
        client.send(Metric(path="servers.web01.cpu.usage", value="45.2"))
        client.send_batch([Metric(path="a.b", value="1"), Metric(path="a.c", value="2")])
"""

from .client import CarbonClient
from .config import ClientSettings, get_settings
from .connection import Connection
from .errors import (
    AddressParseError,
    CarbonClientError,
    ConnectError,
    RetriesExhausted,
    TuningError,
    WriteError,
)
from .models import Endpoint, Metric, encode_batch, parse_line
from .policy import ResiliencePolicy

__version__ = "1.0.0"
__all__ = [
    "CarbonClient",
    "Connection",
    "ClientSettings",
    "get_settings",
    "ResiliencePolicy",
    "Endpoint",
    "Metric",
    "encode_batch",
    "parse_line",
    "CarbonClientError",
    "AddressParseError",
    "ConnectError",
    "TuningError",
    "WriteError",
    "RetriesExhausted",
]
