"""
Client-side delivery metrics, registered in the Prometheus global REGISTRY.
"""

from prometheus_client import Counter, Histogram

WRITES_TOTAL = Counter(
    "carbon_client_writes_total",
    "Write attempts on the collector connection",
    ["kind", "outcome"],
)

RECONNECTS_TOTAL = Counter(
    "carbon_client_reconnects_total",
    "Connection attempts made while reconnecting",
    ["outcome"],
)

BYTES_SENT_TOTAL = Counter(
    "carbon_client_bytes_sent_total",
    "Bytes accepted by successful sends",
)

SEND_LATENCY_SECONDS = Histogram(
    "carbon_client_send_latency_seconds",
    "Duration of send calls including retries",
    ["kind"],
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
)
