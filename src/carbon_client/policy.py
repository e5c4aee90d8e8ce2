from __future__ import annotations

from dataclasses import dataclass

DEFAULT_RETRIES = 3
DEFAULT_TIMEOUT = 5.0
DEFAULT_KEEP_ALIVE = 240.0


@dataclass(frozen=True)
class ResiliencePolicy:
    """Retry and connection tuning bound to a client for its lifetime.

    Attributes:
        max_retries: Bound on the reconnect and send loops
        timeout: Per-attempt connect timeout in seconds (also applied to writes)
        keep_alive: TCP keep-alive idle time in seconds for every opened connection
    """

    max_retries: int = DEFAULT_RETRIES
    timeout: float = DEFAULT_TIMEOUT
    keep_alive: float = DEFAULT_KEEP_ALIVE

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.keep_alive <= 0:
            raise ValueError("keep_alive must be > 0")
