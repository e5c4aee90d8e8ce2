"""
Utility functions for the Carbon client.

Timestamp helpers used when building metric records.
"""

import time
from datetime import datetime, timezone
from typing import Union


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def unix_now() -> int:
    """Current wall-clock time in whole seconds since the epoch."""
    return int(time.time())


def to_unix_seconds(ts: Union[datetime, int, float]) -> int:
    """
    Convert a timestamp to whole seconds since the epoch.

    Args:
        ts: datetime (naive values are treated as UTC), or numeric seconds

    Returns:
        Seconds since epoch, truncated toward zero
    """
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return int(ts.timestamp())
    return int(ts)
