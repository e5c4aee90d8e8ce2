"""
Example usage of the Carbon client.

Run a Carbon listener locally (or ``nc -lk 2003``) and then:

    python examples/core_usage.py
"""

from datetime import datetime, timezone

from carbon_client import CarbonClient, Metric, RetriesExhausted, get_settings


def main():
    settings = get_settings()
    print(f"=== Sending to {settings.address}:{settings.port} ===")

    with CarbonClient.from_settings(settings) as client:
        # Single metric, timestamp taken now
        n = client.send(Metric(path="examples.cpu.usage", value="45.2"))
        print(f"Sent {n} bytes")

        # Batch, written in one go
        now = datetime.now(timezone.utc)
        batch = [
            Metric(path="examples.server1.cpu", value="45", timestamp=now),
            Metric(path="examples.server1.memory", value="80", timestamp=now),
            Metric(path="examples.server1.disk", value="65", timestamp=now),
        ]
        try:
            n = client.send_batch(batch)
            print(f"Sent batch of {len(batch)} ({n} bytes)")
        except RetriesExhausted as e:
            # Nothing is queued; dropping is the caller's call.
            print(f"Dropped batch: {e} (after {e.attempts} attempts)")


if __name__ == "__main__":
    main()
