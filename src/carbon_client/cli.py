from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from pydantic import ValidationError

from .client import CarbonClient
from .config import ClientSettings, get_settings
from .errors import CarbonClientError
from .models import Metric, join_prefix, parse_line

app = typer.Typer(help="carbon_client operational CLI")

# ---------------------------
# Common options
# ---------------------------


def address_opt() -> Optional[str]:
    return typer.Option(None, "--address", help="Collector IP address (env CARBON_ADDRESS)")


def port_opt() -> Optional[int]:
    return typer.Option(None, "--port", help="Collector port (env CARBON_PORT)")


def retries_opt() -> Optional[int]:
    return typer.Option(None, "--retries", help="Reconnect/send attempt bound")


def timeout_opt() -> Optional[float]:
    return typer.Option(None, "--timeout", help="Per-attempt timeout in seconds")


def keep_alive_opt() -> Optional[float]:
    return typer.Option(None, "--keep-alive", help="TCP keep-alive idle time in seconds")


def prefix_opt() -> Optional[str]:
    return typer.Option(None, "--prefix", help="Prefix prepended to every metric path")


def _settings(**overrides) -> ClientSettings:
    update = {k: v for k, v in overrides.items() if v is not None}
    return get_settings().model_copy(update=update)


def _connect(settings: ClientSettings) -> CarbonClient:
    try:
        return CarbonClient.from_settings(settings)
    except (CarbonClientError, ValueError) as e:
        logger.error(f"Could not connect to {settings.address}:{settings.port}: {e}")
        sys.exit(1)


@app.command("ping")
def ping(
    address: Optional[str] = address_opt(),
    port: Optional[int] = port_opt(),
    timeout: Optional[float] = timeout_opt(),
    keep_alive: Optional[float] = keep_alive_opt(),
):
    """Open a connection to the collector and close it again."""
    settings = _settings(address=address, port=port, timeout=timeout, keep_alive=keep_alive)
    with _connect(settings) as client:
        logger.success(f"Connected to {client.endpoint}")
    typer.echo(json.dumps({"ok": True}, indent=2))


@app.command("send")
def send(
    path: str = typer.Argument(..., help="Dotted metric path"),
    value: str = typer.Argument(..., help="Metric value, sent verbatim"),
    timestamp: Optional[int] = typer.Option(None, "--timestamp", help="Epoch seconds (default: now)"),
    address: Optional[str] = address_opt(),
    port: Optional[int] = port_opt(),
    retries: Optional[int] = retries_opt(),
    timeout: Optional[float] = timeout_opt(),
    keep_alive: Optional[float] = keep_alive_opt(),
    prefix: Optional[str] = prefix_opt(),
):
    """Send a single metric."""
    settings = _settings(
        address=address,
        port=port,
        retries=retries,
        timeout=timeout,
        keep_alive=keep_alive,
        prefix=prefix,
    )
    fields = {} if timestamp is None else {"timestamp": timestamp}
    try:
        metric = Metric(path=join_prefix(settings.prefix, path), value=value, **fields)
    except ValidationError as e:
        logger.error(f"Invalid metric: {e}")
        sys.exit(1)
    with _connect(settings) as client:
        try:
            n = client.send(metric)
        except CarbonClientError as e:
            logger.error(f"Send failed: {e}")
            sys.exit(1)
    typer.echo(json.dumps({"bytes": n}, indent=2))


def _read_metrics(source: str, prefix: Optional[str]) -> list[Metric]:
    fh = sys.stdin if source == "-" else Path(source).open("r", encoding="utf-8")
    try:
        out: list[Metric] = []
        for lineno, line in enumerate(fh, start=1):
            try:
                m = parse_line(line, prefix=prefix)
            except (ValueError, ValidationError) as e:
                raise ValueError(f"line {lineno}: {e}") from e
            if m is not None:
                out.append(m)
        return out
    finally:
        if fh is not sys.stdin:
            fh.close()


@app.command("send-batch")
def send_batch(
    source: str = typer.Argument("-", help="File of 'path value [timestamp]' lines, or - for stdin"),
    address: Optional[str] = address_opt(),
    port: Optional[int] = port_opt(),
    retries: Optional[int] = retries_opt(),
    timeout: Optional[float] = timeout_opt(),
    keep_alive: Optional[float] = keep_alive_opt(),
    prefix: Optional[str] = prefix_opt(),
):
    """Send every metric in a file as one batch write."""
    settings = _settings(
        address=address,
        port=port,
        retries=retries,
        timeout=timeout,
        keep_alive=keep_alive,
        prefix=prefix,
    )
    try:
        metrics = _read_metrics(source, settings.prefix)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read metrics from {source}: {e}")
        sys.exit(1)
    if not metrics:
        logger.warning("No metrics to send")
        typer.echo(json.dumps({"metrics": 0, "bytes": 0}, indent=2))
        return
    with _connect(settings) as client:
        try:
            n = client.send_batch(metrics)
        except CarbonClientError as e:
            logger.error(f"Batch send failed: {e}")
            sys.exit(1)
    logger.info(f"Sent {len(metrics)} metrics ({n} bytes) to {client.endpoint}")
    typer.echo(json.dumps({"metrics": len(metrics), "bytes": n}, indent=2))


if __name__ == "__main__":
    app()
