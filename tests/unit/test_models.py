"""
Unit tests for Endpoint and Metric.
"""

import socket
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from carbon_client.errors import AddressParseError
from carbon_client.models import Endpoint, Metric, encode_batch, parse_line
from carbon_client.utils import to_unix_seconds, unix_now


class TestEndpoint:
    def test_ipv4(self):
        ep = Endpoint.parse("192.168.1.100", 2003)
        assert ep.family == socket.AF_INET
        assert ep.sockaddr == ("192.168.1.100", 2003)
        assert str(ep) == "192.168.1.100:2003"

    def test_ipv6(self):
        ep = Endpoint.parse("::1", 2004)
        assert ep.family == socket.AF_INET6
        assert ep.sockaddr == ("::1", 2004)
        assert str(ep) == "[::1]:2004"

    @pytest.mark.parametrize("address", ["localhost", "graphite.example.com", "", "300.1.1.1"])
    def test_rejects_non_literal(self, address):
        with pytest.raises(AddressParseError):
            Endpoint.parse(address, 2003)

    @pytest.mark.parametrize("port", [-1, 65536, True])
    def test_rejects_bad_port(self, port):
        with pytest.raises(AddressParseError, match="invalid port"):
            Endpoint.parse("127.0.0.1", port)

    def test_is_immutable(self):
        ep = Endpoint.parse("127.0.0.1", 2003)
        with pytest.raises(Exception):
            ep.port = 2004


class TestMetric:
    def test_wire_format(self):
        m = Metric(path="servers.web01.cpu.usage", value="45.2", timestamp=1609459200)
        assert m.to_line() == "servers.web01.cpu.usage 45.2 1609459200\n"
        assert m.encode() == b"servers.web01.cpu.usage 45.2 1609459200\n"
        assert str(m) == m.to_line()

    def test_serialization_is_idempotent(self):
        m = Metric(path="app.requests.total", value="1000")
        assert m.encode() == m.encode()
        assert m.to_line() == m.to_line()

    def test_value_is_sent_verbatim(self):
        m = Metric(path="a.b", value="1.50e+03", timestamp=1)
        assert m.to_line() == "a.b 1.50e+03 1\n"

    def test_default_timestamp_is_now(self):
        before = unix_now()
        m = Metric(path="a.b", value="1")
        after = unix_now()
        assert before <= m.timestamp <= after

    def test_datetime_timestamp(self):
        dt = datetime(2021, 1, 1, tzinfo=timezone.utc)
        assert Metric(path="a.b", value="1", timestamp=dt).timestamp == 1609459200
        assert Metric(path="a.b", value="1", timestamp=datetime(2021, 1, 1)).timestamp == 1609459200

    def test_float_timestamp_truncated(self):
        assert Metric(path="a.b", value="1", timestamp=1609459200.9).timestamp == 1609459200

    @pytest.mark.parametrize(
        "path,value",
        [("", "1"), ("a.b", ""), ("a b", "1"), ("a.b", "1 2"), ("a.b\n", "1"), ("a.b", "1\t")],
    )
    def test_rejects_wire_breaking_fields(self, path, value):
        with pytest.raises(ValidationError):
            Metric(path=path, value=value)

    def test_rejects_negative_timestamp(self):
        with pytest.raises(ValidationError):
            Metric(path="a.b", value="1", timestamp=-1)

    @pytest.mark.parametrize("ts", [float("inf"), float("-inf"), float("nan"), True, False])
    def test_rejects_non_finite_and_bool_timestamp(self, ts):
        with pytest.raises(ValidationError):
            Metric(path="a.b", value="1", timestamp=ts)

    def test_is_frozen(self):
        m = Metric(path="a.b", value="1")
        with pytest.raises(ValidationError):
            m.value = "2"


def test_encode_batch_keeps_order():
    batch = [
        Metric(path="server1.cpu", value="45", timestamp=10),
        Metric(path="server1.memory", value="80", timestamp=11),
        Metric(path="server1.disk", value="65", timestamp=12),
    ]
    assert encode_batch(batch) == (
        b"server1.cpu 45 10\nserver1.memory 80 11\nserver1.disk 65 12\n"
    )
    assert encode_batch([]) == b""


class TestParseLine:
    def test_with_timestamp(self):
        m = parse_line("a.b 3 1700000000\n")
        assert (m.path, m.value, m.timestamp) == ("a.b", "3", 1700000000)

    def test_without_timestamp_uses_now(self):
        m = parse_line("a.b 3")
        assert abs(m.timestamp - unix_now()) <= 1

    def test_prefix(self):
        assert parse_line("cpu 1 5", prefix="prod.web01.").path == "prod.web01.cpu"
        assert parse_line("cpu 1 5", prefix="prod").path == "prod.cpu"

    @pytest.mark.parametrize("line", ["", "   ", "# comment"])
    def test_skips_blank_and_comments(self, line):
        assert parse_line(line) is None

    @pytest.mark.parametrize("line", ["onlypath", "a b c d", "a.b 1 notanumber"])
    def test_rejects_malformed(self, line):
        with pytest.raises(ValueError):
            parse_line(line)


def test_to_unix_seconds():
    assert to_unix_seconds(12.7) == 12
    assert to_unix_seconds(datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc)) == 60
