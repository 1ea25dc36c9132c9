"""Tests for waveform metadata parsing."""

from __future__ import annotations

from collections import deque

import pytest

from lxi_control.channel import CommandChannel
from lxi_control.errors import LxiPreconditionError, LxiProtocolError
from lxi_control.waveform import WaveformDescriptor, check_slot, describe, parse_definition


class MockTransport:
    """In-memory transport that replays pre-loaded replies."""

    def __init__(self, responses: list[bytes] | None = None) -> None:
        self.responses: deque[bytes] = deque(responses or [])
        self.sent: list[bytes] = []

    def send(self, data: bytes) -> int:
        self.sent.append(data)
        return len(data)

    def receive(self, max_bytes: int, timeout: float | None = None) -> bytes:
        return self.responses.popleft()

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# WaveformDescriptor
# ---------------------------------------------------------------------------


class TestWaveformDescriptor:
    """Tests for WaveformDescriptor."""

    def test_byte_length_is_twice_length(self) -> None:
        descriptor = WaveformDescriptor(name="SINE", interpolation="OFF", length=1024, slot=3)
        assert descriptor.byte_length == 2048

    def test_interpolated(self) -> None:
        assert WaveformDescriptor("A", "ON", 1, 1).interpolated is True
        assert WaveformDescriptor("A", "off", 1, 1).interpolated is False

    def test_frozen(self) -> None:
        descriptor = WaveformDescriptor("A", "ON", 1, 1)
        with pytest.raises(AttributeError):
            descriptor.length = 2  # type: ignore[misc]


# ---------------------------------------------------------------------------
# parse_definition
# ---------------------------------------------------------------------------


class TestParseDefinition:
    """Tests for parse_definition."""

    def test_standard_reply(self) -> None:
        descriptor = parse_definition("MYWAVE,ON,4096", 1)
        assert descriptor == WaveformDescriptor(
            name="MYWAVE", interpolation="ON", length=4096, slot=1
        )
        assert descriptor.byte_length == 8192

    def test_bytes_with_line_ending(self) -> None:
        descriptor = parse_definition(b"PULSE,OFF,131072\r\n", 4)
        assert descriptor.name == "PULSE"
        assert descriptor.interpolation == "OFF"
        assert descriptor.length == 131072
        assert descriptor.slot == 4

    def test_too_few_fields(self) -> None:
        with pytest.raises(LxiProtocolError, match="3 comma-separated"):
            parse_definition("BAD", 1)

    def test_too_many_fields(self) -> None:
        with pytest.raises(LxiProtocolError):
            parse_definition("A,ON,10,EXTRA", 1)

    def test_non_numeric_length(self) -> None:
        with pytest.raises(LxiProtocolError, match="decimal integer"):
            parse_definition("MYWAVE,ON,lots", 1)

    def test_negative_length(self) -> None:
        with pytest.raises(LxiProtocolError):
            parse_definition("MYWAVE,ON,-4", 1)

    def test_empty_length(self) -> None:
        with pytest.raises(LxiProtocolError):
            parse_definition("MYWAVE,ON,", 1)

    def test_name_too_long(self) -> None:
        with pytest.raises(LxiProtocolError, match="longer than"):
            parse_definition("X" * 40 + ",ON,16", 1)


# ---------------------------------------------------------------------------
# describe / check_slot
# ---------------------------------------------------------------------------


class TestDescribe:
    """Tests for describe."""

    def test_sends_definition_query(self) -> None:
        transport = MockTransport([b"RAMP,ON,2048\n"])
        descriptor = describe(CommandChannel(transport), 2)
        assert transport.sent == [b"ARB2DEF?\n"]
        assert descriptor.slot == 2
        assert descriptor.byte_length == 4096

    @pytest.mark.parametrize("slot", [0, 5, -1])
    def test_invalid_slot_rejected_before_send(self, slot: int) -> None:
        transport = MockTransport()
        with pytest.raises(LxiPreconditionError, match="slot"):
            describe(CommandChannel(transport), slot)
        assert transport.sent == []

    def test_check_slot_returns_slot(self) -> None:
        assert check_slot(4) == 4
