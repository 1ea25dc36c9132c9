"""Tests for the function generator emulator and its TCP server."""

from __future__ import annotations

import io
import socket

import numpy as np
import pytest

from lxi_control.block import encode_samples
from lxi_control.emulator import (
    FunctionGeneratorEmulator,
    FunctionGeneratorEmulatorConfig,
    make_tg5011_emulator,
)
from lxi_control.server import EmulatorServer, read_frame

# ---------------------------------------------------------------------------
# Emulator
# ---------------------------------------------------------------------------


class TestEmulatorConfig:
    """Tests for FunctionGeneratorEmulatorConfig validation."""

    def test_empty_identity_rejected(self) -> None:
        with pytest.raises(ValueError, match="identity"):
            FunctionGeneratorEmulatorConfig(identity="")

    def test_non_positive_points_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_points"):
            FunctionGeneratorEmulatorConfig(identity="X", max_points=0)


class TestEmulator:
    """Tests for FunctionGeneratorEmulator.handle."""

    def test_identity(self) -> None:
        emu = make_tg5011_emulator()
        assert b"TG5011" in (emu.handle("*IDN?") or b"")

    def test_default_definition(self) -> None:
        emu = make_tg5011_emulator()
        assert emu.handle("arb3def?") == b"ARB3,ON,0\n"

    def test_define_name_and_interpolation(self) -> None:
        emu = make_tg5011_emulator()
        assert emu.handle("ARB2DEF Sweep,off") is None
        assert emu.handle("ARB2DEF?") == b"Sweep,OFF,0\n"

    def test_block_write_then_read(self) -> None:
        emu = make_tg5011_emulator()
        payload = encode_samples(np.array([8192, 0, 16384], dtype=np.int16))
        assert emu.handle("ARB1 ", payload) is None
        assert emu.handle("ARB1DEF?") == b"ARB1,ON,3\n"
        assert emu.handle("ARB1?") == b"#16" + payload
        assert emu.waveform(1).tolist() == [8192, 0, 16384]

    def test_odd_block_ignored(self) -> None:
        emu = make_tg5011_emulator()
        emu.handle("ARB1", b"\x00\x01\x02")
        assert emu.waveform(1).size == 0

    def test_oversized_block_ignored(self) -> None:
        emu = FunctionGeneratorEmulator(FunctionGeneratorEmulatorConfig(identity="X", max_points=2))
        emu.handle("ARB1", bytes(6))
        assert emu.waveform(1).size == 0

    def test_reset_clears_slots(self) -> None:
        emu = make_tg5011_emulator()
        emu.handle("ARB4", bytes(4))
        emu.handle("*RST")
        assert emu.waveform(4).size == 0

    def test_unknown_command_silent(self) -> None:
        emu = make_tg5011_emulator()
        assert emu.handle("FREQ?") is None
        assert emu.received == ["FREQ?"]


# ---------------------------------------------------------------------------
# read_frame
# ---------------------------------------------------------------------------


class TestReadFrame:
    """Tests for server frame parsing."""

    def test_plain_line(self) -> None:
        assert read_frame(io.BytesIO(b"*IDN?\n")) == ("*IDN?", None)

    def test_block_with_embedded_line_feed(self) -> None:
        stream = io.BytesIO(b"ARB1 #14\x00\n\x0a\x00\nOUTPUT ON\n")
        assert read_frame(stream) == ("ARB1 ", b"\x00\n\x0a\x00")
        assert read_frame(stream) == ("OUTPUT ON", None)

    def test_hash_inside_argument_is_not_a_block(self) -> None:
        stream = io.BytesIO(b"DISP:TEXT \"a#1\"\n*IDN?\n")
        assert read_frame(stream) == ('DISP:TEXT "a#1"', None)
        assert read_frame(stream) == ("*IDN?", None)

    def test_end_of_stream(self) -> None:
        assert read_frame(io.BytesIO(b"")) is None

    def test_truncated_block(self) -> None:
        assert read_frame(io.BytesIO(b"ARB1 #42048\x00\x00")) is None


# ---------------------------------------------------------------------------
# EmulatorServer
# ---------------------------------------------------------------------------


def _receive_exact(sock: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


class TestEmulatorServer:
    """Tests for EmulatorServer TCP serving."""

    def test_query_round_trip(self) -> None:
        server = EmulatorServer(make_tg5011_emulator(), port=0)
        server.start()
        try:
            host, port = server.address
            with socket.create_connection((host, port), timeout=5) as sock:
                sock.sendall(b"*IDN?\n")
                assert b"TG5011" in sock.recv(1500)
        finally:
            server.stop()

    def test_large_block_round_trip(self) -> None:
        server = EmulatorServer(make_tg5011_emulator(), port=0)
        server.start()
        try:
            host, port = server.address
            payload = encode_samples(np.arange(5000, dtype=np.int16))
            with socket.create_connection((host, port), timeout=5) as sock:
                sock.sendall(b"ARB1 #510000" + payload + b"\n")
                sock.sendall(b"ARB1?\n")
                reply = _receive_exact(sock, 7 + len(payload))
            assert reply == b"#510000" + payload
        finally:
            server.stop()

    def test_address_property(self) -> None:
        server = EmulatorServer(make_tg5011_emulator(), host="127.0.0.1", port=0)
        server.start()
        try:
            host, port = server.address
            assert host == "127.0.0.1"
            assert port > 0
        finally:
            server.stop()
