"""Arbitrary function generator emulator.

Provides an in-process model of a TTi TG5011 style generator that answers the
commands used by lxi-control: identification, waveform definitions and
binary waveform transfers. Serve it over TCP with
:class:`lxi_control.server.EmulatorServer` to exercise the full engine
without hardware.

Like the real instrument, the emulator stays silent on commands it does not
recognize, so a client waiting for a reply times out.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt

from lxi_control.block import decode_samples, encode_samples, format_header
from lxi_control.waveform import NAME_MAX_LENGTH, SLOT_COUNT

logger = logging.getLogger(__name__)

_DEF_QUERY_RE = re.compile(r"^ARB([1-4])DEF\?$")
_DEF_SET_RE = re.compile(r"^ARB([1-4])DEF\s+([^,]*),\s*(ON|OFF)$", re.IGNORECASE)
_DATA_RE = re.compile(r"^ARB([1-4])(\?)?$")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FunctionGeneratorEmulatorConfig:
    """Configuration for a function generator emulator instance.

    Args:
        identity: ``*IDN?`` response string.
        max_points: Largest waveform accepted per slot (> 0).
    """

    identity: str
    max_points: int = 131072

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("identity must be non-empty")
        if self.max_points <= 0:
            raise ValueError("max_points must be > 0")


# ---------------------------------------------------------------------------
# Internal slot state
# ---------------------------------------------------------------------------


@dataclass
class _SlotState:
    name: str
    interpolation: str = "ON"
    samples: npt.NDArray[np.int16] = field(default_factory=lambda: np.zeros(0, dtype=np.int16))


def _default_slots() -> list[_SlotState]:
    return [_SlotState(name=f"ARB{n}") for n in range(1, SLOT_COUNT + 1)]


# ---------------------------------------------------------------------------
# Emulator
# ---------------------------------------------------------------------------


class FunctionGeneratorEmulator:
    """In-process arbitrary function generator.

    Args:
        config: Emulator configuration.
    """

    def __init__(self, config: FunctionGeneratorEmulatorConfig) -> None:
        self._config = config
        self._slots = _default_slots()
        self.received: list[str] = []

    def handle(self, command: str, payload: bytes | None = None) -> bytes | None:
        """Process one command.

        Args:
            command: Command text without terminator or block header.
            payload: Block payload that followed the command, if any.

        Returns:
            Bytes to send back, or ``None`` when no reply is due.
        """
        line = command.strip()
        self.received.append(line)
        upper = line.upper()

        if upper == "*IDN?":
            return (self._config.identity + "\n").encode("ascii")
        if upper == "*RST":
            self._slots = _default_slots()
            return None

        match = _DEF_QUERY_RE.match(upper)
        if match:
            slot = self._slots[int(match.group(1)) - 1]
            return f"{slot.name},{slot.interpolation},{len(slot.samples)}\n".encode("ascii")

        match = _DEF_SET_RE.match(line)
        if match:
            self._define(int(match.group(1)), match.group(2).strip(), match.group(3).upper())
            return None

        match = _DATA_RE.match(upper)
        if match:
            slot_index = int(match.group(1)) - 1
            if match.group(2):
                return self._read_block(slot_index)
            if payload is not None:
                self._write_block(slot_index, payload)
            return None

        logger.debug("Emulator ignoring unrecognized command: %s", line)
        return None

    def waveform(self, slot: int) -> npt.NDArray[np.int16]:
        """Return a copy of the samples stored in ``slot`` (1-4)."""
        return self._slots[slot - 1].samples.copy()

    # -- Handlers -------------------------------------------------------------

    def _define(self, slot: int, name: str, interpolation: str) -> None:
        if len(name) > NAME_MAX_LENGTH:
            return
        state = self._slots[slot - 1]
        state.name = name
        state.interpolation = interpolation

    def _read_block(self, slot_index: int) -> bytes:
        data = encode_samples(self._slots[slot_index].samples)
        return format_header(len(data)).lstrip() + data

    def _write_block(self, slot_index: int, payload: bytes) -> None:
        if len(payload) % 2 or len(payload) // 2 > self._config.max_points:
            logger.debug("Emulator rejecting %d byte block", len(payload))
            return
        self._slots[slot_index].samples = decode_samples(payload).copy()


def make_tg5011_emulator() -> FunctionGeneratorEmulator:
    """Create an emulator identifying as a TTi TG5011."""
    return FunctionGeneratorEmulator(
        FunctionGeneratorEmulatorConfig(
            identity="THURLBY THANDAR, TG5011, 0, 1.16-1.28-2.01",
        )
    )
