"""Arbitrary waveform metadata.

The generator holds user waveforms in four slots, ``ARB1`` to ``ARB4``.
Querying ``ARB<n>DEF?`` returns ``name,interpolation,length`` where
``length`` is the number of 16-bit points. The resulting
:class:`WaveformDescriptor` sizes the block transfer of a read-back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from lxi_control.errors import LxiPreconditionError, LxiProtocolError

if TYPE_CHECKING:
    from lxi_control.channel import CommandChannel

SLOT_COUNT = 4
NAME_MAX_LENGTH = 39
BYTES_PER_POINT = 2


@dataclass(frozen=True)
class WaveformDescriptor:
    """Definition of the waveform stored in one slot.

    Attributes:
        name: Waveform name as stored on the instrument.
        interpolation: Interpolation setting, ``"ON"`` or ``"OFF"``.
        length: Number of points.
        slot: Arbitrary waveform slot (1-4).
    """

    name: str
    interpolation: str
    length: int
    slot: int

    @property
    def byte_length(self) -> int:
        """Payload size of the waveform in bytes."""
        return BYTES_PER_POINT * self.length

    @property
    def interpolated(self) -> bool:
        """Return True if interpolation is switched on."""
        return self.interpolation.upper() == "ON"


def check_slot(slot: int) -> int:
    """Validate an arbitrary waveform slot number.

    Raises:
        LxiPreconditionError: If ``slot`` is outside 1-4.
    """
    if not 1 <= slot <= SLOT_COUNT:
        raise LxiPreconditionError(f"Waveform slot must be 1-{SLOT_COUNT}, got {slot}")
    return slot


def parse_definition(reply: bytes | str, slot: int) -> WaveformDescriptor:
    """Parse an ``ARB<n>DEF?`` reply.

    Args:
        reply: Raw reply, e.g. ``b"MYWAVE,ON,4096\\n"``.
        slot: Slot the query was sent for.

    Returns:
        The parsed descriptor.

    Raises:
        LxiProtocolError: If the reply does not have exactly three fields,
            the name is too long, or the length is not a non-negative
            decimal integer.
    """
    text = reply.decode("ascii", errors="replace") if isinstance(reply, bytes) else reply
    fields = text.strip().split(",")
    if len(fields) != 3:
        raise LxiProtocolError(
            f"Expected 3 comma-separated fields in waveform definition, "
            f"got {len(fields)}: {text!r}"
        )
    name, interpolation, length_text = (field.strip() for field in fields)
    if len(name) > NAME_MAX_LENGTH:
        raise LxiProtocolError(f"Waveform name longer than {NAME_MAX_LENGTH} characters: {name!r}")
    if not length_text.isdigit():
        raise LxiProtocolError(f"Waveform length is not a decimal integer: {length_text!r}")
    return WaveformDescriptor(
        name=name,
        interpolation=interpolation,
        length=int(length_text),
        slot=slot,
    )


def describe(channel: CommandChannel, slot: int) -> WaveformDescriptor:
    """Query and parse the definition of the waveform in ``slot``.

    Args:
        channel: Command channel to the generator.
        slot: Arbitrary waveform slot (1-4).

    Raises:
        LxiPreconditionError: If ``slot`` is out of range.
        LxiProtocolError: If the reply cannot be parsed.
    """
    check_slot(slot)
    return parse_definition(channel.query(f"ARB{slot}DEF?"), slot)
