"""Arbitrary function generator driver.

Wraps a :class:`CommandChannel` with the waveform operations of a TTi TG5011
class generator: defining a slot from sample data and reading a slot back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from lxi_control.amplitude import normalize
from lxi_control.block import decode_samples, encode_samples
from lxi_control.channel import CommandChannel
from lxi_control.session import DEFAULT_PORT, DEFAULT_TIMEOUT, connect
from lxi_control.waveform import WaveformDescriptor, check_slot, describe

logger = logging.getLogger(__name__)

_ARB_RE = re.compile(r"^\s*ARB([1-4])(\?)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class ArbCommand:
    """A bare ``ARBn`` or ``ARBn?`` command.

    Attributes:
        slot: Arbitrary waveform slot (1-4).
        is_query: True for the read-back form ``ARBn?``.
    """

    slot: int
    is_query: bool


def parse_arb_command(command: str) -> ArbCommand | None:
    """Recognize the waveform transfer commands.

    Returns:
        The parsed command, or ``None`` if ``command`` is anything other
        than ``ARBn`` or ``ARBn?`` (case-insensitive).
    """
    match = _ARB_RE.match(command)
    if match is None:
        return None
    return ArbCommand(slot=int(match.group(1)), is_query=match.group(2) is not None)


class FunctionGenerator:
    """High-level driver for an LXI arbitrary function generator.

    Args:
        channel: An open :class:`CommandChannel` to the instrument.
    """

    def __init__(self, channel: CommandChannel) -> None:
        self._channel = channel

    @property
    def channel(self) -> CommandChannel:
        """The underlying command channel."""
        return self._channel

    # -- Identity / lifecycle -----------------------------------------------

    def identify(self) -> str:
        """Query instrument identification string (``*IDN?``)."""
        return self._channel.identify()

    def execute(self, command: str) -> bytes | None:
        """Send a raw SCPI command, returning the reply for queries."""
        return self._channel.execute(command)

    def close(self) -> None:
        """Close the underlying connection."""
        self._channel.close()

    # -- Arbitrary waveforms ------------------------------------------------

    def describe_waveform(self, slot: int) -> WaveformDescriptor:
        """Query the definition of the waveform stored in ``slot``."""
        return describe(self._channel, slot)

    def upload_waveform(
        self,
        slot: int,
        samples: npt.ArrayLike,
        source_amplitude: int | None = None,
    ) -> int:
        """Load sample data into an arbitrary waveform slot.

        Args:
            slot: Arbitrary waveform slot (1-4).
            samples: 16-bit samples. Sent as-is unless ``source_amplitude``
                is given.
            source_amplitude: Peak amplitude of ``samples``. When set, the
                samples are normalized into the generator domain first.

        Returns:
            Number of payload bytes sent.

        Raises:
            LxiPreconditionError: If the slot is out of range or the
                amplitude is zero.
        """
        check_slot(slot)
        if source_amplitude is not None:
            data: npt.ArrayLike = normalize(samples, source_amplitude)
        else:
            data = np.asarray(samples)
        payload = encode_samples(data)
        logger.info("Loading %d points into ARB%d", len(payload) // 2, slot)
        self._channel.write_block(f"ARB{slot}", payload)
        return len(payload)

    def download_waveform(
        self, slot: int
    ) -> tuple[WaveformDescriptor, npt.NDArray[np.int16]]:
        """Read an arbitrary waveform slot back from the instrument.

        Returns:
            Tuple of (descriptor, samples in host byte order).

        Raises:
            LxiPreconditionError: If the slot is out of range.
            LxiTimeoutError: If the instrument does not answer.
            LxiProtocolError: If the definition or block is malformed.
        """
        descriptor = self.describe_waveform(slot)
        logger.info(
            "Reading ARB%d '%s': %d points (%d bytes)",
            slot,
            descriptor.name,
            descriptor.length,
            descriptor.byte_length,
        )
        payload = self._channel.read_block(f"ARB{slot}?", descriptor.byte_length)
        return descriptor, decode_samples(payload)


def create_instrument(
    host: str,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_TIMEOUT,
) -> FunctionGenerator:
    """Create a :class:`FunctionGenerator` connected over TCP.

    Args:
        host: Instrument IPv4 address.
        port: Instrument TCP port.
        timeout: Connect and receive deadline in seconds.

    Returns:
        A connected driver. Call ``close()`` when done.

    Raises:
        LxiConnectError: If the connection cannot be established.
    """
    return FunctionGenerator(CommandChannel(connect(host, port, timeout)))
