"""IEEE 488.2 definite-length block codec for arbitrary waveforms.

A definite-length block is framed as ``#<d><N><data>`` where ``N`` is the
payload length in bytes and ``d`` is the number of decimal digits in ``N``.
When a block follows a command on the same line, a single space separates
the two, e.g. ``ARB1 #42048<2048 bytes>\\n``.

Samples travel as big-endian unsigned 16-bit words. The host representation
is a numpy ``int16`` array, so every word is byte-swapped on the way out
and on the way back on a little-endian host.

Chunk sizes:
    The TG5011 answers an ``ARBn?`` read-back with a first TCP segment of
    :data:`FIRST_CHUNK_SIZE` bytes (header plus leading samples) followed by
    segments of at most :data:`CHUNK_SIZE` bytes. These values were observed
    on that instrument's firmware and are not guaranteed by LXI or VXI-11.
    :func:`receive_block` requests data in those sizes but accepts any
    segmentation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from lxi_control.errors import LxiPreconditionError, LxiProtocolError, LxiTimeoutError

if TYPE_CHECKING:
    from lxi_control.transport import LxiTransport

logger = logging.getLogger(__name__)

FIRST_CHUNK_SIZE = 1432
CHUNK_SIZE = 1426

BLOCK_MARKER = b"#"

# One ASCII digit carries the digit count.
MAX_LENGTH_DIGITS = 9

_WIRE_DTYPE = np.dtype(">u2")


def _length_digits(byte_length: int) -> str:
    if byte_length < 0:
        raise LxiPreconditionError(f"Block length must be non-negative, got {byte_length}")
    digits = str(byte_length)
    if len(digits) > MAX_LENGTH_DIGITS:
        raise LxiPreconditionError(f"Block length {byte_length} needs more than 9 digits")
    return digits


def format_header(byte_length: int) -> bytes:
    """Build the block header sent after a command.

    Args:
        byte_length: Payload length in bytes.

    Returns:
        The header including its leading separator space,
        e.g. ``b" #42048"`` for 2048 bytes.

    Raises:
        LxiPreconditionError: If the length is negative or too large.
    """
    digits = _length_digits(byte_length)
    return f" #{len(digits)}{digits}".encode("ascii")


def header_length(byte_length: int) -> int:
    """Return the size of a received block header for a payload size.

    The received header is ``#``, the digit-count digit and the length
    digits, without the separator space.
    """
    return 2 + len(_length_digits(byte_length))


def parse_header(data: bytes) -> tuple[int, int]:
    """Parse a received block header.

    Args:
        data: Received bytes starting at the ``#`` marker.

    Returns:
        Tuple of (declared payload length, header size in bytes).

    Raises:
        LxiProtocolError: If the marker, digit count or length digits are
            missing or malformed.
    """
    if data[:1] != BLOCK_MARKER:
        raise LxiProtocolError(f"Block header does not start with '#': {data[:16]!r}")
    count_char = data[1:2]
    if not count_char.isdigit() or count_char == b"0":
        raise LxiProtocolError(f"Invalid block header digit count: {data[:16]!r}")
    count = int(count_char)
    length_digits = data[2 : 2 + count]
    if len(length_digits) != count or not length_digits.isdigit():
        raise LxiProtocolError(
            f"Block header declares {count} length digits: {data[:2 + count]!r}"
        )
    return int(length_digits), 2 + count


def encode_samples(samples: npt.ArrayLike) -> bytes:
    """Convert host samples to wire bytes.

    Each sample is reinterpreted as an unsigned 16-bit word and written
    big-endian, which swaps the two bytes of every word on a little-endian
    host. Signed samples keep their two's complement bit pattern.

    Args:
        samples: 16-bit samples (``int16`` or ``uint16``).

    Returns:
        ``2 * len(samples)`` bytes.
    """
    array = np.asarray(samples)
    if array.dtype == np.int16:
        words = array.view(np.uint16)
    else:
        words = array.astype(np.uint16)
    return words.astype(_WIRE_DTYPE).tobytes()


def decode_samples(data: bytes) -> npt.NDArray[np.int16]:
    """Convert wire bytes back to host ``int16`` samples.

    Args:
        data: Big-endian 16-bit words.

    Returns:
        Samples in host byte order.

    Raises:
        LxiPreconditionError: If ``data`` has an odd length.
    """
    if len(data) % 2:
        raise LxiPreconditionError(f"Sample data must have an even byte length, got {len(data)}")
    words = np.frombuffer(data, dtype=_WIRE_DTYPE).astype(np.uint16)
    return words.view(np.int16)


def receive_block(
    transport: LxiTransport,
    byte_length: int,
    timeout: float | None = None,
    *,
    first_chunk_size: int = FIRST_CHUNK_SIZE,
    chunk_size: int = CHUNK_SIZE,
) -> bytes:
    """Accumulate a definite-length block reply and return its payload.

    Reads until the header plus ``byte_length`` payload bytes have arrived.
    Receives may return fewer bytes than requested and chunk boundaries need
    not align with sample boundaries.

    Args:
        transport: Open transport the reply arrives on.
        byte_length: Expected payload length from the waveform descriptor.
        timeout: Per-receive deadline; ``None`` uses the transport default.
        first_chunk_size: Size requested by the first receive.
        chunk_size: Size requested by every later receive.

    Returns:
        The payload with the header stripped.

    Raises:
        LxiTimeoutError: If nothing at all arrives before the deadline.
        LxiProtocolError: If the transfer stops short of the expected total,
            or the header is malformed or declares a different length.
    """
    if byte_length % 2:
        raise LxiPreconditionError(f"Block length must be even, got {byte_length}")
    total = header_length(byte_length) + byte_length
    buffer = bytearray()
    request = first_chunk_size
    while len(buffer) < total:
        try:
            chunk = transport.receive(min(request, total - len(buffer)), timeout)
        except LxiTimeoutError:
            if not buffer:
                raise
            raise LxiProtocolError(
                f"Truncated block transfer: received {len(buffer)} of {total} bytes"
            ) from None
        buffer.extend(chunk)
        request = chunk_size
        logger.debug("Block chunk %d bytes, %d/%d received", len(chunk), len(buffer), total)

    declared, header_size = parse_header(bytes(buffer[: header_length(byte_length)]))
    if declared != byte_length:
        raise LxiProtocolError(
            f"Block header declares {declared} bytes, expected {byte_length}"
        )
    return bytes(buffer[header_size:])
