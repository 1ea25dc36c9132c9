"""SCPI command channel over a byte transport.

This module provides :class:`CommandChannel`, which frames text commands for
the instrument, decides whether a reply is expected, and carries binary
waveform blocks on the same stream.

Typical usage::

    from lxi_control import CommandChannel, connect

    with connect("192.168.1.50") as session:
        channel = CommandChannel(session)
        print(channel.identify())
        channel.execute("OUTPUT ON")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lxi_control.block import format_header, receive_block
from lxi_control.errors import LxiPreconditionError

if TYPE_CHECKING:
    from lxi_control.transport import LxiTransport

logger = logging.getLogger(__name__)

TERMINATOR = b"\n"

# Largest reply read in a single receive for plain queries.
MAX_RESPONSE_SIZE = 189500


def has_query(command: str) -> bool:
    """Return True if ``command`` expects a response.

    Any ``?`` anywhere in the text marks a query. SCPI arguments that
    legitimately contain ``?`` (quoted strings, for instance) are therefore
    treated as queries too, and the channel will wait for a reply that never
    comes.

    Args:
        command: SCPI command text.
    """
    return "?" in command


class CommandChannel:
    """Command/response exchange with one instrument.

    At most one exchange is in flight at a time. Block transfers are sent as
    consecutive writes on the same transport so nothing can interleave with
    the payload.

    Args:
        transport: An open :class:`LxiTransport`.
    """

    def __init__(self, transport: LxiTransport) -> None:
        self._transport = transport

    @property
    def transport(self) -> LxiTransport:
        """The underlying transport."""
        return self._transport

    # -- Core operations -----------------------------------------------------

    def send_command(self, command: str) -> int:
        """Send a text command followed by a single line feed.

        Args:
            command: SCPI command text without a terminator.

        Returns:
            Number of bytes sent, terminator included.
        """
        logger.debug("Sending command: %s", command)
        return self._transport.send(command.encode("ascii") + TERMINATOR)

    def receive_response(
        self,
        command: str,
        max_bytes: int = MAX_RESPONSE_SIZE,
        timeout: float | None = None,
    ) -> bytes | None:
        """Receive the reply to ``command`` if it is a query.

        Args:
            command: The command that was sent.
            max_bytes: Upper bound on the reply size.
            timeout: Deadline in seconds; ``None`` uses the transport default.

        Returns:
            The raw reply bytes, line ending included, or ``None`` when
            ``command`` is not a query. Non-queries never touch the transport.

        Raises:
            LxiTimeoutError: If the instrument does not answer in time.
        """
        if not has_query(command):
            return None
        response = self._transport.receive(max_bytes, timeout)
        logger.debug("Received %d bytes", len(response))
        return response

    def execute(self, command: str) -> bytes | None:
        """Send ``command`` and return its reply if it is a query."""
        self.send_command(command)
        return self.receive_response(command)

    def query(self, command: str) -> str:
        """Send a query and return its reply as stripped text.

        Raises:
            LxiPreconditionError: If ``command`` is not a query.
        """
        if not has_query(command):
            raise LxiPreconditionError(f"Not a query: {command!r}")
        self.send_command(command)
        response = self._transport.receive(MAX_RESPONSE_SIZE)
        return response.decode("ascii", errors="replace").strip()

    def identify(self) -> str:
        """Query the identification string (``*IDN?``)."""
        return self.query("*IDN?")

    # -- Block transfers -----------------------------------------------------

    def write_block(self, command: str, payload: bytes) -> None:
        """Send a command carrying a definite-length binary block.

        The command text goes out without a terminator, followed by the
        block header, the payload and a final line feed.

        Args:
            command: SCPI command text, e.g. ``"ARB1"``.
            payload: Wire-format sample bytes.

        Raises:
            LxiPreconditionError: If ``payload`` has an odd length.
        """
        if len(payload) % 2:
            raise LxiPreconditionError(
                f"Waveform payload must have an even byte length, got {len(payload)}"
            )
        header = format_header(len(payload))
        logger.debug("Sending block: %s%s (%d bytes)", command, header.decode("ascii"), len(payload))
        self._transport.send(command.encode("ascii"))
        self._transport.send(header)
        self._transport.send(payload)
        self._transport.send(TERMINATOR)

    def read_block(self, command: str, byte_length: int, timeout: float | None = None) -> bytes:
        """Send a block query and return the received payload.

        Args:
            command: SCPI query, e.g. ``"ARB1?"``.
            byte_length: Expected payload length in bytes.
            timeout: Per-receive deadline; ``None`` uses the transport default.

        Returns:
            Payload bytes with the block header stripped.

        Raises:
            LxiPreconditionError: If ``command`` is not a query.
            LxiTimeoutError: If the instrument does not answer.
            LxiProtocolError: If the block is malformed or truncated.
        """
        if not has_query(command):
            raise LxiPreconditionError(f"Not a query: {command!r}")
        self.send_command(command)
        return receive_block(self._transport, byte_length, timeout)

    # -- Lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Close the underlying transport."""
        self._transport.close()
