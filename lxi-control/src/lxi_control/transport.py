"""Byte transport protocol definition.

This module defines the :class:`LxiTransport` protocol, the interface the
command channel and block codec use to move bytes to and from an instrument.

Implementations include:
- :class:`lxi_control.TcpSession`: TCP socket session for real instruments
- In-memory mock transports used by the unit tests
"""

from __future__ import annotations

from typing import Protocol


class LxiTransport(Protocol):
    """Protocol for raw byte exchange with an instrument.

    Unlike a line-oriented SCPI transport, this works on bytes so that binary
    waveform blocks can travel over the same stream as text commands.

    This is a structural subtyping protocol. Any class that implements
    ``send()``, ``receive()`` and ``close()`` with these signatures is a
    valid transport.

    Example:
        >>> class LoopbackTransport:
        ...     def __init__(self) -> None:
        ...         self._buffer = b""
        ...     def send(self, data: bytes) -> int:
        ...         self._buffer += data
        ...         return len(data)
        ...     def receive(self, max_bytes: int, timeout: float | None = None) -> bytes:
        ...         data, self._buffer = self._buffer[:max_bytes], self._buffer[max_bytes:]
        ...         return data
        ...     def close(self) -> None:
        ...         pass
        ...
        >>> transport: LxiTransport = LoopbackTransport()
    """

    def send(self, data: bytes) -> int:
        """Send all of ``data`` to the instrument.

        Args:
            data: Bytes to transmit.

        Returns:
            Number of bytes sent.
        """
        ...

    def receive(self, max_bytes: int, timeout: float | None = None) -> bytes:
        """Receive up to ``max_bytes`` from the instrument.

        Args:
            max_bytes: Upper bound on the number of bytes returned.
            timeout: Deadline in seconds; ``None`` uses the transport default.

        Returns:
            At least one byte of received data.

        Raises:
            LxiTimeoutError: If nothing arrives before the deadline.
        """
        ...

    def close(self) -> None:
        """Close the transport and release resources."""
        ...
