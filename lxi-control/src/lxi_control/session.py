"""TCP session to a single LXI instrument.

A :class:`TcpSession` owns exactly one socket for its lifetime. Nagle
buffering is disabled because the instrument protocol is latency sensitive,
and every receive waits for readiness with ``select()`` so a silent
instrument surfaces as :class:`LxiTimeoutError` rather than a generic socket
error.

Typical usage::

    from lxi_control import connect

    with connect("192.168.1.50") as session:
        session.send(b"*IDN?\\n")
        print(session.receive(1500))
"""

from __future__ import annotations

import logging
import select
import socket
from types import TracebackType

from lxi_control.errors import LxiConnectError, LxiIoError, LxiTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9221
DEFAULT_TIMEOUT = 4.0


class TcpSession:
    """Blocking TCP session implementing :class:`LxiTransport`.

    Args:
        host: Instrument IPv4 address.
        port: Instrument TCP port (default 9221).
        timeout: Connect and receive deadline in seconds (default 4).
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._host = host
        self._port = port
        self._timeout = timeout
        self._sock: socket.socket | None = None

    @property
    def host(self) -> str:
        """Instrument address."""
        return self._host

    @property
    def port(self) -> int:
        """Instrument port."""
        return self._port

    @property
    def timeout(self) -> float:
        """Default deadline in seconds."""
        return self._timeout

    @property
    def is_open(self) -> bool:
        """Return True if the session holds a connected socket."""
        return self._sock is not None

    # -- Lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """Connect to the instrument.

        Idempotent: calling ``open()`` on an open session does nothing.

        Raises:
            LxiConnectError: If the socket cannot be created or connected.
        """
        if self._sock is not None:
            return
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as exc:
            raise LxiConnectError(f"Error creating socket: {exc}") from exc
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.settimeout(self._timeout)
            sock.connect((self._host, self._port))
        except OSError as exc:
            sock.close()
            raise LxiConnectError(
                f"Error establishing TCP connection to {self._host}:{self._port}: {exc}"
            ) from exc
        self._sock = sock
        logger.debug("Connected to %s:%d", self._host, self._port)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._sock is None:
            return
        sock, self._sock = self._sock, None
        sock.close()
        logger.debug("Disconnected from %s:%d", self._host, self._port)

    def __enter__(self) -> TcpSession:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- Data transfer -------------------------------------------------------

    def send(self, data: bytes) -> int:
        """Send all of ``data``.

        Args:
            data: Bytes to transmit.

        Returns:
            Number of bytes sent.

        Raises:
            LxiIoError: If the session is closed or the send fails.
        """
        sock = self._require_open("send")
        try:
            sock.sendall(data)
        except OSError as exc:
            raise LxiIoError(f"Error sending to {self._host}: {exc}") from exc
        return len(data)

    def receive(self, max_bytes: int, timeout: float | None = None) -> bytes:
        """Wait for data and return up to ``max_bytes`` of it.

        Args:
            max_bytes: Upper bound on the number of bytes returned.
            timeout: Deadline in seconds, defaults to the session timeout.

        Returns:
            The received bytes (never empty).

        Raises:
            LxiTimeoutError: If no data arrives before the deadline.
            LxiIoError: If the receive fails or the instrument closed the
                connection.
        """
        sock = self._require_open("receive")
        deadline = self._timeout if timeout is None else timeout
        try:
            readable, _, _ = select.select([sock], [], [], deadline)
        except OSError as exc:
            raise LxiIoError(f"Error reading response: {exc}") from exc
        if not readable:
            raise LxiTimeoutError(
                f"Timeout waiting for response from {self._host} after {deadline:g} s"
            )
        try:
            data = sock.recv(max_bytes)
        except OSError as exc:
            raise LxiIoError(f"Error reading response: {exc}") from exc
        if not data:
            raise LxiIoError(f"Connection closed by {self._host}")
        return data

    def _require_open(self, operation: str) -> socket.socket:
        if self._sock is None:
            raise LxiIoError(f"Cannot {operation}: session to {self._host} is not open")
        return self._sock


def connect(host: str, port: int = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT) -> TcpSession:
    """Open a :class:`TcpSession` to an instrument.

    Args:
        host: Instrument IPv4 address.
        port: Instrument TCP port.
        timeout: Connect and receive deadline in seconds.

    Returns:
        An open session. Use it as a context manager to guarantee release.

    Raises:
        LxiConnectError: If the connection cannot be established.
    """
    session = TcpSession(host, port, timeout)
    session.open()
    return session
