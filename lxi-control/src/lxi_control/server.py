"""TCP server exposing a function generator emulator.

Serves a :class:`FunctionGeneratorEmulator` over TCP with the same framing as
the real instrument, so :class:`lxi_control.TcpSession`, netcat or any other
socket client can talk to it.

Example:
    Start an emulator server on an ephemeral port::

        from lxi_control import EmulatorServer, make_tg5011_emulator

        server = EmulatorServer(make_tg5011_emulator(), port=0)
        server.start()

        host, port = server.address
        print(f"lxi-control --ip {host} --port {port} --scpi '*IDN?'")

        server.stop()
"""

from __future__ import annotations

import logging
import socketserver
import threading
from typing import Any, BinaryIO

from lxi_control.block import BLOCK_MARKER, CHUNK_SIZE, FIRST_CHUNK_SIZE
from lxi_control.channel import TERMINATOR
from lxi_control.emulator import FunctionGeneratorEmulator

logger = logging.getLogger(__name__)


def _read_exact(stream: BinaryIO, size: int) -> bytes | None:
    data = stream.read(size)
    if data is None or len(data) < size:
        return None
    return data


def read_frame(stream: BinaryIO) -> tuple[str, bytes | None] | None:
    """Read one command, and its block payload if it carries one.

    A frame is either ``<text>\\n`` or ``<text> #<d><N><N bytes>\\n``. A
    ``#`` only opens a block when it follows a space.

    Args:
        stream: Buffered binary stream from the client.

    Returns:
        Tuple of (command text, payload or None), or ``None`` at end of
        stream.
    """
    text = bytearray()
    while True:
        byte = stream.read(1)
        if not byte:
            return None
        if byte == TERMINATOR:
            return text.decode("ascii", errors="replace"), None
        if byte == BLOCK_MARKER and text.endswith(b" "):
            break
        text.extend(byte)

    count = _read_exact(stream, 1)
    if count is None or not count.isdigit():
        return None
    digits = _read_exact(stream, int(count))
    if digits is None or not digits.isdigit():
        return None
    payload = _read_exact(stream, int(digits))
    if payload is None:
        return None
    stream.read(len(TERMINATOR))
    return text.decode("ascii", errors="replace"), payload


class _LxiRequestHandler(socketserver.StreamRequestHandler):
    """Handle one TCP connection, forwarding frames to the emulator.

    Replies are written in the segment sizes the real instrument uses for
    block read-backs.

    Attributes:
        server: Reference to the parent _LxiTcpServer for accessing the emulator.
    """

    server: _LxiTcpServer

    def handle(self) -> None:
        """Process frames until the client disconnects."""
        while True:
            frame = read_frame(self.rfile)
            if frame is None:
                return
            command, payload = frame
            response = self.server.emulator.handle(command, payload)
            if response is not None:
                self._write_segmented(response)

    def _write_segmented(self, response: bytes) -> None:
        size = FIRST_CHUNK_SIZE
        offset = 0
        while offset < len(response):
            self.wfile.write(response[offset : offset + size])
            self.wfile.flush()
            offset += size
            size = CHUNK_SIZE


class _LxiTcpServer(socketserver.TCPServer):
    """TCPServer subclass that holds a reference to the emulator.

    Attributes:
        allow_reuse_address: Set to True to allow quick server restart.
        emulator: The emulator to serve.
    """

    allow_reuse_address = True

    def __init__(
        self,
        server_address: tuple[str, int],
        emulator: FunctionGeneratorEmulator,
        **kwargs: Any,
    ) -> None:
        self.emulator = emulator
        super().__init__(server_address, _LxiRequestHandler, **kwargs)


class EmulatorServer:
    """TCP server wrapping a :class:`FunctionGeneratorEmulator`.

    Runs in a background daemon thread and handles one client connection
    at a time.

    Args:
        emulator: The emulator to serve.
        host: Bind address (default ``"127.0.0.1"``).
        port: Bind port (default ``9221``). Use ``0`` for an OS-assigned
            ephemeral port.
    """

    def __init__(
        self,
        emulator: FunctionGeneratorEmulator,
        host: str = "127.0.0.1",
        port: int = 9221,
    ) -> None:
        self._server = _LxiTcpServer((host, port), emulator)
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start serving in a daemon thread."""
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.debug("Emulator server listening on %s:%d", *self.address)

    def stop(self) -> None:
        """Shut down the server and wait for the thread to exit."""
        self._server.shutdown()
        if self._thread is not None:
            self._thread.join()
        self._server.server_close()

    @property
    def emulator(self) -> FunctionGeneratorEmulator:
        """The emulator being served."""
        return self._server.emulator

    @property
    def address(self) -> tuple[str, int]:
        """Return the actual bound ``(host, port)`` address.

        Useful when binding to port 0 to get an ephemeral port assigned
        by the operating system.
        """
        addr = self._server.server_address
        return (str(addr[0]), int(addr[1]))
