"""LXI instrument discovery by broadcast RPC probe.

Instruments that implement VXI-11 run an ONC RPC portmapper on UDP port 111.
Broadcasting a portmapper GETPORT call for the VXI-11 core program makes
every such instrument on the subnet answer; the source address of each
answer is all that is used. Each responder is then asked for its identity
over the regular SCPI TCP port.

Example:
    >>> for address, identity in discover(timeout=2.0):
    ...     print(f"IP {address}  -  {identity}")
"""

from __future__ import annotations

import logging
import socket
import struct
from collections.abc import Callable, Iterator

from lxi_control.channel import CommandChannel
from lxi_control.errors import LxiConnectError, LxiIoError
from lxi_control.session import DEFAULT_PORT, DEFAULT_TIMEOUT, TcpSession

logger = logging.getLogger(__name__)

BROADCAST_ADDRESS = "255.255.255.255"
PORTMAPPER_PORT = 111
MAX_DATAGRAM_SIZE = 1500

# ONC RPC call header (RFC 5531) followed by portmapper GETPORT arguments
# (RFC 1833), all big-endian 32-bit words.
_RPC_XID = 1000
_RPC_CALL = 0
_RPC_VERSION = 2
_PMAP_PROGRAM = 100000
_PMAP_VERSION = 2
_PMAP_PROC_GETPORT = 3
_AUTH_NULL = 0
_VXI11_CORE_PROGRAM = 0x0607AF
_VXI11_CORE_VERSION = 1
_IPPROTO_TCP = 6

GETPORT_REQUEST = struct.pack(
    ">14I",
    _RPC_XID,
    _RPC_CALL,
    _RPC_VERSION,
    _PMAP_PROGRAM,
    _PMAP_VERSION,
    _PMAP_PROC_GETPORT,
    _AUTH_NULL,  # credential flavor
    0,  # credential length
    _AUTH_NULL,  # verifier flavor
    0,  # verifier length
    _VXI11_CORE_PROGRAM,
    _VXI11_CORE_VERSION,
    _IPPROTO_TCP,
    0,  # port, ignored in a GETPORT call
)

SocketFactory = Callable[[], socket.socket]
SessionFactory = Callable[[str, int, float], TcpSession]


def _udp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM)


def probe(
    timeout: float = DEFAULT_TIMEOUT,
    broadcast_address: str = BROADCAST_ADDRESS,
    port: int = PORTMAPPER_PORT,
    *,
    socket_factory: SocketFactory = _udp_socket,
) -> list[str]:
    """Broadcast a GETPORT request and collect responding addresses.

    Replies are collected until a receive times out, fails or yields an
    empty datagram, so discovery lasts one round of replies plus one timeout.

    Args:
        timeout: Receive deadline in seconds.
        broadcast_address: Destination of the probe.
        port: Destination UDP port.
        socket_factory: Creates the UDP socket.

    Returns:
        Source addresses of the replies, in arrival order.

    Raises:
        LxiIoError: If the socket cannot be set up or the probe not sent.
    """
    addresses: list[str] = []
    try:
        with socket_factory() as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.settimeout(timeout)
            sock.bind(("", 0))
            sock.sendto(GETPORT_REQUEST, (broadcast_address, port))
            while True:
                try:
                    data, (address, _) = sock.recvfrom(MAX_DATAGRAM_SIZE)
                except OSError as exc:
                    logger.debug("Discovery receive ended: %s", exc)
                    break
                if not data:
                    break
                logger.debug("Discovery reply from %s (%d bytes)", address, len(data))
                addresses.append(address)
    except OSError as exc:
        raise LxiIoError(f"Discovery probe failed: {exc}") from exc
    return addresses


def discover(
    timeout: float = DEFAULT_TIMEOUT,
    instrument_port: int = DEFAULT_PORT,
    *,
    broadcast_address: str = BROADCAST_ADDRESS,
    socket_factory: SocketFactory = _udp_socket,
    session_factory: SessionFactory = TcpSession,
) -> Iterator[tuple[str, str]]:
    """Discover instruments and yield ``(address, identity)`` pairs.

    The probe runs when iteration starts and its UDP socket is closed
    before any TCP session opens. Each responder is queried with ``*IDN?``
    and its session closed afterwards, whether or not the query succeeded.
    Responders that refuse the TCP connection are skipped.

    Args:
        timeout: Deadline for the probe and for each identity query.
        instrument_port: TCP port of the instruments' SCPI service.
        broadcast_address: Destination of the probe.
        socket_factory: Creates the UDP socket.
        session_factory: Creates an unopened session for an address.

    Yields:
        Address and identity string of each instrument.
    """
    logger.info("Discovering LXI devices on hosts subnet")
    addresses = probe(timeout, broadcast_address, socket_factory=socket_factory)
    logger.info("%d device(s) answered the probe", len(addresses))
    for address in addresses:
        session = session_factory(address, instrument_port, timeout)
        try:
            session.open()
        except LxiConnectError as exc:
            logger.warning("Skipping %s: %s", address, exc)
            continue
        with session:
            identity = CommandChannel(session).identify()
        yield address, identity
