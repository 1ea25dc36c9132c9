"""LXI function generator control for lxi-control.

This package drives networked SCPI function generators over plain TCP. It
includes:

- TCP session management with connect and receive deadlines
- A command channel that frames SCPI commands and waits only for queries
- An IEEE 488.2 definite-length block codec for arbitrary waveforms
- Amplitude normalization into the generator's 15-bit sample domain
- Waveform metadata parsing and a function generator driver
- Broadcast discovery of instruments on the local subnet
- An emulator and TCP emulator server for running without hardware

Typical usage::

    from lxi_control import create_instrument

    generator = create_instrument("192.168.1.50")
    print(generator.identify())
    descriptor, samples = generator.download_waveform(1)
    generator.close()
"""

__version__ = "1.1.0"

from lxi_control.amplitude import GENERATOR_AMPLITUDE, normalize
from lxi_control.block import (
    CHUNK_SIZE,
    FIRST_CHUNK_SIZE,
    decode_samples,
    encode_samples,
    format_header,
    header_length,
    parse_header,
    receive_block,
)
from lxi_control.channel import CommandChannel, has_query
from lxi_control.config import LxiConfig, load_config
from lxi_control.discovery import GETPORT_REQUEST, discover, probe
from lxi_control.emulator import (
    FunctionGeneratorEmulator,
    FunctionGeneratorEmulatorConfig,
    make_tg5011_emulator,
)
from lxi_control.errors import (
    LxiConnectError,
    LxiError,
    LxiIoError,
    LxiPreconditionError,
    LxiProtocolError,
    LxiTimeoutError,
)
from lxi_control.generator import ArbCommand, FunctionGenerator, create_instrument, parse_arb_command
from lxi_control.server import EmulatorServer
from lxi_control.session import TcpSession, connect
from lxi_control.transport import LxiTransport
from lxi_control.waveform import WaveformDescriptor, check_slot, describe, parse_definition

__all__ = [
    "__version__",
    # Amplitude
    "GENERATOR_AMPLITUDE",
    "normalize",
    # Block codec
    "CHUNK_SIZE",
    "FIRST_CHUNK_SIZE",
    "decode_samples",
    "encode_samples",
    "format_header",
    "header_length",
    "parse_header",
    "receive_block",
    # Command channel
    "CommandChannel",
    "has_query",
    # Configuration
    "LxiConfig",
    "load_config",
    # Discovery
    "GETPORT_REQUEST",
    "discover",
    "probe",
    # Emulator
    "EmulatorServer",
    "FunctionGeneratorEmulator",
    "FunctionGeneratorEmulatorConfig",
    "make_tg5011_emulator",
    # Errors
    "LxiConnectError",
    "LxiError",
    "LxiIoError",
    "LxiPreconditionError",
    "LxiProtocolError",
    "LxiTimeoutError",
    # Generator driver
    "ArbCommand",
    "FunctionGenerator",
    "create_instrument",
    "parse_arb_command",
    # Session
    "LxiTransport",
    "TcpSession",
    "connect",
    # Waveform metadata
    "WaveformDescriptor",
    "check_slot",
    "describe",
    "parse_definition",
]
