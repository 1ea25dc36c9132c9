"""Command-line interface for lxi-control.

Sends SCPI commands to an LXI function generator, loads and reads back
arbitrary waveforms, and discovers instruments on the local subnet.

Usage:
    # Send a command and print the reply
    lxi-control --ip 192.168.1.50 --scpi "*IDN?"

    # Load a waveform file into ARB1, fitting its amplitude to the generator
    lxi-control --ip 192.168.1.50 --scpi ARB1 --file pulse.wfm --adjust

    # Read ARB1 back into ~/test2.out (and ~/test2.out.wfm)
    lxi-control --host functiongenerator.example.org --scpi "arb1?" --file ~/test2.out

    # Discover instruments
    lxi-control --discover

Exit codes:
    0 success, 1 usage or precondition error, 2 timeout, 3 I/O error,
    4 connection failure, 5 protocol error.
"""

from __future__ import annotations

import argparse
import logging
import socket
import sys
from pathlib import Path

from lxi_control import __version__
from lxi_control.config import LxiConfig, load_config
from lxi_control.discovery import discover
from lxi_control.errors import LxiError, LxiPreconditionError
from lxi_control.generator import FunctionGenerator, create_instrument, parse_arb_command
from lxi_control.wfm import read_wfm, write_raw, write_wfm

logger = logging.getLogger(__name__)

# Sentinel for a bare --adjust: amplitude comes from the config or the file header.
_AMPLITUDE_FROM_FILE = "file"


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def resolve_host(hostname: str) -> str:
    """Resolve a host name to an IPv4 address.

    Raises:
        LxiError: If the name cannot be resolved.
    """
    try:
        return socket.gethostbyname(hostname)
    except OSError as exc:
        raise LxiError(f"Could not resolve {hostname}: {exc}") from exc


def cmd_discover(config: LxiConfig) -> int:
    """Discover instruments and print their identities."""
    print("Discovering LXI devices on hosts subnet - please wait...")
    print("\nDiscovered devices:")
    for address, identity in discover(config.timeout, config.port):
        print(f"IP {address}  -  {identity}")
    return 0


def cmd_upload(
    generator: FunctionGenerator,
    slot: int,
    path: Path,
    adjust: int | str | None,
    config: LxiConfig,
) -> int:
    """Load a waveform file into an arbitrary waveform slot."""
    samples, file_amplitude = read_wfm(path)
    print(f"File {path} successfully opened, waveform size is {len(samples)} points")
    amplitude: int | None = None
    if isinstance(adjust, int):
        amplitude = adjust
    elif adjust == _AMPLITUDE_FROM_FILE:
        amplitude = config.amplitude if config.amplitude is not None else file_amplitude
    if amplitude is not None:
        logger.debug("Normalizing with source amplitude %d", amplitude)
    generator.upload_waveform(slot, samples, amplitude)
    return 0


def cmd_download(generator: FunctionGenerator, slot: int, path: Path) -> int:
    """Read an arbitrary waveform slot back into files."""
    descriptor, samples = generator.download_waveform(slot)
    print(
        f"ARB{descriptor.slot}: {descriptor.name}, interpolation {descriptor.interpolation}, "
        f"{descriptor.length} points"
    )
    write_raw(path, samples)
    wfm_path = path.with_name(path.name + ".wfm")
    write_wfm(wfm_path, samples)
    print(f"Wrote data to {path} and {wfm_path}")
    return 0


def cmd_command(generator: FunctionGenerator, command: str) -> int:
    """Send a plain command and print any reply verbatim."""
    print(f"Sending command: {command}")
    response = generator.execute(command)
    if response is not None:
        sys.stdout.write(response.decode("ascii", errors="replace"))
    return 0


def run(args: argparse.Namespace, config: LxiConfig) -> int:
    """Dispatch parsed arguments. LxiError propagates to the caller."""
    if args.discover:
        return cmd_discover(config)

    if config.host is None:
        print("Error: Missing option: --ip or --host", file=sys.stderr)
        return 1
    if not args.scpi:
        print("Error: Missing option: --scpi", file=sys.stderr)
        return 1

    arb = parse_arb_command(args.scpi) if args.file else None
    if args.file and arb is None:
        print(
            "File defined but command is not ARBx or ARBx?, "
            "no waveform will be transferred",
            file=sys.stderr,
        )
    if arb is not None and not arb.is_query and args.adjust == 0:
        raise LxiPreconditionError("Zero amplitude is impossible")

    generator = create_instrument(config.host, config.port, config.timeout)
    try:
        if arb is not None and arb.is_query:
            return cmd_download(generator, arb.slot, Path(args.file).expanduser())
        if arb is not None:
            return cmd_upload(generator, arb.slot, Path(args.file).expanduser(), args.adjust, config)
        return cmd_command(generator, args.scpi)
    finally:
        generator.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lxi-control",
        description="Control LXI function generators over TCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--ip", "-i", help="Remote device IP")
    target.add_argument("--host", "-n", help="Remote device host name")
    parser.add_argument(
        "--port", "-p", type=int,
        help="Remote device port (default: 9221)"
    )
    parser.add_argument(
        "--scpi", "-s",
        help="SCPI command. Commands are not case sensitive"
    )
    parser.add_argument(
        "--file", "-f",
        help="Waveform file: loaded for ARBx, written for ARBx?"
    )
    parser.add_argument(
        "--adjust", "-a", type=int, nargs="?", const=_AMPLITUDE_FROM_FILE,
        help="Fit a waveform of peak amplitude AMP to the generator's 8192 counts "
             "(default: read from the first 2 bytes of the .wfm file)"
    )
    parser.add_argument(
        "--timeout", "-t", type=float,
        help="Network timeout in seconds (default: 4)"
    )
    parser.add_argument(
        "--discover", "-d", action="store_true",
        help="Discover LXI devices on hosts subnet"
    )
    parser.add_argument("--config", "-c", help="YAML configuration file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--version", "-v", action="version", version=f"lxi-control v{__version__}"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.discover and not args.scpi:
        parser.print_help()
        return 1

    setup_logging(args.debug)

    try:
        config = load_config(args.config) if args.config else LxiConfig()
        host = resolve_host(args.host) if args.host else args.ip
        config = config.merged(host=host, port=args.port, timeout=args.timeout)
        return run(args, config)
    except LxiError as exc:
        logger.error("%s", exc)
        return exc.exit_code
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
