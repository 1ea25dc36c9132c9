"""YAML configuration for lxi-control.

A configuration file supplies defaults for the instrument connection and the
waveform amplitude so they need not be repeated on every command line. Command
line options override file values.

Example YAML configuration:
    instrument:
      host: "192.168.1.50"
      port: 9221
      timeout: 4

    waveform:
      amplitude: 8192
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from lxi_control.session import DEFAULT_PORT, DEFAULT_TIMEOUT


@dataclass(frozen=True)
class LxiConfig:
    """Connection and waveform settings.

    Attributes:
        host: Instrument IPv4 address, or None when not configured.
        port: Instrument TCP port.
        timeout: Connect and receive deadline in seconds.
        amplitude: Fixed source peak amplitude overriding the one read
            from a waveform file, or None.
    """

    host: str | None = None
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    amplitude: int | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be 1-65535, got {self.port}")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.amplitude == 0:
            raise ValueError("amplitude must be nonzero")

    def merged(self, **overrides: Any) -> LxiConfig:
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in overrides.items() if k in known and v is not None}
        return replace(self, **changes)


def load_config(path: str | Path) -> LxiConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed configuration. Missing keys keep their defaults.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the config is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError("Config must be a YAML mapping")

    instrument = data.get("instrument", {}) or {}
    waveform = data.get("waveform", {}) or {}
    if not isinstance(instrument, dict):
        raise ValueError("instrument must be a mapping")
    if not isinstance(waveform, dict):
        raise ValueError("waveform must be a mapping")

    kwargs: dict[str, Any] = {}
    if "host" in instrument:
        kwargs["host"] = str(instrument["host"])
    if "port" in instrument:
        kwargs["port"] = int(instrument["port"])
    if "timeout" in instrument:
        kwargs["timeout"] = float(instrument["timeout"])
    if waveform.get("amplitude") is not None:
        kwargs["amplitude"] = int(waveform["amplitude"])

    return LxiConfig(**kwargs)
