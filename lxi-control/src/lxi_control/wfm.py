"""Waveform file input and output.

A ``.wfm`` file, as produced by the TTi waveform editor, is a little-endian
signed 16-bit amplitude header followed by little-endian signed 16-bit
samples. A raw dump is the samples alone.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt

_FILE_DTYPE = np.dtype("<i2")

# Amplitude header written with read-back waveforms: the generator's peak.
WFM_AMPLITUDE = 0x2000


def read_wfm(path: str | Path) -> tuple[npt.NDArray[np.int16], int]:
    """Read a ``.wfm`` file.

    Args:
        path: File to read.

    Returns:
        Tuple of (samples, absolute peak amplitude from the header).

    Raises:
        ValueError: If the file is shorter than its header or the sample
            data has an odd byte length.
    """
    raw = Path(path).read_bytes()
    if len(raw) < 2:
        raise ValueError(f"Could not read header in file {path}")
    if len(raw) % 2:
        raise ValueError(f"Waveform data in {path} has an odd byte length")
    data = np.frombuffer(raw, dtype=_FILE_DTYPE)
    amplitude = abs(int(data[0]))
    return data[1:].astype(np.int16), amplitude


def write_raw(path: str | Path, samples: npt.ArrayLike) -> None:
    """Write samples without a header."""
    Path(path).write_bytes(np.asarray(samples).astype(_FILE_DTYPE).tobytes())


def write_wfm(path: str | Path, samples: npt.ArrayLike, amplitude: int = WFM_AMPLITUDE) -> None:
    """Write samples preceded by an amplitude header."""
    header = np.array([amplitude], dtype=_FILE_DTYPE).tobytes()
    body = np.asarray(samples).astype(_FILE_DTYPE).tobytes()
    Path(path).write_bytes(header + body)
