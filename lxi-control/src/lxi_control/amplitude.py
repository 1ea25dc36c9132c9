"""Waveform amplitude normalization.

The generator stores arbitrary waveform points as values centred on
:data:`GENERATOR_AMPLITUDE` with only the low 15 bits significant: a source
sample of ``-A`` maps to 0, zero maps to 8192 and ``+A`` to 16384. Waveform
files carry samples centred on zero with their own peak amplitude, so they
are rescaled and shifted into that domain before block encoding.
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from lxi_control.errors import LxiPreconditionError

GENERATOR_AMPLITUDE = 8192
SAMPLE_MASK = 0x7FFF


def normalize(
    samples: npt.ArrayLike,
    source_amplitude: int,
    generator_amplitude: int = GENERATOR_AMPLITUDE,
) -> npt.NDArray[np.uint16]:
    """Rescale source samples into the generator's offset domain.

    For each sample ``s``::

        f = s / source_amplitude * generator_amplitude
        f = f + 0.5 if f >= 0 else f - 0.5, truncated toward zero
        out = uint16(f + generator_amplitude) & 0x7FFF

    Values that fall outside 16 bits wrap around as an unsigned 16-bit
    conversion would before the mask is applied.

    Args:
        samples: Signed source samples centred on zero.
        source_amplitude: Peak amplitude of the source data. Must be nonzero.
        generator_amplitude: Peak amplitude of the generator domain.

    Returns:
        Samples in the generator domain, ready for
        :func:`lxi_control.block.encode_samples`.

    Raises:
        LxiPreconditionError: If ``source_amplitude`` is zero.
    """
    if source_amplitude == 0:
        raise LxiPreconditionError("Zero source amplitude cannot be normalized")
    scaled = np.asarray(samples, dtype=np.float64) / source_amplitude * generator_amplitude
    rounded = np.trunc(np.where(scaled >= 0, scaled + 0.5, scaled - 0.5))
    shifted = rounded.astype(np.int64) + generator_amplitude
    return (shifted & SAMPLE_MASK).astype(np.uint16)
