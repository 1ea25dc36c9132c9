"""Tests for waveform amplitude normalization."""

from __future__ import annotations

import numpy as np
import pytest

from lxi_control.amplitude import GENERATOR_AMPLITUDE, normalize
from lxi_control.errors import LxiPreconditionError


class TestNormalize:
    """Tests for normalize."""

    def test_equal_amplitudes_only_offset(self) -> None:
        samples = np.array([0, 100, -100, 8192, -8192], dtype=np.int16)
        result = normalize(samples, GENERATOR_AMPLITUDE)
        assert result.tolist() == [8192, 8292, 8092, 16384, 0]

    def test_scales_to_generator_peak(self) -> None:
        result = normalize(np.array([2048, -2048, 4096]), 4096)
        assert result.tolist() == [12288, 4096, 16384]

    def test_rounds_half_away_from_zero(self) -> None:
        result = normalize(np.array([1, -1]), 16384)
        assert result.tolist() == [8193, 8191]

    def test_rounds_to_nearest(self) -> None:
        result = normalize(np.array([1, -1]), 3)
        assert result.tolist() == [10923, 5461]

    def test_negative_overflow_wraps_then_masks(self) -> None:
        result = normalize(np.array([-16384]), 8192)
        assert result.tolist() == [0x6000]

    def test_positive_overflow_masked_to_15_bits(self) -> None:
        result = normalize(np.array([32767]), 8192)
        assert result.tolist() == [0x1FFF]

    def test_result_is_uint16(self) -> None:
        result = normalize(np.zeros(4, dtype=np.int16), 100)
        assert result.dtype == np.uint16
        assert result.tolist() == [8192] * 4

    def test_custom_generator_amplitude(self) -> None:
        result = normalize(np.array([50]), 100, generator_amplitude=1000)
        assert result.tolist() == [1500]

    def test_zero_amplitude_rejected(self) -> None:
        with pytest.raises(LxiPreconditionError, match="Zero source amplitude"):
            normalize(np.array([1, 2, 3]), 0)

    def test_zero_amplitude_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            normalize([0], 0)

    def test_output_is_finite_and_in_range(self) -> None:
        rng = np.random.default_rng(7)
        samples = rng.integers(-32768, 32767, size=1024, endpoint=True)
        result = normalize(samples, 1)
        assert result.max() <= 0x7FFF
