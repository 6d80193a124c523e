"""Tests for capture-path impairments."""

import logging
from fractions import Fraction

import numpy as np
import pytest
from pydantic import ValidationError

from po_modem.modem.channel import (
  AWGN,
  ChannelSimulator,
  ClockDrift,
  Gain,
  ImpairmentStage,
  Quantizer,
  SampleSlip,
)


def tone(n_samples: int = 10000) -> np.ndarray:
  return 100 * np.sin(2 * np.pi * np.arange(n_samples) / 12)


class TestAWGN:
  """Tests for AWGN."""

  @pytest.mark.parametrize("snr_db", [0, 10, 20, 40])
  def test_snr(self, snr_db) -> None:
    """Test that AWGN achieves the target SNR."""
    signal = tone()
    noisy = AWGN(snr_db=snr_db, seed=42).apply(signal, sample_rate=93600)

    noise_power = np.mean((noisy - signal) ** 2)
    measured_snr_db = 10 * np.log10(np.mean(signal**2) / noise_power)
    assert abs(measured_snr_db - snr_db) < 0.5

  def test_deterministic_with_seed(self) -> None:
    signal = tone(1000)
    first = AWGN(snr_db=10, seed=42).apply(signal, 93600)
    second = AWGN(snr_db=10, seed=42).apply(signal, 93600)
    np.testing.assert_array_equal(first, second)

  def test_different_seeds(self) -> None:
    signal = tone(1000)
    first = AWGN(snr_db=10, seed=1).apply(signal, 93600)
    second = AWGN(snr_db=10, seed=2).apply(signal, 93600)
    assert not np.array_equal(first, second)


class TestQuantizer:
  """Tests for Quantizer."""

  def test_rounds_and_clips(self) -> None:
    quantized = Quantizer(bits=8).apply(np.array([200.4, -300.0, 1.6, -0.4]), 93600)
    np.testing.assert_array_equal(quantized, [127, -128, 2, 0])

  def test_invalid_width(self) -> None:
    with pytest.raises(ValidationError):
      Quantizer(bits=1)


class TestClockImpairments:
  """Tests for SampleSlip and ClockDrift."""

  def test_sample_slip_drops_every_nth(self) -> None:
    slipped = SampleSlip(every=4).apply(np.arange(10, dtype=np.float64), 93600)
    np.testing.assert_array_equal(slipped, [0, 1, 2, 4, 5, 6, 8, 9])

  def test_sample_slip_requires_period(self) -> None:
    with pytest.raises(ValidationError):
      SampleSlip(every=1)

  def test_clock_drift_ratio(self) -> None:
    assert ClockDrift(ppm=1000).ratio() == Fraction(1001, 1000)

  def test_clock_drift_changes_length(self) -> None:
    resampled = ClockDrift(ppm=1000).apply(tone(10000), 93600)
    assert len(resampled) == 10010

  def test_zero_drift_is_identity(self) -> None:
    signal = tone(100)
    np.testing.assert_array_equal(ClockDrift(ppm=0).apply(signal, 93600), signal)


def test_gain() -> None:
  gained = Gain(gain_db=20).apply(np.array([1.0, -2.0]), 93600)
  np.testing.assert_allclose(gained, [10.0, -20.0])


def test_impairments_are_frozen() -> None:
  impairment = Gain(gain_db=3)
  with pytest.raises(ValidationError):
    impairment.gain_db = 6


class TestChannelSimulator:
  """Tests for ChannelSimulator."""

  def test_sorts_into_canonical_order(self, caplog) -> None:
    """Test that out-of-order impairments are reordered with a warning."""
    with caplog.at_level(logging.WARNING):
      channel = ChannelSimulator(
        [Quantizer(), AWGN(snr_db=30, seed=0), Gain(gain_db=-3)], sample_rate=93600
      )

    assert [imp.stage for imp in channel.impairments] == [
      ImpairmentStage.PLAYBACK,
      ImpairmentStage.NOISE,
      ImpairmentStage.CAPTURE,
    ]
    assert "reordered" in caplog.text

  def test_canonical_order_is_quiet(self, caplog) -> None:
    with caplog.at_level(logging.WARNING):
      ChannelSimulator([SampleSlip(every=9), Quantizer()], sample_rate=93600)
    assert caplog.records == []

  def test_apply_copies_input(self) -> None:
    signal = np.array([0.4, 1.6, 300.0])
    captured = ChannelSimulator([Quantizer()], sample_rate=93600).apply(signal)

    np.testing.assert_array_equal(captured, [0.0, 2.0, 127.0])
    np.testing.assert_array_equal(signal, [0.4, 1.6, 300.0])

  def test_name(self) -> None:
    channel = ChannelSimulator([SampleSlip(every=9), Quantizer()], sample_rate=93600)
    assert channel.name == "SampleSlip(1/9)_Quantizer(8bit)"
    assert ChannelSimulator([], sample_rate=93600).name == "ideal"
