"""Tests for edge-timing bit recovery."""

import logging

import pytest

from po_modem.modem.edge_timing import EdgeTimingDemodulator, quantize_interval
from po_modem.modem.types import CrossingDirection, ZeroCrossing


def crossing(direction: CrossingDirection, delta: float) -> ZeroCrossing:
  return ZeroCrossing(direction=direction, timestamp=0.0, delta=delta)


@pytest.mark.parametrize("k", [1, 2, 3, 5, 8])
def test_exact_interval_has_no_uncertainty(k) -> None:
  """Test that an exact multiple of the bit period quantizes cleanly."""
  assert quantize_interval(k * 3.0, 3.0) == (k, 0.0)


def test_uncertainty_sign() -> None:
  """Test that short intervals give positive and long ones negative values."""
  bits, uncertainty = quantize_interval(5.5, 3.0)
  assert bits == 2
  assert uncertainty == pytest.approx((2 - 5.5 / 3.0) / 3.0)
  assert uncertainty > 0
  assert quantize_interval(6.5, 3.0)[1] < 0


class TestEdgeTimingDemodulator:
  """Tests for EdgeTimingDemodulator."""

  def test_polarity_and_run_length(self) -> None:
    """Test that rising crossings emit zeros and falling crossings ones."""
    crossings = [
      crossing(CrossingDirection.RISING, 9.0),
      crossing(CrossingDirection.FALLING, 6.0),
      crossing(CrossingDirection.RISING, 3.0),
    ]
    bits = list(EdgeTimingDemodulator(samples_per_bit=3.0).demodulate(crossings))
    assert bits == [0, 0, 0, 1, 1, 0]

  def test_first_crossing_emits_nothing(self) -> None:
    crossings = [crossing(CrossingDirection.FALLING, 0.0)]
    assert list(EdgeTimingDemodulator(3.0).demodulate(crossings)) == []

  def test_short_glitch_emits_nothing(self) -> None:
    """Test that an interval rounding to zero bits is dropped."""
    crossings = [crossing(CrossingDirection.RISING, 1.0)]
    assert list(EdgeTimingDemodulator(3.0).demodulate(crossings)) == []

  def test_high_uncertainty_is_logged(self, caplog) -> None:
    """Test that bad timing is reported but still decoded."""
    demodulator = EdgeTimingDemodulator(samples_per_bit=1.0, max_uncertainty=0.25)
    with caplog.at_level(logging.WARNING):
      bits = list(demodulator.demodulate([crossing(CrossingDirection.FALLING, 2.4)]))

    assert bits == [1, 1]
    assert "uncertainty" in caplog.text

  def test_clean_timing_is_quiet(self, caplog) -> None:
    demodulator = EdgeTimingDemodulator(samples_per_bit=3.0)
    with caplog.at_level(logging.WARNING):
      list(demodulator.demodulate([crossing(CrossingDirection.RISING, 6.0)]))
    assert caplog.records == []

  def test_invalid_bit_period(self) -> None:
    with pytest.raises(ValueError, match="samples_per_bit"):
      EdgeTimingDemodulator(samples_per_bit=0)
