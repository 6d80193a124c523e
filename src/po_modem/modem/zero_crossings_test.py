"""Tests for zero-crossing extraction."""

import numpy as np
import pytest

from po_modem.modem.types import CrossingDirection
from po_modem.modem.zero_crossings import ZeroCrossingDetector, interpolate_crossing


def test_interpolate_crossing() -> None:
  """Test linear interpolation between the last samples on each side."""
  assert interpolate_crossing(4, 20, 5, -30) == pytest.approx(4.4)
  assert interpolate_crossing(7, -20, 9, 20) == pytest.approx(8.0)


def test_interpolate_crossing_without_prior_sample() -> None:
  """Test that index 0 on the far side places the crossing half a sample back."""
  assert interpolate_crossing(0, 100, 1, -50) == 0.5


class TestZeroCrossingDetector:
  """Tests for ZeroCrossingDetector."""

  def test_short_burst(self) -> None:
    """Test the falling and rising crossings of a short noisy burst."""
    samples = [0, 0, 50, 40, 20, -30, -50, -20, 30]
    crossings = list(ZeroCrossingDetector(noise_threshold=10).detect(samples))

    assert [c.direction for c in crossings] == [
      CrossingDirection.FALLING,
      CrossingDirection.RISING,
    ]
    assert crossings[0].timestamp == pytest.approx(4.4)
    assert crossings[1].timestamp == pytest.approx(7.4)
    assert crossings[0].delta == 0.0
    assert crossings[1].delta == pytest.approx(3.0)

  def test_square_wave(self) -> None:
    """Test that a square wave crosses halfway between its edges."""
    samples = ([50] * 3 + [-50] * 3) * 4
    crossings = list(ZeroCrossingDetector().detect(samples))

    timestamps = [c.timestamp for c in crossings]
    assert timestamps == pytest.approx([2.5, 5.5, 8.5, 11.5, 14.5, 17.5, 20.5])
    assert [c.delta for c in crossings[1:]] == pytest.approx([3.0] * 6)

  def test_sine_matches_true_crossings(self) -> None:
    """Test that interpolated crossings sit close to the analytic zeros."""
    n = np.arange(60)
    samples = 100 * np.sin(2 * np.pi * (n + 0.3) / 12)
    crossings = list(ZeroCrossingDetector().detect(samples.tolist()))

    expected = [6 * k - 0.3 for k in range(1, 10)]
    assert len(crossings) == len(expected)
    for crossing, true_time in zip(crossings, expected, strict=True):
      assert abs(crossing.timestamp - true_time) < 0.05

  def test_directions_alternate(self) -> None:
    """Test that crossing directions strictly alternate."""
    rng = np.random.default_rng(7)
    samples = rng.integers(-128, 128, size=2000).tolist()
    directions = [c.direction for c in ZeroCrossingDetector().detect(samples)]

    assert directions
    assert all(a != b for a, b in zip(directions, directions[1:], strict=False))

  def test_leading_crossing_uses_half_sample_rule(self) -> None:
    """Test the crossing after a stream that opens on sample 0."""
    crossings = list(ZeroCrossingDetector().detect([100, -50, 50]))

    assert [c.timestamp for c in crossings] == pytest.approx([0.5, 1.5])
    assert [c.delta for c in crossings] == pytest.approx([0.0, 1.0])

  @pytest.mark.parametrize("samples", [[], [50, 60, 5, -5, 70], [-3, 4, -9, 8]])
  def test_no_transitions(self, samples) -> None:
    """Test that noise-level wiggles produce no crossings."""
    assert list(ZeroCrossingDetector().detect(samples)) == []

  def test_rerun_is_identical(self) -> None:
    samples = ([60] * 4 + [-60] * 5) * 3
    detector = ZeroCrossingDetector()
    assert list(detector.detect(samples)) == list(detector.detect(samples))
