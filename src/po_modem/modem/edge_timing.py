"""Edge-timing demodulation: zero-crossing intervals to line bits.

The line code carries a run length in the time between crossings: an
interval of `n` bit periods ending in a rising crossing is `n` zeros, one
ending in a falling crossing is `n` ones.
"""

import logging
from collections.abc import Iterable, Iterator

from po_modem.modem.types import Bit, CrossingDirection, ZeroCrossing

logger = logging.getLogger(__name__)


def quantize_interval(delta: float, samples_per_bit: float) -> tuple[int, float]:
  """Quantize a crossing interval to a whole number of bits.

  Args:
    delta: Interval between two crossings in samples.
    samples_per_bit: Nominal bit period in samples.

  Returns:
    The rounded bit count and its uncertainty. An uncertainty of 0 means the
    interval was an exact multiple of the bit period; large values mean the
    interval sat between two counts, or the assumed bit rate is wrong.
  """
  fractional = delta / samples_per_bit
  bits = round(fractional)
  uncertainty = (bits - fractional) / samples_per_bit
  return bits, uncertainty


class EdgeTimingDemodulator:
  """Infers the raw bit sequence from zero-crossing intervals."""

  def __init__(self, samples_per_bit: float, max_uncertainty: float = 0.25) -> None:
    """Initialize the demodulator.

    Args:
      samples_per_bit: Sample rate divided by the nominal line rate.
      max_uncertainty: Uncertainty above which a diagnostic is logged.
    """
    if samples_per_bit <= 0:
      msg = f"samples_per_bit must be positive, got {samples_per_bit}"
      raise ValueError(msg)
    self.samples_per_bit = samples_per_bit
    self.max_uncertainty = max_uncertainty

  def demodulate(self, crossings: Iterable[ZeroCrossing]) -> Iterator[Bit]:
    """Yield bits in arrival order."""
    for crossing in crossings:
      count, uncertainty = quantize_interval(crossing.delta, self.samples_per_bit)
      if abs(uncertainty) > self.max_uncertainty:
        logger.warning(
          f"High bit-timing uncertainty {uncertainty:+.3f} at sample "
          f"{crossing.timestamp:.2f} (interval {crossing.delta:.2f})"
        )
      bit: Bit = 0 if crossing.direction is CrossingDirection.RISING else 1
      for _ in range(count):
        yield bit
