"""Categorizing demodulator with closed-loop clock recovery.

Each symbol period is one carrier cycle. Three points of the period (start,
quarter, half) are classified as HIGH, LOW or a rising/dropping zero, and the
three categories are located inside 1.5 cycles of the reference waveform.
Where they fit gives the phase.

After each symbol, the first zero crossing of the window is compared with the
anchors where crossings can legitimately occur. When it is more than half a
sample off, the next window is started one sample earlier or later. Symbol
starts are kept as fractional stream positions, so a period that is not a
whole number of samples does not drift against the windows.
"""

import logging
import math
from collections.abc import Iterable, Iterator, Sequence

import numpy as np

from po_modem.modem.demodulator import Demodulator
from po_modem.modem.streams import Stream
from po_modem.modem.types import (
  PHASES,
  DecodedSample,
  DemodulationError,
  Phase,
  SampleCategory,
)

logger = logging.getLogger(__name__)

# 1.5 carrier cycles of a sine starting at a rising zero. Protocol constant.
REFERENCE_PATTERN: tuple[SampleCategory, ...] = (
  SampleCategory.ZERO_RISING,
  SampleCategory.HIGH,
  SampleCategory.ZERO_DROPPING,
  SampleCategory.LOW,
  SampleCategory.ZERO_RISING,
  SampleCategory.HIGH,
)

MAX_CLOCK_ERROR = 0.5


def _interpolate(window: Sequence[float], index: float) -> float:
  lower = min(math.floor(index), len(window) - 2)
  return window[lower] + (index - lower) * (window[lower + 1] - window[lower])


def get_sample(window: Sequence[float], index: float) -> DecodedSample:
  """Linearly interpolate the window at a fractional index.

  The slope is taken over two samples: centered on `index`, or over the
  first two samples of the window when `index` is closer than one sample to
  its start. Past the last pair of samples the last difference is
  extrapolated.
  """
  if len(window) < 2:
    msg = f"Need at least 2 samples to interpolate, got {len(window)}"
    raise ValueError(msg)
  if index < 0:
    msg = f"Sample index must not be negative, got {index}"
    raise ValueError(msg)

  value = _interpolate(window, index)
  before = max(index - 1, 0.0)
  slope = (_interpolate(window, before + 2) - _interpolate(window, before)) / 2
  return DecodedSample(value=float(value), slope=float(slope))


def categorize_sample(
  sample: DecodedSample,
  high_amplitude: float,
  low_amplitude: float,
  samples_per_symbol: float,
) -> SampleCategory:
  """Classify a sample as a level or a zero crossing.

  Raises:
    DemodulationError: The sample is a zero with a flat slope, or sits in the
      band between the thresholds without a clear slope.
  """
  value, slope = sample.value, sample.slope
  if value > high_amplitude:
    return SampleCategory.HIGH
  if value < -high_amplitude:
    return SampleCategory.LOW

  if abs(value) < low_amplitude:
    if slope > 0:
      return SampleCategory.ZERO_RISING
    if slope < 0:
      return SampleCategory.ZERO_DROPPING
    msg = f"Zero slope at a zero sample ({sample})"
    raise DemodulationError(msg)

  if abs(slope) > high_amplitude / samples_per_symbol / 4:
    # Steep enough to be a crossing even outside the zero band.
    return SampleCategory.ZERO_RISING if slope > 0 else SampleCategory.ZERO_DROPPING
  msg = (
    f"Sample {sample} is neither beyond +/-{high_amplitude:.1f} nor a crossing "
    f"inside +/-{low_amplitude:.1f}"
  )
  raise DemodulationError(msg)


def match_phase(categories: Sequence[SampleCategory]) -> Phase:
  """Find the phase whose slice of the reference pattern matches.

  Raises:
    DemodulationError: No rotation of the reference pattern matches.
  """
  width = len(categories)
  for offset, phase in enumerate(PHASES):
    if tuple(REFERENCE_PATTERN[offset : offset + width]) == tuple(categories):
      return phase
  msg = f"Sample categories {[str(c) for c in categories]} match no phase"
  raise DemodulationError(msg)


def first_crossing(window: Sequence[float]) -> float | None:
  """Interpolated position of the first sign change in the window."""
  values = np.asarray(window, dtype=np.float64)
  signs = np.sign(values)
  changes = np.flatnonzero(signs[:-1] != signs[1:])
  if changes.size == 0:
    return None
  i = int(changes[0])
  return i + abs(values[i] / (values[i] - values[i + 1]))


def recover_clock(
  window: Sequence[float], samples_per_symbol: float, offset: float = 0.0
) -> int:
  """Decide how to shift the next window.

  Args:
    window: Samples of the symbol just decoded.
    samples_per_symbol: Symbol period in samples.
    offset: Position of the symbol start within the window.

  Returns:
    -1 when the crossing comes early (start the next window one sample
    earlier), +1 when it comes late, 0 otherwise.
  """
  crossing = first_crossing(window)
  if crossing is None:
    return 0
  anchors = (
    offset,
    offset + samples_per_symbol / 4,
    offset + samples_per_symbol / 2,
  )
  distance = min((crossing - anchor for anchor in anchors), key=abs)
  if distance < -MAX_CLOCK_ERROR:
    return -1
  if distance > MAX_CLOCK_ERROR:
    return 1
  return 0


def detect_first_peak(
  stream: Stream[int], threshold: int = 50
) -> tuple[int, list[int]] | None:
  """Find the first peak above `threshold`.

  Returns:
    The index of the peak within the consumed samples and the consumed
    samples themselves, or None if the stream ends before any sample exceeds
    the threshold.
  """
  consumed: list[int] = []
  for item in stream:
    consumed.append(item)
    if item > threshold:
      break
  else:
    return None

  highest = consumed[-1]
  for item in stream:
    consumed.append(item)
    if item < highest:
      return len(consumed) - 2, consumed
    highest = item
  # Still rising when the stream ended.
  return len(consumed) - 1, consumed


class CategorizingDemodulator(Demodulator):
  """Decodes phases from sample levels and slopes, correcting clock drift."""

  def __init__(
    self,
    samples_per_symbol: float,
    high_amplitude: float | None = None,
    low_amplitude: float | None = None,
    peak_threshold: int = 50,
    high_ratio: float = 0.7,
    low_ratio: float = 0.5,
    align_to_peak: bool = False,
  ) -> None:
    """Initialize the demodulator.

    Args:
      samples_per_symbol: Symbol period in samples.
      high_amplitude: Level above which a sample is HIGH. Derived from the
        first peak when omitted.
      low_amplitude: Level below which a sample is a zero. Derived from the
        first peak when omitted.
      peak_threshold: Level a sample must exceed to start the peak search.
      high_ratio: `high_amplitude` as a fraction of the peak.
      low_ratio: `low_amplitude` as a fraction of the peak.
      align_to_peak: Start decoding at the peak rather than replaying every
        sample consumed by the peak search.
    """
    if samples_per_symbol <= 1:
      msg = f"samples_per_symbol must be greater than 1, got {samples_per_symbol}"
      raise ValueError(msg)
    self.samples_per_symbol = samples_per_symbol
    self.high_amplitude = high_amplitude
    self.low_amplitude = low_amplitude
    self.peak_threshold = peak_threshold
    self.high_ratio = high_ratio
    self.low_ratio = low_ratio
    self.align_to_peak = align_to_peak

  @property
  def name(self) -> str:
    return f"Categorizing({self.samples_per_symbol:g} samples/symbol)"

  @property
  def anchors(self) -> tuple[float, float, float]:
    """Offsets of the start, quarter and half samples."""
    sps = self.samples_per_symbol
    return 0.0, sps / 4, sps / 2

  def demodulate(self, samples: Iterable[int]) -> Iterator[Phase]:
    stream = Stream(samples)
    high, low = self.high_amplitude, self.low_amplitude
    if high is None or low is None:
      peak = detect_first_peak(stream, self.peak_threshold)
      if peak is None:
        logger.info(f"No sample above {self.peak_threshold}; nothing to decode")
        return
      peak_index, consumed = peak
      peak_value = consumed[peak_index]
      if high is None:
        high = peak_value * self.high_ratio
      if low is None:
        low = peak_value * self.low_ratio
      logger.debug(
        f"Reference peak {peak_value} at sample {peak_index}: "
        f"high={high:.1f}, low={low:.1f}"
      )
      stream.push_front(consumed[peak_index:] if self.align_to_peak else consumed)

    yield from self._decode_periods(stream, high, low)

  def _decode_periods(
    self, stream: Stream[int], high: float, low: float
  ) -> Iterator[Phase]:
    sps = self.samples_per_symbol
    period = math.ceil(sps)
    # Stream position of the current symbol; fractional periods carry over.
    symbol_start = 0.0
    window: list[int] = []
    window_start = 0
    symbol_index = 0
    while True:
      first = math.floor(symbol_start)
      skip = first - window_start
      if skip >= len(window):
        missing = skip - len(window)
        if len(stream.take(missing)) < missing:
          return
        window = []
      else:
        window = window[skip:]
      window_start = first

      window += stream.take(period - len(window))
      if len(window) < period:
        return

      offset = symbol_start - first
      try:
        categories = [
          categorize_sample(get_sample(window, offset + anchor), high, low, sps)
          for anchor in self.anchors
        ]
        phase = match_phase(categories)
      except DemodulationError:
        logger.error(f"Symbol {symbol_index}: window {window}")
        raise
      yield phase

      clock_shift = recover_clock(window, sps, offset)
      if clock_shift:
        logger.debug(f"Symbol {symbol_index}: clock shift {clock_shift:+d}")
      symbol_start += sps + clock_shift
      symbol_index += 1
