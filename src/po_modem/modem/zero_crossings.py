"""Zero-crossing extraction with sub-sample timing."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from po_modem.modem.types import CrossingDirection, ZeroCrossing


@dataclass
class _DetectorState:
  """Last significant sample on each side of the axis."""

  positive_index: int = 0
  positive_value: float = 0
  negative_index: int = 0
  negative_value: float = 0
  above_axis: bool = True
  last_crossing: float | None = None


def interpolate_crossing(
  before_index: int, before_value: float, after_index: int, after_value: float
) -> float:
  """Linearly interpolate where the waveform crosses zero.

  A `before_index` of 0 means there was no real observation on the other side
  yet; the crossing is then placed half a sample before `after_index` instead
  of producing a large spurious interval at stream start.
  """
  if before_index == 0:
    return after_index - 0.5
  fraction = before_value / (before_value - after_value)
  return before_index + fraction * (after_index - before_index)


class ZeroCrossingDetector:
  """Turns a sample stream into interpolated zero crossings."""

  def __init__(self, noise_threshold: int = 10) -> None:
    """Initialize the detector.

    Args:
      noise_threshold: Samples with a magnitude below this are ignored; they
        count for neither side of the axis.
    """
    self.noise_threshold = noise_threshold

  def detect(self, samples: Iterable[float]) -> Iterator[ZeroCrossing]:
    """Yield a crossing each time the significant samples change sign."""
    state = _DetectorState()
    for index, value in enumerate(samples):
      if abs(value) < self.noise_threshold:
        continue

      if value < 0:
        state.negative_index, state.negative_value = index, value
        if not state.above_axis:
          continue
        state.above_axis = False
        direction = CrossingDirection.FALLING
        timestamp = interpolate_crossing(
          state.positive_index, state.positive_value, index, value
        )
      else:
        state.positive_index, state.positive_value = index, value
        if state.above_axis:
          continue
        state.above_axis = True
        direction = CrossingDirection.RISING
        timestamp = interpolate_crossing(
          state.negative_index, state.negative_value, index, value
        )

      delta = 0.0 if state.last_crossing is None else timestamp - state.last_crossing
      state.last_crossing = timestamp
      yield ZeroCrossing(direction=direction, timestamp=timestamp, delta=delta)
