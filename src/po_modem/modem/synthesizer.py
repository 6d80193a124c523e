"""Phase-to-waveform synthesis (re-modulation)."""

import math
from collections.abc import Iterable, Iterator

import numpy as np
import numpy.typing as npt

from po_modem.modem.types import PHASES, Phase

TWO_PI = 2 * np.pi

# Crossfade window within a cycle, in radians.
ENVELOPE_START = 1.2 * np.pi
ENVELOPE_END = 1.8 * np.pi

# Rounding slack for the sample that lands on a cycle boundary.
BOUNDARY_TOLERANCE = 1e-9


def oscillator(
  phase: Phase, radians: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
  """Carrier waveform for a phase: A=sin, B=cos, C=-sin, D=-cos."""
  if phase is Phase.A:
    return np.sin(radians)
  if phase is Phase.B:
    return np.cos(radians)
  if phase is Phase.C:
    return -np.sin(radians)
  if phase is Phase.D:
    return -np.cos(radians)
  msg = f"Cannot synthesize phase {phase!r}"
  raise ValueError(msg)


def envelope(radians: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
  """Crossfade weight of the next symbol at a position within the cycle."""
  return np.clip(
    (radians - ENVELOPE_START) / (ENVELOPE_END - ENVELOPE_START), 0.0, 1.0
  )


def _as_phase(value: Phase | str) -> Phase:
  phase = Phase(value)
  if phase not in PHASES:
    msg = f"Cannot synthesize phase {phase!r}"
    raise ValueError(msg)
  return phase


class PhaseSynthesizer:
  """Renders a phase sequence as carrier audio, one cycle per symbol.

  The second half of each cycle crossfades into the next symbol so that phase
  changes do not produce discontinuities. The last symbol is rendered as a
  cycle of its own.
  """

  def __init__(
    self, sample_rate: int, carrier_hz: float = 7800.0, amplitude: float = 100.0
  ) -> None:
    """Initialize the synthesizer.

    Args:
      sample_rate: Output sample rate in Hz.
      carrier_hz: Carrier frequency in Hz.
      amplitude: Peak sample value.
    """
    if carrier_hz <= 0 or sample_rate <= 0:
      msg = f"Invalid rates: sample_rate={sample_rate}, carrier_hz={carrier_hz}"
      raise ValueError(msg)
    self.sample_rate = sample_rate
    self.carrier_hz = carrier_hz
    self.amplitude = amplitude

  @property
  def samples_per_cycle(self) -> float:
    return self.sample_rate / self.carrier_hz

  @property
  def radians_per_sample(self) -> float:
    return TWO_PI / self.samples_per_cycle

  def synthesize(self, phases: Iterable[Phase | str]) -> Iterator[int]:
    """Yield integer samples for the phase sequence."""
    source = iter(phases)
    first = next(source, None)
    if first is None:
      return
    current = _as_phase(first)

    sample_index = 0
    cycle_start = 0.0
    while True:
      upcoming = next(source, None)
      following = current if upcoming is None else _as_phase(upcoming)
      block, sample_index = self._render_cycle(
        current, following, sample_index, cycle_start
      )
      yield from block.tolist()
      if upcoming is None:
        return
      cycle_start += TWO_PI
      current = following

  def _render_cycle(
    self, current: Phase, following: Phase, sample_index: int, cycle_start: float
  ) -> tuple[npt.NDArray[np.int64], int]:
    """Render the samples whose position falls within one cycle."""
    candidates = np.arange(
      sample_index, sample_index + math.ceil(self.samples_per_cycle) + 2
    )
    radians = candidates * self.radians_per_sample
    radians = radians[radians <= cycle_start + TWO_PI + BOUNDARY_TOLERANCE]

    weight = envelope(radians - cycle_start)
    mixed = (1.0 - weight) * oscillator(current, radians) + weight * oscillator(
      following, radians
    )
    block = np.rint(self.amplitude * mixed).astype(np.int64)
    return block, sample_index + radians.size

  def render(self, phases: Iterable[Phase | str]) -> npt.NDArray[np.int64]:
    """Synthesize a whole sequence into an array."""
    return np.fromiter(self.synthesize(phases), dtype=np.int64)
