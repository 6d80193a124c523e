"""Strategy selection and the synthesize -> capture -> demodulate loopback."""

from collections.abc import Iterable

import numpy as np

from po_modem.config import DemodulationStrategy, ModemConfig
from po_modem.modem.categorizing import CategorizingDemodulator
from po_modem.modem.channel import ChannelSimulator
from po_modem.modem.demodulator import Demodulator, EdgeTimingPipeline
from po_modem.modem.synthesizer import PhaseSynthesizer
from po_modem.modem.types import Phase


def create_demodulator(config: ModemConfig) -> Demodulator:
  """Build the demodulator selected by `config.strategy`."""
  if config.strategy is DemodulationStrategy.EDGE_TIMING:
    return EdgeTimingPipeline(
      samples_per_bit=config.samples_per_bit,
      max_uncertainty=config.max_uncertainty,
      noise_threshold=config.noise_threshold,
    )
  if config.strategy is DemodulationStrategy.CATEGORIZING:
    return CategorizingDemodulator(
      samples_per_symbol=config.symbol_period,
      high_amplitude=config.high_amplitude,
      low_amplitude=config.low_amplitude,
      peak_threshold=config.peak_threshold,
      high_ratio=config.high_amplitude_ratio,
      low_ratio=config.low_amplitude_ratio,
      align_to_peak=config.align_to_peak,
    )
  msg = f"Unknown demodulation strategy: {config.strategy}"
  raise ValueError(msg)


class LoopbackSystem:
  """Complete verification chain: synthesizer -> capture path -> demodulator."""

  def __init__(
    self,
    synthesizer: PhaseSynthesizer,
    channel: ChannelSimulator,
    demodulator: Demodulator,
  ) -> None:
    """Initialize the loopback system.

    Args:
      synthesizer: Renders phases as audio.
      channel: Capture path simulator.
      demodulator: Recovers phases from the captured samples.
    """
    self.synthesizer = synthesizer
    self.channel = channel
    self.demodulator = demodulator

  def process(self, phases: Iterable[Phase]) -> list[Phase]:
    """Synthesize, impair and demodulate a phase sequence."""
    audio = self.synthesizer.render(phases)
    captured = self.channel.apply(audio)
    samples = np.rint(captured).astype(np.int64).tolist()
    return list(self.demodulator.demodulate(samples))

  @property
  def name(self) -> str:
    """System name for reporting."""
    return f"{self.channel.name}_{self.demodulator.name}"
