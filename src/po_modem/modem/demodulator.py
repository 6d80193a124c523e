"""Demodulation strategies.

Both strategies turn a sample stream into the same phase alphabet but behave
differently on real captures, so they are kept as separate implementations
behind one interface:

- EdgeTimingPipeline: zero crossings -> line bits -> phases. Cheap, but has
  no timing feedback and drifts on long captures.
- CategorizingDemodulator (see `categorizing`): classifies samples within
  each symbol period and corrects its own sample clock.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

from po_modem.modem.edge_timing import EdgeTimingDemodulator
from po_modem.modem.symbol_decoder import SymbolDecoder
from po_modem.modem.types import Bit, Phase
from po_modem.modem.zero_crossings import ZeroCrossingDetector


class Demodulator(ABC):
  """Abstract base class for sample-to-phase demodulators."""

  @abstractmethod
  def demodulate(self, samples: Iterable[int]) -> Iterator[Phase]:
    """Convert samples to phase symbols.

    Args:
      samples: Signed integer samples, consumed lazily.

    Returns:
      Lazy iterator of decoded phases.
    """

  @property
  @abstractmethod
  def name(self) -> str:
    """Human-readable demodulator name for reporting."""


class EdgeTimingPipeline(Demodulator):
  """ZeroCrossingDetector -> EdgeTimingDemodulator -> SymbolDecoder."""

  def __init__(
    self,
    samples_per_bit: float,
    max_uncertainty: float = 0.25,
    noise_threshold: int = 10,
  ) -> None:
    """Initialize the pipeline.

    Args:
      samples_per_bit: Sample rate divided by the line bit rate.
      max_uncertainty: Bit-timing diagnostic threshold.
      noise_threshold: Zero-crossing noise floor.
    """
    self.detector = ZeroCrossingDetector(noise_threshold=noise_threshold)
    self.bit_demodulator = EdgeTimingDemodulator(
      samples_per_bit=samples_per_bit, max_uncertainty=max_uncertainty
    )
    self.decoder = SymbolDecoder()

  @property
  def name(self) -> str:
    return f"EdgeTiming({self.bit_demodulator.samples_per_bit:.3f} samples/bit)"

  def bits(self, samples: Iterable[int]) -> Iterator[Bit]:
    """Raw line bits, before symbol decoding."""
    return self.bit_demodulator.demodulate(self.detector.detect(samples))

  def demodulate(self, samples: Iterable[int]) -> Iterator[Phase]:
    return self.decoder.decode(self.bits(samples))
