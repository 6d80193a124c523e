"""Signal-to-symbol codec: demodulators, synthesizer and loopback harness."""

from po_modem.modem.categorizing import CategorizingDemodulator
from po_modem.modem.channel import (
  AWGN,
  ChannelImpairment,
  ChannelSimulator,
  ClockDrift,
  Gain,
  ImpairmentStage,
  Quantizer,
  SampleSlip,
)
from po_modem.modem.demodulator import Demodulator, EdgeTimingPipeline
from po_modem.modem.edge_timing import EdgeTimingDemodulator
from po_modem.modem.pipeline import LoopbackSystem, create_demodulator
from po_modem.modem.streams import Stream, wrap_lines
from po_modem.modem.symbol_decoder import SymbolDecoder
from po_modem.modem.synthesizer import PhaseSynthesizer
from po_modem.modem.types import (
  PHASES,
  CrossingDirection,
  DecodedSample,
  DemodulationError,
  Phase,
  SampleCategory,
  ZeroCrossing,
)
from po_modem.modem.zero_crossings import ZeroCrossingDetector

__all__ = [
  # Capture path simulation
  "AWGN",
  "ChannelImpairment",
  "ChannelSimulator",
  "ClockDrift",
  "Gain",
  "ImpairmentStage",
  "Quantizer",
  "SampleSlip",
  # Codec stages
  "CategorizingDemodulator",
  "Demodulator",
  "EdgeTimingDemodulator",
  "EdgeTimingPipeline",
  "LoopbackSystem",
  "PhaseSynthesizer",
  "Stream",
  "SymbolDecoder",
  "ZeroCrossingDetector",
  "create_demodulator",
  "wrap_lines",
  # Types
  "PHASES",
  "CrossingDirection",
  "DecodedSample",
  "DemodulationError",
  "Phase",
  "SampleCategory",
  "ZeroCrossing",
]
