"""Configuration module for the modem."""

from enum import StrEnum

from pydantic import BaseModel, Field


class DemodulationStrategy(StrEnum):
  """Which demodulator turns samples into phases."""

  EDGE_TIMING = "edge-timing"
  CATEGORIZING = "categorizing"


class ModemConfig(BaseModel):
  """Configuration shared by the demodulators and the synthesizer.

  Attributes:
    sample_rate: Sample rate of the PCM stream in Hz.
    carrier_hz: Carrier frequency of the encoding in Hz.
    strategy: Demodulation strategy used by `create_demodulator`.
    noise_threshold: Samples with a smaller magnitude are ignored when
      looking for zero crossings.
    max_uncertainty: Bit-timing uncertainty above which a diagnostic is
      logged.
    samples_per_symbol: Override for the symbol period in samples. Defaults
      to one carrier cycle.
    peak_threshold: Absolute level a sample must exceed before peak
      detection starts.
    high_amplitude_ratio: Fraction of the reference peak above which a
      sample is HIGH (or below its negative, LOW).
    low_amplitude_ratio: Fraction of the reference peak below which a sample
      is treated as a zero crossing.
    high_amplitude: Fixed HIGH threshold; skips the peak search together with
      `low_amplitude`.
    low_amplitude: Fixed zero-band threshold.
    align_to_peak: Start categorizing at the reference peak instead of at
      the first sample.
    line_width: Characters per line in bit/phase text output.
  """

  sample_rate: int = Field(96000, description="PCM sample rate in Hz.", gt=0)
  carrier_hz: float = Field(7800.0, description="Carrier frequency in Hz.", gt=0)
  strategy: DemodulationStrategy = Field(
    DemodulationStrategy.EDGE_TIMING, description="Demodulation strategy."
  )
  noise_threshold: int = Field(10, description="Zero-crossing noise floor.", ge=0)
  max_uncertainty: float = Field(
    0.25, description="Bit-timing diagnostic threshold.", gt=0, le=0.5
  )
  samples_per_symbol: float | None = Field(
    None, description="Symbol period override in samples.", gt=1
  )
  peak_threshold: int = Field(50, description="Peak search threshold.", gt=0)
  high_amplitude_ratio: float = Field(0.7, gt=0, le=1)
  low_amplitude_ratio: float = Field(0.5, gt=0, le=1)
  high_amplitude: float | None = Field(None, description="Fixed HIGH level.", gt=0)
  low_amplitude: float | None = Field(None, description="Fixed zero band.", gt=0)
  align_to_peak: bool = False
  line_width: int = Field(80, description="Text output line width.", gt=0)

  model_config = {"frozen": True}

  @property
  def samples_per_bit(self) -> float:
    """Samples per line bit; the line runs at four times the carrier."""
    return self.sample_rate / (self.carrier_hz * 4)

  @property
  def symbol_period(self) -> float:
    """Samples per phase symbol."""
    if self.samples_per_symbol is not None:
      return self.samples_per_symbol
    return self.sample_rate / self.carrier_hz
