"""Capture-path simulation for loopback verification.

Synthesized audio is pushed through a chain of impairments that model what
happens between a device's line output and a raw 8-bit capture:

- PLAYBACK: output level (Gain)
- CLOCK: sample-clock mismatch (SampleSlip, ClockDrift)
- NOISE: additive noise (AWGN)
- CAPTURE: sample quantization (Quantizer) - always applied last
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import IntEnum
from fractions import Fraction

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, Field
from scipy import signal as scipy_signal

logger = logging.getLogger(__name__)


class ImpairmentStage(IntEnum):
  """Defines the canonical order of capture impairments."""

  PLAYBACK = 1
  CLOCK = 2
  NOISE = 3
  CAPTURE = 4


class ChannelImpairment(ABC):
  """Abstract base class for capture impairments."""

  @abstractmethod
  def apply(
    self, signal: npt.NDArray[np.float64], sample_rate: int
  ) -> npt.NDArray[np.float64]:
    """Apply this impairment to the signal.

    Args:
      signal: Real-valued samples.
      sample_rate: Sample rate in Hz.

    Returns:
      Impaired signal. Its length may differ for clock impairments.
    """

  @property
  @abstractmethod
  def stage(self) -> ImpairmentStage:
    """The stage at which this impairment is applied."""

  @property
  @abstractmethod
  def name(self) -> str:
    """Human-readable name for this impairment."""


class Gain(BaseModel, ChannelImpairment):
  """Playback level change."""

  gain_db: float

  model_config = {"frozen": True}

  def apply(
    self, signal: npt.NDArray[np.float64], sample_rate: int
  ) -> npt.NDArray[np.float64]:
    return signal * 10 ** (self.gain_db / 20)

  @property
  def stage(self) -> ImpairmentStage:
    return ImpairmentStage.PLAYBACK

  @property
  def name(self) -> str:
    return f"Gain({self.gain_db}dB)"


class SampleSlip(BaseModel, ChannelImpairment):
  """Drops one sample out of every `every`.

  Models a capture clock running slow relative to playback, one whole sample
  at a time.
  """

  every: int = Field(gt=1)

  model_config = {"frozen": True}

  def apply(
    self, signal: npt.NDArray[np.float64], sample_rate: int
  ) -> npt.NDArray[np.float64]:
    return np.delete(signal, np.arange(self.every - 1, len(signal), self.every))

  @property
  def stage(self) -> ImpairmentStage:
    return ImpairmentStage.CLOCK

  @property
  def name(self) -> str:
    return f"SampleSlip(1/{self.every})"


class ClockDrift(BaseModel, ChannelImpairment):
  """Continuous sample-rate mismatch, via polyphase resampling.

  Positive `ppm` means the capture clock runs fast and records more samples
  than were played.
  """

  ppm: float = Field(gt=-100_000, lt=100_000)
  max_denominator: int = Field(default=10_000, gt=0)

  model_config = {"frozen": True}

  def ratio(self) -> Fraction:
    """Rational approximation of the capture/playback rate ratio."""
    return Fraction(1_000_000 + self.ppm) / 1_000_000

  def apply(
    self, signal: npt.NDArray[np.float64], sample_rate: int
  ) -> npt.NDArray[np.float64]:
    if self.ppm == 0:
      return signal
    ratio = self.ratio().limit_denominator(self.max_denominator)
    return scipy_signal.resample_poly(signal, ratio.numerator, ratio.denominator)

  @property
  def stage(self) -> ImpairmentStage:
    return ImpairmentStage.CLOCK

  @property
  def name(self) -> str:
    return f"ClockDrift({self.ppm}ppm)"


class AWGN(BaseModel, ChannelImpairment):
  """Additive White Gaussian Noise at a specified SNR."""

  snr_db: float
  seed: int | None = None

  model_config = {"frozen": True}

  def __init__(self, **data) -> None:
    super().__init__(**data)
    self._rng = np.random.default_rng(self.seed)

  def apply(
    self, signal: npt.NDArray[np.float64], sample_rate: int
  ) -> npt.NDArray[np.float64]:
    signal_power = np.mean(signal**2)
    noise_power = signal_power / 10 ** (self.snr_db / 10)
    noise = np.sqrt(noise_power) * self._rng.standard_normal(len(signal))
    return signal + noise

  @property
  def stage(self) -> ImpairmentStage:
    return ImpairmentStage.NOISE

  @property
  def name(self) -> str:
    return f"AWGN({self.snr_db}dB)"


class Quantizer(BaseModel, ChannelImpairment):
  """Rounds and clips to a signed integer sample format."""

  bits: int = Field(default=8, ge=2, le=32)

  model_config = {"frozen": True}

  def apply(
    self, signal: npt.NDArray[np.float64], sample_rate: int
  ) -> npt.NDArray[np.float64]:
    full_scale = 2 ** (self.bits - 1)
    return np.clip(np.rint(signal), -full_scale, full_scale - 1)

  @property
  def stage(self) -> ImpairmentStage:
    return ImpairmentStage.CAPTURE

  @property
  def name(self) -> str:
    return f"Quantizer({self.bits}bit)"


class ChannelSimulator:
  """Applies capture impairments in canonical stage order.

  Impairments are automatically sorted by stage regardless of input order.
  """

  def __init__(
    self, impairments: Sequence[ChannelImpairment], sample_rate: int
  ) -> None:
    """Initialize channel simulator with impairments.

    Args:
      impairments: List of impairment objects to apply.
      sample_rate: Sample rate of the signal in Hz.
    """
    self.sample_rate = sample_rate

    original_names = [imp.name for imp in impairments]
    self.impairments = sorted(impairments, key=lambda x: x.stage)
    sorted_names = [imp.name for imp in self.impairments]

    if original_names != sorted_names:
      logger.warning(
        f"Impairments reordered to canonical sequence:\n"
        f"  User order: {original_names}\n"
        f"  Canonical:  {sorted_names}"
      )

  def apply(self, signal: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Apply all impairments to a copy of the signal."""
    result = np.array(signal, dtype=np.float64)

    for impairment in self.impairments:
      result = impairment.apply(result, self.sample_rate)

    return result

  @property
  def name(self) -> str:
    """Human-readable description of the capture path."""
    return "_".join(imp.name for imp in self.impairments) or "ideal"
