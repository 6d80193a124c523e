"""Shared value types for the modem stages."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

Bit = Literal[0, 1]


class Phase(StrEnum):
  """Carrier phase offsets, two payload bits each.

  `UNKNOWN` is only produced by the bit-based symbol decoder for a group it
  cannot map; it is never synthesized.
  """

  A = "A"
  B = "B"
  C = "C"
  D = "D"
  UNKNOWN = "-"


PHASES: tuple[Phase, ...] = (Phase.A, Phase.B, Phase.C, Phase.D)


class CrossingDirection(StrEnum):
  """Which way the waveform crosses zero."""

  RISING = "rising"
  FALLING = "falling"


class SampleCategory(StrEnum):
  """Coarse classification of a sample within one carrier cycle."""

  HIGH = "High"
  LOW = "Low"
  ZERO_RISING = "ZeroRising"
  ZERO_DROPPING = "ZeroDropping"


@dataclass(frozen=True)
class ZeroCrossing:
  """An interpolated zero crossing.

  Attributes:
    direction: RISING when the waveform goes positive, FALLING otherwise.
    timestamp: Crossing time in (fractional) sample indices.
    delta: Time since the previous crossing; 0 for the first crossing.
  """

  direction: CrossingDirection
  timestamp: float
  delta: float


@dataclass(frozen=True)
class DecodedSample:
  """A sample interpolated at a fractional index."""

  value: float
  slope: float


class DemodulationError(ValueError):
  """The categorizing demodulator met samples it cannot interpret."""
