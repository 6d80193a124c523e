"""Tests for the configuration module."""

import pytest
from pydantic import ValidationError

from po_modem.config import DemodulationStrategy, ModemConfig


def test_config_defaults() -> None:
  """Test that default values are set correctly."""
  config = ModemConfig()
  expected_sample_rate = 96000
  assert config.sample_rate == expected_sample_rate
  assert config.carrier_hz == 7800.0
  assert config.strategy is DemodulationStrategy.EDGE_TIMING
  assert config.line_width == 80


def test_derived_periods() -> None:
  """Test bit and symbol periods derived from the rates."""
  config = ModemConfig(sample_rate=93600)
  assert config.samples_per_bit == pytest.approx(3.0)
  assert config.symbol_period == pytest.approx(12.0)


def test_symbol_period_override() -> None:
  """Test that an explicit symbol period wins over the derived one."""
  config = ModemConfig(samples_per_symbol=12)
  assert config.symbol_period == 12


def test_strategy_from_string() -> None:
  """Test that strategies parse from their command-line names."""
  config = ModemConfig(strategy="categorizing")
  assert config.strategy is DemodulationStrategy.CATEGORIZING


@pytest.mark.parametrize(
  "overrides",
  [
    {"sample_rate": 0},
    {"carrier_hz": -1.0},
    {"max_uncertainty": 0.75},
    {"high_amplitude_ratio": 1.5},
    {"line_width": 0},
    {"strategy": "fourier"},
  ],
)
def test_config_validation(overrides) -> None:
  """Test that validation works correctly."""
  with pytest.raises(ValidationError):
    ModemConfig(**overrides)


def test_config_is_frozen() -> None:
  """Test that a config cannot be mutated after construction."""
  config = ModemConfig()
  with pytest.raises(ValidationError):
    config.sample_rate = 44100  # type: ignore[misc]
