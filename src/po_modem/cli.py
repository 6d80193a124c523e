"""Command-line tool: parse, replay, record and verify backup audio.

Every command works on a backup directory `<data-dir>/<name>/`, which holds
the capture and everything derived from it:

  backup.wav             stereo capture (`record`)
  <side>.<rate>.s8       raw signed 8-bit channels (`split`, or exported)
  <side>.<rate>.bits     line bits (`raw-to-bits`)
  <side>.phases          decoded phases (`parse`)
  reconstituted.wav      re-synthesized audio (`replay`)
"""

import logging
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import numpy as np
import typer
from pydantic import ValidationError

from po_modem.config import DemodulationStrategy, ModemConfig
from po_modem.modem import pcm
from po_modem.modem.channel import (
  AWGN,
  ChannelImpairment,
  ChannelSimulator,
  Quantizer,
  SampleSlip,
)
from po_modem.modem.demodulator import EdgeTimingPipeline
from po_modem.modem.pipeline import LoopbackSystem, create_demodulator
from po_modem.modem.streams import wrap_lines
from po_modem.modem.synthesizer import PhaseSynthesizer
from po_modem.modem.types import PHASES, DemodulationError
from po_modem.setup_logging import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
  help="Parse and replay pocket-synth backup audio.", no_args_is_help=True
)


class Side(StrEnum):
  """Stereo channel of a backup."""

  LEFT = "left"
  RIGHT = "right"


NameArg = Annotated[
  str, typer.Argument(help="Backup name; a subdirectory of the data directory.")
]
DataDirOpt = Annotated[
  Path, typer.Option("--data-dir", "-d", help="Directory holding the backups.")
]
SampleRateOpt = Annotated[
  int,
  typer.Option(
    "--sample-rate",
    "-r",
    help="Sample rate for capture or playback. 96000 gives clean waveforms; "
    "do not go below 44100.",
  ),
]


def data_path(data_dir: Path, name: str, filename: str | None = None) -> Path:
  """Path of a backup directory, or of a file inside it."""
  directory = data_dir / name
  return directory if filename is None else directory / filename


def build_config(**fields) -> ModemConfig:
  """Validate command-line values into a ModemConfig."""
  try:
    return ModemConfig(**fields)
  except ValidationError as e:
    logger.error(f"Invalid configuration:\n{e}")
    raise typer.Exit(code=1) from e


def require_file(path: Path) -> Path:
  """Exit with an error if an expected input file is missing."""
  if not path.is_file():
    logger.error(f"Missing input file: {path}")
    raise typer.Exit(code=1)
  return path


@app.callback()
def main(
  log_level: Annotated[
    str, typer.Option("--log-level", help="Logging level (DEBUG, INFO, ...).")
  ] = "INFO",
) -> None:
  """Parse and replay pocket-synth backup audio."""
  setup_logging(level=log_level)


@app.command("raw-to-bits")
def raw_to_bits(
  name: NameArg,
  data_dir: DataDirOpt = Path("data"),
  sample_rate: SampleRateOpt = 96000,
  side: Annotated[Side, typer.Option("--side", help="Channel to parse.")] = Side.LEFT,
  max_uncertainty: Annotated[
    float, typer.Option("--max-uncertainty", help="Bit-timing diagnostic level.")
  ] = 0.25,
) -> None:
  """Parse a raw s8 channel into line bits."""
  config = build_config(sample_rate=sample_rate, max_uncertainty=max_uncertainty)
  source = require_file(data_path(data_dir, name, f"{side}.{sample_rate}.s8"))
  output = data_path(data_dir, name, f"{side}.{sample_rate}.bits")

  pipeline = EdgeTimingPipeline(
    samples_per_bit=config.samples_per_bit,
    max_uncertainty=config.max_uncertainty,
    noise_threshold=config.noise_threshold,
  )
  logger.info(f"Parsing {source} into bits...")
  count = pcm.write_lines(
    wrap_lines(pipeline.bits(pcm.read_s8(source)), config.line_width), output
  )
  logger.info(f"Wrote {count} bits to {output}")


@app.command()
def parse(
  name: NameArg,
  data_dir: DataDirOpt = Path("data"),
  sample_rate: SampleRateOpt = 96000,
  strategy: Annotated[
    DemodulationStrategy,
    typer.Option("--strategy", "-s", help="Demodulation strategy."),
  ] = DemodulationStrategy.EDGE_TIMING,
  samples_per_symbol: Annotated[
    float | None,
    typer.Option("--samples-per-symbol", help="Symbol period override."),
  ] = None,
  align_to_peak: Annotated[
    bool, typer.Option("--align-to-peak", help="Start decoding at the first peak.")
  ] = False,
) -> None:
  """Parse both channels of a backup into phase dumps."""
  config = build_config(
    sample_rate=sample_rate,
    strategy=strategy,
    samples_per_symbol=samples_per_symbol,
    align_to_peak=align_to_peak,
  )
  demodulator = create_demodulator(config)
  logger.info(f"Using {demodulator.name}")

  parsed = 0
  for side in Side:
    source = data_path(data_dir, name, f"{side}.{sample_rate}.s8")
    if not source.is_file():
      logger.warning(f"Skipping {side} channel: {source} not found")
      continue
    output = data_path(data_dir, name, f"{side}.phases")
    logger.info(f"Parsing {source}...")
    try:
      count = pcm.write_lines(
        wrap_lines(demodulator.demodulate(pcm.read_s8(source)), config.line_width),
        output,
      )
    except DemodulationError as e:
      logger.exception(f"Demodulation of {source} failed")
      raise typer.Exit(code=1) from e
    logger.info(f"Wrote {count} phases to {output}")
    parsed += 1

  if parsed == 0:
    logger.error(f"No raw channels found in {data_path(data_dir, name)}")
    raise typer.Exit(code=1)


@app.command("dump-slice")
def dump_slice(
  name: NameArg,
  start: Annotated[int, typer.Option("--start", help="First sample.", min=0)],
  end: Annotated[int, typer.Option("--end", help="End sample (exclusive).", min=1)],
  data_dir: DataDirOpt = Path("data"),
  sample_rate: SampleRateOpt = 96000,
) -> None:
  """Extract a slice of both channels as TSV."""
  left = require_file(data_path(data_dir, name, f"left.{sample_rate}.s8"))
  right = require_file(data_path(data_dir, name, f"right.{sample_rate}.s8"))
  try:
    table = pcm.dump_slice(left, right, start, end)
  except ValueError as e:
    logger.error(str(e))
    raise typer.Exit(code=1) from e
  output = data_path(data_dir, name, f"slice.{start}.{end}.tsv")
  output.write_text(table, encoding="ascii")
  logger.info(f"Saved slice to {output}")


@app.command()
def replay(
  name: NameArg,
  data_dir: DataDirOpt = Path("data"),
  sample_rate: SampleRateOpt = 96000,
  output: Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Output WAV (default reconstituted.wav)."),
  ] = None,
  speaker: Annotated[
    bool, typer.Option("--speaker", help="Play to the speakers instead.")
  ] = False,
  bit_depth: Annotated[
    int, typer.Option("--bit-depth", "-b", help="Output sample width (8 or 16).")
  ] = 16,
  channels: Annotated[
    int, typer.Option("--channels", "-c", help="Output channels.", min=1, max=2)
  ] = 2,
) -> None:
  """Re-generate audio from parsed phase dumps."""
  if bit_depth not in pcm.BIT_DEPTHS:
    logger.error(f"Unsupported bit depth {bit_depth}; use 8 or 16")
    raise typer.Exit(code=1)
  synthesizer = PhaseSynthesizer(
    sample_rate=sample_rate, amplitude=1 << (bit_depth - 2)
  )

  def render(side: Side) -> np.ndarray:
    source = require_file(data_path(data_dir, name, f"{side}.phases"))
    return pcm.to_pcm(synthesizer.render(pcm.read_phases(source)), bit_depth)

  left = render(Side.LEFT)
  data = pcm.interleave(left, render(Side.RIGHT)) if channels == 2 else left
  logger.info(f"Synthesized {data.shape[0] / sample_rate:.2f}s of audio")

  if speaker:
    from po_modem.audio import play_audio

    play_audio(sample_rate, data)
    return
  output = output or data_path(data_dir, name, "reconstituted.wav")
  pcm.write_wav(output, sample_rate, data)


@app.command()
def record(
  name: NameArg,
  seconds: Annotated[float, typer.Option("--seconds", help="Capture length.", min=0.1)],
  data_dir: DataDirOpt = Path("data"),
  sample_rate: SampleRateOpt = 96000,
  channels: Annotated[
    int, typer.Option("--channels", "-c", help="Capture channels.", min=1, max=2)
  ] = 2,
) -> None:
  """Capture a backup from the default input device into backup.wav."""
  from po_modem.audio import record_audio

  directory = data_path(data_dir, name)
  directory.mkdir(parents=True, exist_ok=True)
  data = record_audio(seconds, sample_rate, channels)
  pcm.write_wav(directory / "backup.wav", sample_rate, data)


@app.command()
def split(name: NameArg, data_dir: DataDirOpt = Path("data")) -> None:
  """Split backup.wav into raw s8 channel files."""
  source = require_file(data_path(data_dir, name, "backup.wav"))
  try:
    sample_rate, written = pcm.split_wav(source, data_path(data_dir, name))
  except (TypeError, ValueError) as e:
    logger.error(f"Cannot split {source}: {e}")
    raise typer.Exit(code=1) from e
  logger.info(f"Split {len(written)} channel(s) at {sample_rate}Hz")


@app.command()
def loopback(
  length: Annotated[int, typer.Option("--length", "-n", help="Symbols.", min=1)] = 200,
  sample_rate: SampleRateOpt = 96000,
  strategy: Annotated[
    DemodulationStrategy,
    typer.Option("--strategy", "-s", help="Demodulation strategy."),
  ] = DemodulationStrategy.CATEGORIZING,
  snr_db: Annotated[
    float | None, typer.Option("--snr-db", help="Add noise at this SNR.")
  ] = None,
  slip_every: Annotated[
    int | None,
    typer.Option(
      "--slip-every",
      help="Drop one sample in N. Recovery is exact when the symbol period is a "
      "whole number of samples (e.g. 93600 Hz).",
      min=2,
    ),
  ] = None,
  seed: Annotated[int, typer.Option("--seed", help="Random seed.")] = 0,
) -> None:
  """Synthesize random phases, capture them through a simulated path, decode."""
  config = build_config(sample_rate=sample_rate, strategy=strategy)
  synthesizer = PhaseSynthesizer(sample_rate=sample_rate, carrier_hz=config.carrier_hz)
  # Thresholds from the synthesized level instead of a peak search.
  config = config.model_copy(
    update={
      "high_amplitude": synthesizer.amplitude * config.high_amplitude_ratio,
      "low_amplitude": synthesizer.amplitude * config.low_amplitude_ratio,
    }
  )
  rng = np.random.default_rng(seed)
  phases = [PHASES[i] for i in rng.integers(0, len(PHASES), size=length)]

  impairments: list[ChannelImpairment] = []
  if slip_every is not None:
    impairments.append(SampleSlip(every=slip_every))
  if snr_db is not None:
    impairments.append(AWGN(snr_db=snr_db, seed=seed))
  impairments.append(Quantizer(bits=8))
  system = LoopbackSystem(
    synthesizer=synthesizer,
    channel=ChannelSimulator(impairments=impairments, sample_rate=sample_rate),
    demodulator=create_demodulator(config),
  )

  logger.info(f"Running loopback {system.name}...")
  try:
    decoded = system.process(phases)
  except DemodulationError as e:
    logger.exception("Loopback demodulation failed")
    raise typer.Exit(code=1) from e

  errors = sum(a != b for a, b in zip(phases, decoded, strict=False))
  errors += abs(len(phases) - len(decoded))
  typer.echo(f"{len(decoded)}/{len(phases)} symbols decoded, {errors} errors")
  if errors:
    raise typer.Exit(code=1)


if __name__ == "__main__":
  app()
