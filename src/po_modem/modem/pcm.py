"""Sample sources and sinks: raw s8 files, WAV files and text renderings."""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

import numpy as np
import numpy.typing as npt
import scipy.io.wavfile

from po_modem.modem.types import PHASES, Phase

logger = logging.getLogger(__name__)

CHANNEL_NAMES = ("left", "right")
BIT_DEPTHS = (8, 16)


def read_s8(path: Path, chunk_size: int = 4096) -> Iterator[int]:
  """Yield samples from a raw signed 8-bit PCM file.

  The file stays open only while the generator is alive; it is closed when
  the generator is exhausted or closed early.
  """
  with Path(path).open("rb") as f:
    while chunk := f.read(chunk_size):
      yield from np.frombuffer(chunk, dtype=np.int8).tolist()


def write_s8(path: Path, samples: npt.ArrayLike) -> None:
  """Write samples as raw signed 8-bit PCM, clipping out-of-range values."""
  data = np.clip(np.rint(np.asarray(samples, dtype=np.float64)), -128, 127)
  data.astype(np.int8).tofile(path)


def write_lines(lines: Iterable[str], path: Path) -> int:
  """Write text lines, each terminated by a newline.

  Returns:
    Number of characters written, excluding newlines.
  """
  written = 0
  with Path(path).open("w", encoding="ascii") as f:
    for line in lines:
      f.write(line)
      f.write("\n")
      written += len(line)
  return written


def read_phases(path: Path, chunk_size: int = 4096) -> Iterator[Phase]:
  """Yield the phases stored in a phase text file.

  Any byte that is not a phase letter (line breaks, undecodable markers,
  stray binary) is skipped.
  """
  valid = {ord(str(phase)): phase for phase in PHASES}
  with Path(path).open("rb") as f:
    while chunk := f.read(chunk_size):
      for byte in chunk:
        if byte in valid:
          yield valid[byte]


def load_wav(path: Path) -> tuple[int, npt.NDArray[np.float32]]:
  """Load a WAV file as float32 in [-1, 1], shape (samples, channels)."""
  sample_rate, data = scipy.io.wavfile.read(path)

  if data.dtype == np.int16:
    data = data.astype(np.float32) / 32768.0
  elif data.dtype == np.int32:
    data = data.astype(np.float32) / 2147483648.0
  elif data.dtype == np.uint8:
    data = (data.astype(np.float32) - 128.0) / 128.0
  elif data.dtype == np.float32:
    pass
  else:
    msg = f"Unsupported audio format: {data.dtype}"
    raise TypeError(msg)

  if data.ndim == 1:
    data = data[:, np.newaxis]
  return sample_rate, data


def split_wav(wav_path: Path, out_dir: Path) -> tuple[int, list[Path]]:
  """Split a WAV capture into per-channel raw s8 files.

  Files are named `<left|right>.<sample_rate>.s8`.

  Returns:
    The sample rate and the written paths, left channel first.
  """
  sample_rate, data = load_wav(wav_path)
  if data.shape[1] > len(CHANNEL_NAMES):
    msg = f"Expected mono or stereo audio, got {data.shape[1]} channels"
    raise ValueError(msg)

  out_dir.mkdir(parents=True, exist_ok=True)
  written = []
  for channel, side in enumerate(CHANNEL_NAMES[: data.shape[1]]):
    path = out_dir / f"{side}.{sample_rate}.s8"
    write_s8(path, data[:, channel] * 128.0)
    written.append(path)
    logger.info(f"Wrote {data.shape[0]} samples to {path}")
  return sample_rate, written


def to_pcm(samples: npt.ArrayLike, bit_depth: int) -> npt.NDArray:
  """Convert signed samples to the WAV sample format for `bit_depth`.

  16-bit WAV is signed; 8-bit WAV is unsigned with a bias of 128.
  """
  data = np.asarray(samples, dtype=np.int64)
  if bit_depth == 16:
    return np.clip(data, -32768, 32767).astype(np.int16)
  if bit_depth == 8:
    return (np.clip(data, -128, 127) + 128).astype(np.uint8)
  msg = f"Unsupported bit depth: {bit_depth}"
  raise ValueError(msg)


def interleave(left: npt.ArrayLike, right: npt.ArrayLike) -> npt.NDArray:
  """Stack two channels into (samples, 2), padding the shorter with zeros."""
  left_arr, right_arr = np.asarray(left), np.asarray(right)
  length = max(left_arr.size, right_arr.size)
  dtype = np.result_type(left_arr, right_arr)
  stereo = np.zeros((length, 2), dtype=dtype)
  stereo[: left_arr.size, 0] = left_arr
  stereo[: right_arr.size, 1] = right_arr
  return stereo


def write_wav(path: Path, sample_rate: int, data: npt.NDArray) -> None:
  """Save PCM data (from `to_pcm`) as a WAV file."""
  scipy.io.wavfile.write(path, sample_rate, data)
  logger.info(f"Saved output to {path}")


def dump_slice(left: Path, right: Path, start: int, end: int) -> str:
  """Render samples `start:end` of two raw s8 files as tab-separated rows."""
  if end <= start:
    msg = f"Empty slice: start={start}, end={end}"
    raise ValueError(msg)
  count = end - start
  left_samples = np.fromfile(left, dtype=np.int8, count=count, offset=start)
  right_samples = np.fromfile(right, dtype=np.int8, count=count, offset=start)
  rows = zip(left_samples.tolist(), right_samples.tolist(), strict=False)
  return "".join(f"{lv}\t{rv}\n" for lv, rv in rows)
