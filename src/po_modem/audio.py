"""Live playback and capture through PortAudio."""

import logging

import numpy as np
import numpy.typing as npt
import sounddevice as sd

logger = logging.getLogger(__name__)


def play_audio(sample_rate: int, data: npt.NDArray) -> None:
  """Play PCM data (mono or (samples, channels)) using sounddevice."""
  logger.info("Playing audio... (press Ctrl+C to stop)")
  try:
    sd.play(data, sample_rate, blocking=True)
    logger.info("Playback complete!")
  except KeyboardInterrupt:
    sd.stop()
    logger.info("Playback stopped.")


def record_audio(
  seconds: float, sample_rate: int, channels: int = 2
) -> npt.NDArray[np.int16]:
  """Capture `seconds` of 16-bit audio from the default input device."""
  frames = int(round(seconds * sample_rate))
  logger.info(f"Recording {seconds:.1f}s at {sample_rate}Hz... (Ctrl+C to stop)")
  data = sd.rec(frames, samplerate=sample_rate, channels=channels, dtype="int16")
  try:
    sd.wait()
  except KeyboardInterrupt:
    sd.stop()
    logger.info("Recording stopped early.")
  return data
