"""Logging configuration for the po_modem package."""

import coloredlogs


def setup_logging(level: str = "INFO") -> None:
  """Configure the root logger with a short, colored format.

  Decode diagnostics (timing uncertainty, undecodable groups) are logged at
  WARNING, so the default level keeps them visible while hiding per-symbol
  DEBUG traces. Should be called once at the entry point of the application.

  Args:
    level: Logging level (e.g., "INFO", "DEBUG", "WARNING").
  """
  coloredlogs.install(
    level=level.upper(),
    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
    is_system_wide=True,
  )
