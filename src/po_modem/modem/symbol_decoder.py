"""Bit-to-phase decoding with preamble sync."""

import logging
from collections.abc import Iterable, Iterator

from po_modem.modem.streams import Stream
from po_modem.modem.types import Phase

logger = logging.getLogger(__name__)

SYNC_PATTERN = (1, 1)

# Protocol constant; (high bit, low bit) -> phase.
BIT_PAIRS: dict[tuple[int, int], Phase] = {
  (1, 1): Phase.A,
  (1, 0): Phase.B,
  (0, 0): Phase.C,
  (0, 1): Phase.D,
}


class SymbolDecoder:
  """Groups raw line bits into phase symbols.

  Only every other 2-bit group carries a symbol; the groups in between are
  guard groups and are pulled and discarded.
  """

  def decode(self, bits: Iterable[int]) -> Iterator[Phase]:
    """Yield one phase per live 2-bit group.

    Undecodable groups yield `Phase.UNKNOWN` and log a diagnostic.
    """
    stream = Stream(bits)
    if not self._sync(stream):
      logger.info("No sync pattern found in bit stream")
      return

    # Group boundaries sit one bit before the end of the sync pair.
    stream.push_front([1])
    while True:
      group = tuple(stream.take(2))
      stream.take(2)
      if len(group) < 2:
        return
      phase = BIT_PAIRS.get(group)
      if phase is None:
        logger.warning(f"Undecodable bit group {group!r}")
        yield Phase.UNKNOWN
      else:
        yield phase

  @staticmethod
  def _sync(stream: Stream[int]) -> bool:
    """Consume bits up to and including the first sync pair."""
    previous = None
    for position, bit in enumerate(stream):
      if (previous, bit) == SYNC_PATTERN:
        logger.debug(f"Sync pattern found at bit {position - 1}")
        return True
      previous = bit
    return False
