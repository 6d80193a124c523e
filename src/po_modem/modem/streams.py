"""Pull-based stream cursor shared by the stages that read fixed-size groups.

Python iterators are not closed when a consumer stops pulling, so a stage can
take a handful of items, hand the rest of the source to another stage and keep
going. `Stream` makes that explicit and adds pushback, which the symbol
decoder (re-inserted sync bit) and the categorizing demodulator (replayed
peak-search samples) need.
"""

from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from typing import Generic, TypeVar

T = TypeVar("T")


class Stream(Generic[T]):
  """Iterator with pushback and bounded pulls.

  Pulling from a `Stream`, including through `take`, never closes the
  underlying source.
  """

  def __init__(self, source: Iterable[T]) -> None:
    self._source = iter(source)
    self._pushed: deque[T] = deque()

  def __iter__(self) -> "Stream[T]":
    return self

  def __next__(self) -> T:
    if self._pushed:
      return self._pushed.popleft()
    return next(self._source)

  def take(self, count: int) -> list[T]:
    """Pull up to `count` items; fewer means the source is exhausted."""
    items: list[T] = []
    while len(items) < count:
      try:
        items.append(next(self))
      except StopIteration:
        break
    return items

  def push_front(self, items: Sequence[T]) -> None:
    """Make `items` the next values returned, in order."""
    self._pushed.extendleft(reversed(items))


def wrap_lines(symbols: Iterable[object], width: int = 80) -> Iterator[str]:
  """Render symbols as text lines of `width` characters.

  The last line is yielded even when it is shorter than `width`.
  """
  if width <= 0:
    msg = f"width must be positive, got {width}"
    raise ValueError(msg)

  line: list[str] = []
  for symbol in symbols:
    line.append(str(symbol))
    if len(line) == width:
      yield "".join(line)
      line = []
  if line:
    yield "".join(line)
