"""Tests for the stream cursor and line wrapping."""

import pytest

from po_modem.modem.streams import Stream, wrap_lines


class TestStream:
  """Tests for Stream."""

  def test_take_returns_fewer_at_end(self) -> None:
    """Test that a short pull signals exhaustion instead of raising."""
    stream = Stream([1, 2, 3])
    assert stream.take(2) == [1, 2]
    assert stream.take(2) == [3]
    assert stream.take(2) == []

  def test_push_front_preserves_order(self) -> None:
    """Test that pushed items come back first, in the order given."""
    stream = Stream([3, 4])
    stream.push_front([1, 2])
    assert list(stream) == [1, 2, 3, 4]

  def test_push_front_after_partial_read(self) -> None:
    stream = Stream(range(5))
    head = stream.take(3)
    stream.push_front(head[1:])
    assert stream.take(4) == [1, 2, 3, 4]

  def test_pull_does_not_close_source(self) -> None:
    """Test that a stage stopping early leaves the producer usable."""
    closed = []

    def producer():
      try:
        yield from range(6)
      finally:
        closed.append(True)

    source = producer()
    first = Stream(source)
    assert first.take(2) == [0, 1]
    del first
    assert closed == []
    assert list(Stream(source)) == [2, 3, 4, 5]
    assert closed == [True]


class TestWrapLines:
  """Tests for wrap_lines."""

  def test_wraps_and_keeps_partial_line(self) -> None:
    assert list(wrap_lines("ABCDE", width=2)) == ["AB", "CD", "E"]

  def test_exact_multiple_has_no_empty_line(self) -> None:
    assert list(wrap_lines([0, 1, 1, 0], width=2)) == ["01", "10"]

  def test_empty_input(self) -> None:
    assert list(wrap_lines([], width=80)) == []

  def test_invalid_width(self) -> None:
    with pytest.raises(ValueError, match="width"):
      list(wrap_lines("AB", width=0))
