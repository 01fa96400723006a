"""Bounded first-in first-out queue with a fixed number of slots."""

from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, TypeVar

T = TypeVar("T")


class RingQueue(Generic[T]):
    """FIFO queue over ``capacity`` slots.

    One slot always stays free to tell a full queue from an empty one, so
    the queue holds at most ``capacity - 1`` items.  Pushing onto a full
    queue is refused rather than overwriting the oldest item.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("queue capacity must be at least 1")
        self._capacity = capacity
        self._items: Deque[T] = deque()

    def push(self, item: T) -> None:
        """Append ``item`` at the back; raise OverflowError when full."""
        if len(self._items) >= self._capacity - 1:
            raise OverflowError("queue is full")
        self._items.append(item)

    def pop(self) -> T:
        """Remove and return the front item; raise IndexError when empty."""
        if not self._items:
            raise IndexError("pop from an empty queue")
        return self._items.popleft()

    def clear(self) -> None:
        """Drop every queued item."""
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))

    def capacity(self) -> int:
        """Number of slots, one of which is always kept free."""
        return self._capacity

    def empty(self) -> bool:
        """True when nothing is queued."""
        return not self._items