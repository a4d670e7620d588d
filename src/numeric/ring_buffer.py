"""
Fixed-capacity ring buffer for sliding-window statistics.
"""

from collections.abc import Iterator
from typing import Any


class RingBuffer:
    """Circular buffer that overwrites its oldest element once full"""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Ring buffer capacity must be >= 1, got {capacity}")

        self._capacity = capacity
        self._items: list[Any] = [None] * capacity
        self._head = 0  # next write position
        self._tail = 0  # oldest live element
        self._length = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return self._length == self._capacity

    def __len__(self) -> int:
        return self._length

    def push(self, item: Any) -> None:
        self._items[self._head] = item
        self._head = (self._head + 1) % self._capacity

        if self._length < self._capacity:
            self._length += 1
        else:
            self._tail = (self._tail + 1) % self._capacity

    def get(self, index: int) -> Any | None:
        """Return the index-th oldest live element, or None when out of range"""
        if index < 0 or index >= self._length:
            return None
        return self._items[(self._tail + index) % self._capacity]

    def last(self) -> Any | None:
        return self.get(self._length - 1)

    def to_array(self) -> Iterator[Any]:
        """Lazily yield live elements from oldest to newest"""
        for i in range(self._length):
            yield self.get(i)

    def clear(self) -> None:
        self._items = [None] * self._capacity
        self._head = 0
        self._tail = 0
        self._length = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(capacity={self._capacity}, length={self._length})"
