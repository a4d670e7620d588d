"""
Tests for RingBuffer.
"""

import pytest

from src.numeric import RingBuffer


class TestRingBuffer:
    """Tests for RingBuffer class."""

    def test_initialization(self):
        buffer = RingBuffer(3)

        assert buffer.capacity == 3
        assert len(buffer) == 0
        assert not buffer.is_full
        assert buffer.last() is None

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_invalid_capacity_raises(self, capacity):
        with pytest.raises(ValueError):
            RingBuffer(capacity)

    def test_push_until_full(self):
        buffer = RingBuffer(3)
        for value in (1, 2, 3):
            buffer.push(value)

        assert buffer.is_full
        assert list(buffer.to_array()) == [1, 2, 3]

    def test_overwrites_oldest_when_full(self):
        buffer = RingBuffer(3)
        for value in range(1, 6):
            buffer.push(value)

        assert len(buffer) == 3
        assert list(buffer.to_array()) == [3, 4, 5]
        assert buffer.get(0) == 3
        assert buffer.last() == 5

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_get_out_of_range_returns_none(self, index):
        buffer = RingBuffer(5)
        buffer.push("a")
        buffer.push("b")

        assert buffer.get(index) is None

    def test_to_array_is_lazy(self):
        buffer = RingBuffer(2)
        buffer.push(1)

        iterator = buffer.to_array()
        assert next(iterator) == 1
        with pytest.raises(StopIteration):
            next(iterator)

    def test_clear(self):
        buffer = RingBuffer(2)
        buffer.push(1)
        buffer.push(2)
        buffer.clear()

        assert len(buffer) == 0
        assert list(buffer.to_array()) == []

        buffer.push(7)
        assert buffer.last() == 7

    def test_repr(self):
        assert repr(RingBuffer(4)) == "RingBuffer(capacity=4, length=0)"
