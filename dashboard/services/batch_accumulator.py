"""
Bounded buffer between the row normalizer and the flusher.
"""

from typing import Generic, List, TypeVar

T = TypeVar("T")


class BatchAccumulator(Generic[T]):
    """Collects records until ``max_size`` is reached. Not thread-safe; one per pipeline."""

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {max_size}")
        self.max_size = max_size
        self._buffer: List[T] = []

    def add(self, record: T) -> bool:
        """Append a record; return True when the batch is at or above capacity."""
        self._buffer.append(record)
        return self.is_full

    def drain(self) -> List[T]:
        """Hand over every buffered record and start a new, empty batch."""
        batch, self._buffer = self._buffer, []
        return batch

    @property
    def is_full(self) -> bool:
        return len(self._buffer) >= self.max_size

    def __len__(self) -> int:
        return len(self._buffer)
