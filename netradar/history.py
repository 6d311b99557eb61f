"""Bounded per-key measurement history."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Generic, Hashable, List, Optional, TypeVar

T = TypeVar("T")


class HistoryStore(Generic[T]):
    """Keeps the last ``capacity`` values per key, oldest evicted first.

    Not thread-safe: whoever shares a store between threads owns the lock.
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: Dict[Hashable, Deque[T]] = {}

    def append(self, key: Hashable, value: T) -> None:
        entries = self._entries.get(key)
        if entries is None:
            entries = self._entries[key] = deque(maxlen=self.capacity)
        entries.append(value)

    def get(self, key: Hashable) -> List[T]:
        return list(self._entries.get(key, ()))

    def latest(self, key: Hashable) -> Optional[T]:
        entries = self._entries.get(key)
        return entries[-1] if entries else None

    def keys(self) -> List[Hashable]:
        return list(self._entries)

    def clear(self, key: Optional[Hashable] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def trend(self, key: Hashable, window: int = 5) -> float:
        """Average change per reading over the last ``window`` numeric values."""
        recent = self.get(key)[-window:]
        if len(recent) < 2:
            return 0.0
        return (recent[-1] - recent[0]) / (len(recent) - 1)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries
