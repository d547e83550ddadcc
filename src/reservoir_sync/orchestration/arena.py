from __future__ import annotations

import heapq
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class ManagerArena(Generic[T]):
    """Slot storage addressed by small integer keys.

    Removed slots go back to a free list and the lowest free key is reused
    first. Iteration works on a snapshot, so removal during iteration is safe.
    """

    def __init__(self) -> None:
        self._slots: list[T | None] = []
        self._free: list[int] = []

    def insert(self, item: T) -> int:
        if self._free:
            key = heapq.heappop(self._free)
            self._slots[key] = item
        else:
            key = len(self._slots)
            self._slots.append(item)
        return key

    def remove(self, key: int) -> T:
        item = self.get(key)
        self._slots[key] = None
        heapq.heappush(self._free, key)
        return item

    def get(self, key: int) -> T:
        if not 0 <= key < len(self._slots) or self._slots[key] is None:
            raise KeyError(key)
        return self._slots[key]  # type: ignore[return-value]

    def items(self) -> list[tuple[int, T]]:
        return [(k, v) for k, v in enumerate(self._slots) if v is not None]

    def values(self) -> list[T]:
        return [v for _, v in self.items()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, int) and 0 <= key < len(self._slots) and self._slots[key] is not None

    def __len__(self) -> int:
        return len(self._slots) - len(self._free)

    def __iter__(self) -> Iterator[int]:
        return iter([k for k, _ in self.items()])
