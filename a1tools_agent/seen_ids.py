"""Bounded set of message ids that have already produced a notification."""

import threading
from collections import deque
from typing import Deque, Iterator, List, Set


class BoundedSeenSet:
    """
    Order-preserving set that keeps only the most recently inserted ids.

    A deque records insertion order and a plain set mirrors it for O(1)
    membership. Re-adding an id that is already present does not refresh
    its position; eviction is "oldest inserted first", not LRU.
    """

    def __init__(self, capacity: int = 100):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._order: Deque[int] = deque()
        self._members: Set[int] = set()
        self._lock = threading.Lock()

    def add(self, item_id: int, trim: bool = True) -> bool:
        """
        Insert an id.

        Args:
            item_id: Id to record.
            trim: Evict down to capacity right away. Pass False while
                processing a batch and call :meth:`trim` once it is done, so
                ids from the same batch cannot push each other out.

        Returns:
            True if the id was new, False if it was already present.
        """
        with self._lock:
            if item_id in self._members:
                return False
            self._order.append(item_id)
            self._members.add(item_id)
            if trim:
                self._trim_locked()
            return True

    def trim(self) -> None:
        """Evict the oldest ids until the set is back within capacity."""
        with self._lock:
            self._trim_locked()

    def _trim_locked(self) -> None:
        while len(self._order) > self.capacity:
            self._members.discard(self._order.popleft())

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._members

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)

    def __iter__(self) -> Iterator[int]:
        return iter(self.snapshot())

    def snapshot(self) -> List[int]:
        """Ids from oldest to newest."""
        with self._lock:
            return list(self._order)

    def clear(self) -> None:
        with self._lock:
            self._order.clear()
            self._members.clear()
