"""Bounded-count in-process LRU cache."""

import threading
from typing import Generic, TypeVar

from cachetools import LRUCache

T = TypeVar("T")


class LRUMemoryCache(Generic[T]):
    """
    Keeps the N most recently used values in memory.

    Sits in front of a DataCache so the same key is not re-read from disk
    repeatedly within a session. Both lookups and insertions move a key to
    the most-recently-used position; inserting past the bound evicts the
    least recently used key.
    """

    def __init__(self, maxsize: int = 50) -> None:
        self.maxsize = maxsize
        self._cache: LRUCache[str, T] = LRUCache(maxsize=maxsize)
        self._lock = threading.Lock()

    def get(self, key: str) -> T | None:
        with self._lock:
            return self._cache.get(key)

    def put(self, key: str, value: T) -> None:
        with self._lock:
            self._cache[key] = value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
