from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Optional, Tuple

from autostream.logger import LogCallback, emit


class TTLCache:
    """Small in-memory cache with TTL semantics and LRU eviction.

    Holds at most ``max_entries`` items. Every entry expires ``ttl_ms`` after
    it was stored; ``get`` treats an expired entry as absent and drops it.
    A ``set`` of a new key while full evicts exactly one entry: the least
    recently used one (``get`` and ``set`` both count as a use).

    A miss is authoritative, there is no change notification.
    """

    def __init__(
        self,
        max_entries: int = 400,
        ttl_ms: float = 60 * 60 * 1000,
        log: Optional[LogCallback] = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max_entries = max_entries
        self._ttl_ms = ttl_ms
        self._log = log
        self._lock = threading.Lock()
        # key -> (expires_at_ms, value); order is least -> most recently used
        self._store: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    def _now(self) -> float:
        return time.monotonic() * 1000.0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._store.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= self._now():
                del self._store[key]
                emit(self._log, "cache expired", key)
                return None
            self._store.move_to_end(key)
            return value

    def set(self, key: str, value: Any, ttl_ms: Optional[float] = None) -> None:
        ttl_value = self._ttl_ms if ttl_ms is None else ttl_ms
        with self._lock:
            if key in self._store:
                del self._store[key]
            elif len(self._store) >= self._max_entries:
                evicted, _ = self._store.popitem(last=False)
                emit(self._log, "cache evict", evicted)
            self._store[key] = (self._now() + ttl_value, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
