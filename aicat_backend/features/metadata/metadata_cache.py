"""Bounded TTL cache for parsed metadata, keyed by path and file mtime."""
import copy
import threading
import time
from collections import OrderedDict
from typing import Any, Optional

DEFAULT_MAX_ENTRIES = 1024


class MetadataCache:
    """
    LRU of parsed records.

    Entries expire after `ttl_seconds`; expired entries are dropped on every
    `put`, and the least recently used ones go once `max_entries` is exceeded.
    """

    def __init__(self, ttl_seconds: float = 300.0, max_entries: int = DEFAULT_MAX_ENTRIES):
        self._ttl = max(1.0, float(ttl_seconds))
        self._max_entries = max(1, int(max_entries))
        self._store: "OrderedDict[str, tuple[float, Optional[float], dict[str, Any]]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, path: str, mtime: Optional[float] = None) -> dict[str, Any] | None:
        with self._lock:
            item = self._store.get(path)
            if not item:
                return None
            ts, cached_mtime, data = item
            if (time.time() - ts) > self._ttl or cached_mtime != mtime:
                self._store.pop(path, None)
                return None
            self._store.move_to_end(path)
            return copy.deepcopy(data)

    def put(self, path: str, data: dict[str, Any], mtime: Optional[float] = None) -> None:
        now = time.time()
        with self._lock:
            self._drop_expired(now)
            self._store[path] = (now, mtime, copy.deepcopy(data or {}))
            self._store.move_to_end(path)
            while len(self._store) > self._max_entries:
                self._store.popitem(last=False)

    def invalidate(self, path: str) -> None:
        with self._lock:
            self._store.pop(path, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def prune_expired(self) -> int:
        with self._lock:
            return self._drop_expired(time.time())

    def _drop_expired(self, now: float) -> int:
        # caller holds _lock
        expired = [k for k, (ts, _, _) in self._store.items() if (now - ts) > self._ttl]
        for k in expired:
            self._store.pop(k, None)
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
