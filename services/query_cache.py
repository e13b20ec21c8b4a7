import logging
import threading
from typing import Any, Callable, Dict, Hashable, Tuple

log = logging.getLogger(__name__)

CacheKey = Tuple[Hashable, ...]


class QueryCache:
    """Per-session store of query results keyed by tuples like ("cases", client_id).

    Invalidation is by key prefix: invalidating ("cases",) drops ("cases",),
    ("cases", None) and ("cases", "c1") alike.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: Dict[CacheKey, Any] = {}

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_fetch(self, key: CacheKey, fetch: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        value = fetch()
        with self._lock:
            self._entries[key] = value
        return value

    def set(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def invalidate(self, prefix: CacheKey) -> int:
        n = len(prefix)
        with self._lock:
            stale = [k for k in self._entries if k[:n] == prefix]
            for k in stale:
                del self._entries[k]
        if stale:
            log.debug("Invalidated %d cached queries under %s", len(stale), prefix)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
