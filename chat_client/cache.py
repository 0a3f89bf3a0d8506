# chat_client/cache.py
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

Key = Tuple[Hashable, ...]

DEFAULT_STALE_TIME_S = 5 * 60


@dataclass
class _Entry:
    data: Any
    fetched_at: float
    stale: bool = False


def _matches(key: Key, prefix: Key) -> bool:
    return key[:len(prefix)] == prefix


class QueryCache:
    """
    Keyed query results with stale tracking.

    `fetch` serves fresh entries and reloads stale or missing ones;
    `invalidate` marks entries stale by key prefix, `remove` drops them.
    """

    def __init__(self, stale_time_s: float = DEFAULT_STALE_TIME_S, clock: Callable[[], float] = time.monotonic):
        self.stale_time_s = stale_time_s
        self._clock = clock
        self._entries: Dict[Key, _Entry] = {}

    def __contains__(self, key: Key) -> bool:
        return key in self._entries

    def keys(self):
        return list(self._entries)

    def get(self, key: Key) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set(self, key: Key, data: Any) -> None:
        self._entries[key] = _Entry(data=data, fetched_at=self._clock())

    def update(self, key: Key, fn: Callable[[Any], Any]) -> bool:
        """Replace an entry's data with fn(old); no-op when the key is absent."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        entry.data = fn(entry.data)
        return True

    def is_stale(self, key: Key) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return True
        return entry.stale or (self._clock() - entry.fetched_at) > self.stale_time_s

    def fetch(self, key: Key, loader: Callable[[], Any]) -> Any:
        if not self.is_stale(key):
            return self._entries[key].data
        logger.debug("cache_load key=%s", key)
        data = loader()
        self.set(key, data)
        return data

    def invalidate(self, prefix: Key = ()) -> int:
        count = 0
        for key, entry in self._entries.items():
            if _matches(key, prefix):
                entry.stale = True
                count += 1
        return count

    def remove(self, prefix: Key) -> int:
        doomed = [key for key in self._entries if _matches(key, prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)
