"""
Time-boxed cache for near-static reference data (brands, categories)

Entries are rebuilt lazily by whichever caller first observes expiry. There is
no single-flight lock, so concurrent callers may rebuild the same entry; only
use this for data where a short staleness window is harmless.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    loaded_at: float


class ReferenceCache:
    """TTL cache with an injectable clock"""

    def __init__(self, ttl: float = 300.0, clock: Optional[Callable[[], float]] = None):
        self.ttl = ttl
        self.clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value for key, reloading it if missing or expired"""
        now = self.clock()
        entry = self._entries.get(key)
        if entry is not None and now - entry.loaded_at < self.ttl:
            return entry.value

        logger.debug(f'Reference cache miss: {key}')
        value = loader()
        self._entries[key] = CacheEntry(value=value, loaded_at=now)
        return value

    def invalidate(self, key: Optional[str] = None):
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
