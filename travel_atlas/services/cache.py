"""
TTL Cache - In-memory key/value store shared by the place services.
"""
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional


DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class CacheEntry:
    """A cached value and the monotonic time it was stored."""
    key: str
    value: Any
    created_at: float


class TTLCache:
    """
    Process-wide cache with a fixed time-to-live per entry.

    Expired entries read as a miss and are evicted on that read. There is no
    capacity bound. The clock is injectable so tests can advance time.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock())

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    def delete(self, key: str) -> None:
        """Drop a single entry if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
