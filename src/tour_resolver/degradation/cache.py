"""In-memory cache with per-entry TTL, backing the CACHE_ONLY level."""

import time
from typing import Callable, Generic, Optional, TypeVar

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 3600.0


class TTLCache(Generic[V]):
    """
    Dictionary cache whose entries expire after a TTL.

    Expired entries are dropped on read, and purged in bulk on every write.
    """

    def __init__(
        self,
        default_ttl_s: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_s = default_ttl_s
        self._clock = clock
        self._entries: dict[str, tuple[V, float]] = {}

    def set(self, key: str, value: V, ttl_s: Optional[float] = None) -> None:
        self.purge_expired()
        ttl = self.default_ttl_s if ttl_s is None else ttl_s
        self._entries[key] = (value, self._clock() + ttl)

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
