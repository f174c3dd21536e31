"""In-memory async TTL cache used for treasury policies."""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Simple in-memory TTL cache with LRU eviction."""

    def __init__(self, default_ttl: float = 300, max_size: int = 256):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if time.monotonic() > entry.expires_at:
                del self._cache[key]
                return None
            # Re-insert to mark as most recently used
            self._cache[key] = self._cache.pop(key)
            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        async with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = CacheEntry(
                value=value,
                expires_at=time.monotonic() + (ttl or self.default_ttl),
            )
            while len(self._cache) > self.max_size:
                del self._cache[next(iter(self._cache))]

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value or fetch and cache it.

        None results are not cached, so a missing value is looked up again
        next time.
        """
        value = await self.get(key)
        if value is not None:
            return value
        value = await fetch()
        if value is not None:
            await self.set(key, value)
        return value

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()

    def size(self) -> int:
        return len(self._cache)
