"""Expiring key-value cache for per-client state."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for short-lived per-client data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""

    def pop(self, key: str) -> object | None:
        """Remove and return a cached value if present and not expired."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


class InMemoryCache(Cache):
    """Process-local cache bounded by TTL and entry count.

    Entries are kept in least-recently-written order. Expired entries are
    swept every ``sweep_every`` writes, and the oldest entries are evicted
    once ``max_entries`` is exceeded.
    """

    def __init__(self, max_entries: int = 10000, sweep_every: int = 100) -> None:
        self._entries: dict[str, _CacheEntry] = {}
        self._max_entries = max_entries
        self._sweep_every = sweep_every
        self._writes = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> object | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a value, moving it to the most recently written end."""
        now = datetime.now(tz=UTC)
        self._entries.pop(key, None)
        self._entries[key] = _CacheEntry(
            value=value, expires_at=now + timedelta(seconds=ttl_seconds)
        )
        self._writes += 1
        if self._writes % self._sweep_every == 0:
            self.sweep(now)
        while len(self._entries) > self._max_entries:
            del self._entries[next(iter(self._entries))]

    def pop(self, key: str) -> object | None:
        """Consume a cached value so it can be read only once."""
        value = self.get(key)
        self._entries.pop(key, None)
        return value

    def sweep(self, now: datetime | None = None) -> int:
        """Drop every expired entry; returns how many were removed."""
        moment = now or datetime.now(tz=UTC)
        expired = [
            key for key, entry in self._entries.items() if moment >= entry.expires_at
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)
