"""In-memory key/value store with optional per-entry time-to-live."""

import time
from collections.abc import Hashable


class MapEntry:
    """A stored value stamped with its creation time and optional TTL (seconds)."""

    __slots__ = ("data", "created_at", "ttl")

    def __init__(self, data: object, ttl: float | None = None) -> None:
        self.data = data
        self.created_at = time.monotonic()
        self.ttl = ttl

    @property
    def is_expired(self) -> bool:
        if self.ttl is None:
            return False
        return time.monotonic() > self.created_at + self.ttl


class ExpiringMap:
    """TTL-aware mapping. Expired entries are never returned.

    Entries are evicted on the first read that observes them expired, and
    every ``set`` sweeps the whole map. There is no background sweeper.
    Not safe for unsynchronised mutation from several threads.
    """

    def __init__(self) -> None:
        self._store: dict[Hashable, MapEntry] = {}

    def set(self, key: Hashable, value: object, ttl: float | None = None) -> None:
        """Store *value* under *key*, replacing any existing entry.

        Args:
            key: Cache key.
            value: Value to store (``None`` included).
            ttl: Time-to-live in seconds. ``None`` keeps the entry indefinitely.
        """
        self._store[key] = MapEntry(value, ttl)
        self._clean()

    def get(self, key: Hashable, default: object = None) -> object:
        """Return the live value for *key*, or *default* if missing or expired."""
        entry = self._store.get(key)
        if entry is None:
            return default
        if entry.is_expired:
            del self._store[key]
            return default
        return entry.data

    def has(self, key: Hashable) -> bool:
        """Return True when *key* holds an entry that has not expired."""
        entry = self._store.get(key)
        if entry is None:
            return False
        if entry.is_expired:
            del self._store[key]
            return False
        return True

    def delete(self, key: Hashable) -> bool:
        """Remove *key*. Returns True if it held an entry that had not expired."""
        entry = self._store.pop(key, None)
        return entry is not None and not entry.is_expired

    def clear(self) -> None:
        """Remove all entries."""
        self._store.clear()

    def keys(self) -> list[Hashable]:
        """Keys of all live entries."""
        self._clean()
        return list(self._store)

    @property
    def size(self) -> int:
        """Number of live entries."""
        self._clean()
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return self.has(key)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self.size

    def _clean(self) -> None:
        expired = [key for key, entry in self._store.items() if entry.is_expired]
        for key in expired:
            del self._store[key]
