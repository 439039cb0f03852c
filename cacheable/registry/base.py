from typing import Protocol

from cacheable.storage.expiring_map import ExpiringMap


class CacheRegistry(Protocol):
    """Resolves the store holding a method's cache entries for one scope."""

    def get_or_init(self, target: object, method_name: str) -> ExpiringMap:
        """Return the store for (*target*, *method_name*), creating it on first use."""
        ...

    def get_or_init_dir(self, target: object) -> set[str]:
        """Return the names of *target*'s methods that have a store."""
        ...
