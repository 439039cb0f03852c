"""Per-instance cache storage that lives as long as the owning object."""

import logging
import threading
import weakref

from cacheable.errors import UncacheableOwnerError
from cacheable.storage.expiring_map import ExpiringMap

logger = logging.getLogger(__name__)


class _InstanceCaches:
    __slots__ = ("maps", "directory")

    def __init__(self) -> None:
        self.maps: dict[str, ExpiringMap] = {}
        self.directory: set[str] = set()


class GlobalCacheRegistry:
    """Side-table from object identity to that object's per-method stores.

    Two instances never share a store, even when they compare equal. The
    owning object is never mutated. Its entry is dropped when it is garbage
    collected, so owners must support weak references; a class that sets
    ``__slots__`` has to include ``"__weakref__"`` in them.
    """

    def __init__(self) -> None:
        self._instances: dict[int, _InstanceCaches] = {}
        self._lock = threading.RLock()

    def get_or_init(self, target: object, method_name: str) -> ExpiringMap:
        with self._lock:
            caches = self._caches_for(target)
            caches.directory.add(method_name)
            store = caches.maps.get(method_name)
            if store is None:
                store = ExpiringMap()
                caches.maps[method_name] = store
                logger.debug(
                    "Created global cache for %s::%s", type(target).__name__, method_name
                )
            return store

    def get_or_init_dir(self, target: object) -> set[str]:
        with self._lock:
            return self._caches_for(target).directory

    def _caches_for(self, target: object) -> _InstanceCaches:
        key = id(target)
        caches = self._instances.get(key)
        if caches is not None:
            return caches
        try:
            weakref.finalize(target, self._forget, key)
        except TypeError as exc:
            raise UncacheableOwnerError(
                f"Cannot cache on {type(target).__name__} instances: they do not support "
                "weak references, so their caches could never be released. Add "
                "'__weakref__' to the class's __slots__."
            ) from exc
        caches = _InstanceCaches()
        self._instances[key] = caches
        return caches

    def _forget(self, key: int) -> None:
        with self._lock:
            self._instances.pop(key, None)
