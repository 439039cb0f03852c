"""Cache storage scoped to a logical unit of work, such as one HTTP request.

A :class:`Namespace` wraps a :class:`contextvars.ContextVar`. Entering
``namespace.context()`` activates a fresh :class:`CacheContext`; asyncio
tasks created inside it inherit it, so a lookup after an ``await`` resolves
the same context. Work handed to a thread pool does not inherit it unless it
goes through ``asyncio.to_thread`` or :meth:`CacheContext.run`.
"""

import contextvars
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import TypeVar

from cacheable.config import get_settings
from cacheable.errors import MissingContextError
from cacheable.storage.expiring_map import ExpiringMap

logger = logging.getLogger(__name__)

T = TypeVar("T")

REGISTRY_KEY = "__cacheable_registry__"


class CacheContext:
    """Handle on one active context and its private values."""

    def __init__(self, namespace: "Namespace") -> None:
        self.namespace = namespace
        self._values: dict[str, object] = {}
        self.lock = threading.RLock()

    def get(self, key: str, default: object = None) -> object:
        return self._values.get(key, default)

    def set(self, key: str, value: object) -> None:
        self._values[key] = value

    def setdefault(self, key: str, factory: Callable[[], T]) -> T:
        """Return the value under *key*, storing ``factory()`` first if absent."""
        with self.lock:
            if key not in self._values:
                self._values[key] = factory()
            return self._values[key]  # type: ignore[return-value]

    def run(self, func: Callable[..., T], *args: object, **kwargs: object) -> T:
        """Call *func* with this context active, e.g. inside a worker thread."""
        return contextvars.copy_context().run(self._run_active, func, args, kwargs)

    def _run_active(self, func: Callable[..., T], args: tuple, kwargs: dict) -> T:
        self.namespace._var.set(self)
        return func(*args, **kwargs)


class Namespace:
    """A named slot for the active :class:`CacheContext`."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._var: contextvars.ContextVar[CacheContext | None] = contextvars.ContextVar(
            name, default=None
        )

    @property
    def active(self) -> bool:
        return self._var.get() is not None

    def current(self) -> CacheContext:
        """Return the active context.

        Raises:
            MissingContextError: If no context is active.
        """
        context = self._var.get()
        if context is None:
            raise MissingContextError(
                f"No active cache context in namespace '{self.name}'. "
                "Wrap the unit of work in cache_context() or CacheContext.run()."
            )
        return context

    @contextmanager
    def context(self) -> Iterator[CacheContext]:
        """Activate a fresh context for the duration of the block."""
        handle = CacheContext(self)
        token = self._var.set(handle)
        try:
            yield handle
        finally:
            self._var.reset(token)

    def get(self, key: str, default: object = None) -> object:
        return self.current().get(key, default)

    def set(self, key: str, value: object) -> None:
        self.current().set(key, value)


_namespaces: dict[str, Namespace] = {}
_namespaces_lock = threading.Lock()


def get_namespace(name: str | None = None) -> Namespace:
    """Return the namespace registered under *name*, creating it on first use.

    Defaults to ``Settings.namespace``.
    """
    if name is None:
        name = get_settings().namespace
    with _namespaces_lock:
        namespace = _namespaces.get(name)
        if namespace is None:
            namespace = Namespace(name)
            _namespaces[name] = namespace
        return namespace


def cache_context() -> AbstractContextManager[CacheContext]:
    """Shorthand for ``get_namespace().context()``."""
    return get_namespace().context()


class _ContextCaches:
    __slots__ = ("maps", "directories")

    def __init__(self) -> None:
        self.maps: dict[tuple[type, str], ExpiringMap] = {}
        self.directories: dict[type, set[str]] = {}


class ContextLocalCacheRegistry:
    """Stores keyed by (owner type, method name) inside the active context.

    Isolation is by context, not by object: two structurally identical
    owners in one context share a store, and the same owner seen from two
    contexts does not.

    Args:
        namespace: Namespace to resolve the active context from. Defaults to
            the configured namespace, looked up on every call.
    """

    def __init__(self, namespace: Namespace | None = None) -> None:
        self._namespace = namespace

    @property
    def namespace(self) -> Namespace:
        return self._namespace or get_namespace()

    def get_or_init(self, target: object, method_name: str) -> ExpiringMap:
        context = self.namespace.current()
        caches = context.setdefault(REGISTRY_KEY, _ContextCaches)
        owner = type(target)
        with context.lock:
            caches.directories.setdefault(owner, set()).add(method_name)
            store = caches.maps.get((owner, method_name))
            if store is None:
                store = ExpiringMap()
                caches.maps[(owner, method_name)] = store
                logger.debug(
                    "Created context-local cache for %s::%s", owner.__name__, method_name
                )
            return store

    def get_or_init_dir(self, target: object) -> set[str]:
        context = self.namespace.current()
        caches = context.setdefault(REGISTRY_KEY, _ContextCaches)
        with context.lock:
            return caches.directories.setdefault(type(target), set())
