"""Direct cache access outside the decorated call path.

Use these to invalidate or pre-seed entries. Each operation is addressed by
(target, method name, argument list) and derives its key exactly as the
decorator does, so both paths see the same cache.
"""

import inspect
from collections.abc import Mapping, Sequence

from cacheable.decorator import call_key
from cacheable.keys import UNDEFINED, CacheKey
from cacheable.models import CacheableOptions, Scope
from cacheable.registry.provider import CacheRegistryProvider
from cacheable.storage.expiring_map import ExpiringMap


def _decorated(target: object, method_name: str) -> object:
    member = inspect.getattr_static(type(target), method_name, None)
    if isinstance(member, property):
        member = member.fget
    return member


def _signature(target: object, method_name: str) -> inspect.Signature | None:
    original = getattr(_decorated(target, method_name), "__wrapped__", None)
    if original is None:
        return None
    return inspect.signature(original)


def _options(target: object, method_name: str) -> CacheableOptions | None:
    return getattr(_decorated(target, method_name), "__cacheable_options__", None)


def _store(scope: Scope, target: object, method_name: str) -> ExpiringMap:
    return CacheRegistryProvider.for_scope(scope).get_or_init(target, method_name)


def _key(
    target: object,
    method_name: str,
    args: Sequence[object],
    kwargs: Mapping[str, object] | None,
) -> CacheKey:
    return call_key(_signature(target, method_name), target, method_name, args, kwargs)


def cache_get(
    scope: Scope,
    target: object,
    method_name: str,
    args: Sequence[object] = (),
    kwargs: Mapping[str, object] | None = None,
) -> object:
    """Return the cached value, or ``UNDEFINED`` if absent. Never calls the method.

    A cached ``None`` comes back as ``None``, so the two cases stay distinct.
    """
    key = _key(target, method_name, args, kwargs)
    return _store(scope, target, method_name).get(key, UNDEFINED)


def cache_set(
    scope: Scope,
    target: object,
    method_name: str,
    args: Sequence[object],
    value: object,
    ttl: float | None = None,
    kwargs: Mapping[str, object] | None = None,
) -> None:
    """Store *value* unconditionally, ``UNDEFINED`` included.

    *ttl* defaults to the ttl the method was decorated with.
    """
    key = _key(target, method_name, args, kwargs)
    if ttl is None:
        options = _options(target, method_name)
        ttl = options.ttl if options is not None else None
    _store(scope, target, method_name).set(key, value, ttl)


def cache_delete(
    scope: Scope,
    target: object,
    method_name: str,
    args: Sequence[object] = (),
    kwargs: Mapping[str, object] | None = None,
) -> None:
    """Remove the entry for these arguments. No-op if absent."""
    key = _key(target, method_name, args, kwargs)
    _store(scope, target, method_name).delete(key)


def cache_clear(scope: Scope, target: object, method_name: str) -> None:
    """Remove every entry for (*target*, *method_name*)."""
    _store(scope, target, method_name).clear()


def cache_methods(scope: Scope, target: object) -> set[str]:
    """Names of *target*'s methods that have a cache in *scope*."""
    return set(CacheRegistryProvider.for_scope(scope).get_or_init_dir(target))


def cache_keys(scope: Scope, target: object, method_name: str) -> list[CacheKey]:
    """Keys of the live entries for (*target*, *method_name*)."""
    return _store(scope, target, method_name).keys()  # type: ignore[return-value]


# ── Global scope ─────────────────────────────────────────────────────────────


def global_get(
    target: object,
    method_name: str,
    args: Sequence[object] = (),
    kwargs: Mapping[str, object] | None = None,
) -> object:
    return cache_get(Scope.GLOBAL, target, method_name, args, kwargs)


def global_set(
    target: object,
    method_name: str,
    args: Sequence[object],
    value: object,
    ttl: float | None = None,
    kwargs: Mapping[str, object] | None = None,
) -> None:
    cache_set(Scope.GLOBAL, target, method_name, args, value, ttl, kwargs)


def global_delete(
    target: object,
    method_name: str,
    args: Sequence[object] = (),
    kwargs: Mapping[str, object] | None = None,
) -> None:
    cache_delete(Scope.GLOBAL, target, method_name, args, kwargs)


def global_clear(target: object, method_name: str) -> None:
    cache_clear(Scope.GLOBAL, target, method_name)


def global_methods(target: object) -> set[str]:
    return cache_methods(Scope.GLOBAL, target)


def global_keys(target: object, method_name: str) -> list[CacheKey]:
    return cache_keys(Scope.GLOBAL, target, method_name)


# ── Context-local scope ──────────────────────────────────────────────────────


def context_local_get(
    target: object,
    method_name: str,
    args: Sequence[object] = (),
    kwargs: Mapping[str, object] | None = None,
) -> object:
    return cache_get(Scope.CONTEXT_LOCAL, target, method_name, args, kwargs)


def context_local_set(
    target: object,
    method_name: str,
    args: Sequence[object],
    value: object,
    ttl: float | None = None,
    kwargs: Mapping[str, object] | None = None,
) -> None:
    cache_set(Scope.CONTEXT_LOCAL, target, method_name, args, value, ttl, kwargs)


def context_local_delete(
    target: object,
    method_name: str,
    args: Sequence[object] = (),
    kwargs: Mapping[str, object] | None = None,
) -> None:
    cache_delete(Scope.CONTEXT_LOCAL, target, method_name, args, kwargs)


def context_local_clear(target: object, method_name: str) -> None:
    cache_clear(Scope.CONTEXT_LOCAL, target, method_name)


def context_local_methods(target: object) -> set[str]:
    return cache_methods(Scope.CONTEXT_LOCAL, target)


def context_local_keys(target: object, method_name: str) -> list[CacheKey]:
    return cache_keys(Scope.CONTEXT_LOCAL, target, method_name)
