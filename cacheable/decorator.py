"""The ``@cacheable()`` decorator: memoizes a method or property per scope."""

import asyncio
import concurrent.futures
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence

from cacheable.errors import UncacheablePropertyError
from cacheable.keys import UNDEFINED, CacheKey, build_cache_key
from cacheable.models import CacheableOptions, Scope
from cacheable.registry.provider import CacheRegistryProvider
from cacheable.storage.expiring_map import ExpiringMap

logger = logging.getLogger(__name__)


def cacheable(
    scope: Scope | str = Scope.GLOBAL,
    ttl: float | None = None,
    cache_undefined: bool = True,
) -> Callable:
    """Cache a method's return value keyed by its arguments.

    Apply to an instance method (sync or ``async def``) or to a ``property``.
    Arguments are turned into a key with :func:`~cacheable.keys.build_cache_key`;
    the store is resolved per call from the registry for *scope*.

    Args:
        scope: ``Scope.GLOBAL`` (per instance) or ``Scope.CONTEXT_LOCAL``
            (per active cache context).
        ttl: Time-to-live in seconds. ``None`` caches indefinitely.
        cache_undefined: Whether an ``UNDEFINED`` result is stored.

    Raises:
        UnrecognizedScopeError: If *scope* is unknown.
        UncacheablePropertyError: If applied to anything but a method or property.
    """
    CacheRegistryProvider.for_scope(scope)
    options = CacheableOptions(scope=scope, ttl=ttl, cache_undefined=cache_undefined)

    def decorator(member):  # type: ignore[no-untyped-def]
        if isinstance(member, property):
            if member.fget is None:
                raise UncacheablePropertyError("Cannot cache a property without a getter.")
            return member.getter(_wrap(member.fget, options))
        if inspect.isfunction(member):
            return _wrap(member, options)
        raise UncacheablePropertyError(
            "Only put a cacheable() decorator on a method or property getter, "
            f"not {type(member).__name__}."
        )

    return decorator


def method_identity(target: object, method_name: str) -> str:
    return f"{type(target).__name__}::{method_name}"


def call_key(
    signature: inspect.Signature | None,
    target: object,
    method_name: str,
    args: Sequence[object],
    kwargs: Mapping[str, object] | None = None,
) -> CacheKey:
    """Key for a call, with keyword arguments bound to positions where possible.

    ``m(1)`` and ``m(x=1)`` produce the same key when *signature* is known.
    """
    if signature is not None:
        bound = signature.bind(target, *args, **(kwargs or {}))
        args, kwargs = bound.args[1:], bound.kwargs
    return build_cache_key(args, method_identity(target, method_name), kwargs)


def is_future_like(value: object) -> bool:
    """Return True for objects that accept completion callbacks (asyncio or concurrent futures)."""
    return callable(getattr(value, "add_done_callback", None)) and callable(
        getattr(value, "exception", None)
    )


def _wrap(method: Callable, options: CacheableOptions) -> Callable:
    signature = inspect.signature(method)
    method_name = method.__name__
    is_coroutine = inspect.iscoroutinefunction(method)
    # Type of future the method returned on a miss; hits then answer with one too.
    future_type: type | None = None

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        nonlocal future_type
        # Key errors surface here, before the method runs or a coroutine exists.
        key = call_key(signature, self, method_name, args, kwargs)
        identity = method_identity(self, method_name)
        store = CacheRegistryProvider.for_scope(options.scope).get_or_init(self, method_name)

        if store.has(key):
            logger.debug("Cache hit for %s key=%s", identity, key)
            value = store.get(key)
            if is_coroutine:
                return _resolved(value)
            if future_type is not None:
                return _completed_future(future_type, value)
            return value

        logger.debug("Cache miss for %s key=%s", identity, key)
        result = method(self, *args, **kwargs)
        if is_future_like(result):
            future_type = type(result)
            result.add_done_callback(
                functools.partial(_store_future_result, store, key, options, identity)
            )
            return result
        if inspect.isawaitable(result):
            return _store_when_resolved(result, store, key, options, identity)
        _store_if_eligible(store, key, result, options, identity)
        return result

    if is_coroutine:
        inspect.markcoroutinefunction(wrapper)
    wrapper.__cacheable_options__ = options  # type: ignore[attr-defined]
    return wrapper


async def _resolved(value: object) -> object:
    return value


def _completed_future(
    future_type: type, value: object
) -> asyncio.Future | concurrent.futures.Future:
    """Return a future of the same kind as *future_type*, already resolved to *value*."""
    future: asyncio.Future | concurrent.futures.Future
    if issubclass(future_type, asyncio.Future):
        try:
            future = asyncio.get_running_loop().create_future()
        except RuntimeError:
            # No running loop to bind to; a concurrent future can still be polled.
            future = concurrent.futures.Future()
    else:
        future = concurrent.futures.Future()
    future.set_result(value)
    return future


async def _store_when_resolved(
    awaitable: Awaitable[object],
    store: ExpiringMap,
    key: CacheKey,
    options: CacheableOptions,
    identity: str,
) -> object:
    value = await awaitable
    _store_if_eligible(store, key, value, options, identity)
    return value


def _store_future_result(
    store: ExpiringMap,
    key: CacheKey,
    options: CacheableOptions,
    identity: str,
    future: asyncio.Future | concurrent.futures.Future,
) -> None:
    if future.cancelled() or future.exception() is not None:
        logger.debug("Not caching failed result for %s key=%s", identity, key)
        return
    _store_if_eligible(store, key, future.result(), options, identity)


def _store_if_eligible(
    store: ExpiringMap, key: CacheKey, value: object, options: CacheableOptions, identity: str
) -> None:
    if value is UNDEFINED and not options.cache_undefined:
        logger.debug("Not caching undefined result for %s key=%s", identity, key)
        return
    store.set(key, value, options.ttl)
    logger.debug("Cached result for %s key=%s", identity, key)
