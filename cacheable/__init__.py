from cacheable.asgi import CacheContextMiddleware
from cacheable.config import Settings, get_settings, reset_settings, setup_logging
from cacheable.decorator import cacheable
from cacheable.errors import (
    CacheableError,
    MissingContextError,
    UncacheableArgumentError,
    UncacheableOwnerError,
    UncacheablePropertyError,
    UnrecognizedScopeError,
)
from cacheable.keys import (
    UNDEFINED,
    CacheableKey,
    CacheKey,
    SentinelKey,
    build_cache_key,
    implements_cacheable_key,
)
from cacheable.models import CacheableOptions, Scope
from cacheable.operations import (
    context_local_clear,
    context_local_delete,
    context_local_get,
    context_local_keys,
    context_local_methods,
    context_local_set,
    global_clear,
    global_delete,
    global_get,
    global_keys,
    global_methods,
    global_set,
)
from cacheable.registry.context_local import (
    CacheContext,
    Namespace,
    cache_context,
    get_namespace,
)
from cacheable.storage.expiring_map import ExpiringMap

__all__ = [
    "UNDEFINED",
    "CacheContext",
    "CacheContextMiddleware",
    "CacheKey",
    "CacheableError",
    "CacheableKey",
    "CacheableOptions",
    "ExpiringMap",
    "MissingContextError",
    "Namespace",
    "Scope",
    "SentinelKey",
    "Settings",
    "UncacheableArgumentError",
    "UncacheableOwnerError",
    "UncacheablePropertyError",
    "UnrecognizedScopeError",
    "build_cache_key",
    "cache_context",
    "cacheable",
    "context_local_clear",
    "context_local_delete",
    "context_local_get",
    "context_local_keys",
    "context_local_methods",
    "context_local_set",
    "get_namespace",
    "get_settings",
    "global_clear",
    "global_delete",
    "global_get",
    "global_keys",
    "global_methods",
    "global_set",
    "implements_cacheable_key",
    "reset_settings",
    "setup_logging",
]
