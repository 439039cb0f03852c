from cacheable.errors import UnrecognizedScopeError
from cacheable.models.enums import Scope
from cacheable.registry.base import CacheRegistry
from cacheable.registry.context_local import ContextLocalCacheRegistry
from cacheable.registry.global_registry import GlobalCacheRegistry


class CacheRegistryProvider:
    """Maps a :class:`Scope` to the process-wide registry serving it."""

    global_registry = GlobalCacheRegistry()
    context_local_registry = ContextLocalCacheRegistry()

    @classmethod
    def for_scope(cls, scope: Scope | str) -> CacheRegistry:
        """Return the registry for *scope*.

        Raises:
            UnrecognizedScopeError: If *scope* is not a known :class:`Scope`.
        """
        match scope:
            case Scope.GLOBAL:
                return cls.global_registry
            case Scope.CONTEXT_LOCAL:
                return cls.context_local_registry
            case _:
                raise UnrecognizedScopeError(f"No cache registry for scope: {scope!r}")
