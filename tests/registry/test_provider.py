import pytest

from cacheable.errors import UnrecognizedScopeError
from cacheable.models.enums import Scope
from cacheable.registry.context_local import ContextLocalCacheRegistry
from cacheable.registry.global_registry import GlobalCacheRegistry
from cacheable.registry.provider import CacheRegistryProvider


class TestForScope:
    def test_global(self):
        assert isinstance(CacheRegistryProvider.for_scope(Scope.GLOBAL), GlobalCacheRegistry)

    def test_context_local(self):
        registry = CacheRegistryProvider.for_scope(Scope.CONTEXT_LOCAL)
        assert isinstance(registry, ContextLocalCacheRegistry)

    def test_string_value_accepted(self):
        assert CacheRegistryProvider.for_scope("global") is CacheRegistryProvider.global_registry

    def test_same_registry_every_time(self):
        assert CacheRegistryProvider.for_scope(Scope.GLOBAL) is CacheRegistryProvider.for_scope(
            Scope.GLOBAL
        )

    @pytest.mark.parametrize("scope", ["LOCAL_STORAGE", "", None, 3])
    def test_unrecognized_scope_raises(self, scope):
        with pytest.raises(UnrecognizedScopeError, match="No cache registry"):
            CacheRegistryProvider.for_scope(scope)
