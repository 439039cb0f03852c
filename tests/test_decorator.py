"""Tests for cacheable.decorator — the interception wrapper."""

import asyncio
import concurrent.futures
import gc
import inspect

import pytest

from cacheable import (
    UNDEFINED,
    MissingContextError,
    Scope,
    SentinelKey,
    UncacheableArgumentError,
    UncacheableOwnerError,
    UncacheablePropertyError,
    UnrecognizedScopeError,
    cache_context,
    cacheable,
    global_keys,
)
from cacheable.decorator import is_future_like
from cacheable.registry.provider import CacheRegistryProvider
from tests.factories import CacheableDwarf, Dwarf, DwarfProfile, DwarfRepository


@pytest.fixture
def repo():
    return DwarfRepository()


class TestNoArguments:
    async def test_async_method_cached(self, repo):
        first = await repo.find_happiest()
        second = await repo.find_happiest()
        assert first == second == Dwarf("Huck", "Finn")
        assert repo.calls["find_happiest"] == 1

    def test_sync_method_stays_sync(self, repo):
        assert global_keys(repo, "non_async") == []
        result = repo.non_async()
        assert not inspect.isawaitable(result)
        assert result == 1_000_000
        assert global_keys(repo, "non_async") == [SentinelKey.NO_ARGS]
        assert repo.non_async() == 1_000_000
        assert repo.calls["non_async"] == 1

    def test_async_wrapper_is_coroutine_function(self):
        assert inspect.iscoroutinefunction(DwarfRepository.find_happiest)
        assert not inspect.iscoroutinefunction(DwarfRepository.non_async)

    def test_wraps_metadata(self):
        assert DwarfRepository.non_async.__name__ == "non_async"
        assert DwarfRepository.non_async.__cacheable_options__.scope is Scope.GLOBAL

    def test_instances_do_not_share(self):
        first, second = DwarfRepository(), DwarfRepository()
        first.non_async()
        second.non_async()
        assert first.calls["non_async"] == 1
        assert second.calls["non_async"] == 1


class TestArguments:
    async def test_single_argument(self, repo):
        assert await repo.count_by_last_name("Blues") == 12
        assert await repo.count_by_last_name("Blues") == 12
        assert repo.calls["count_by_last_name"] == 1

    async def test_different_arguments_miss(self, repo):
        await repo.count_by_last_name("Blues")
        await repo.count_by_last_name("Greens")
        assert repo.calls["count_by_last_name"] == 2

    async def test_multiple_arguments(self, repo):
        await repo.count_by_first_and_last_name("Jasper", "Blues")
        await repo.count_by_first_and_last_name("Jasper", "Blues")
        assert repo.calls["count_by_first_and_last_name"] == 1
        assert global_keys(repo, "count_by_first_and_last_name") == ['"Jasper"_"Blues"']

    async def test_none_and_undefined_arguments_distinct(self, repo):
        await repo.count_by_first_and_last_name(None, UNDEFINED)
        await repo.count_by_first_and_last_name(None, None)
        await repo.count_by_first_and_last_name(None, UNDEFINED)
        assert repo.calls["count_by_first_and_last_name"] == 2

    async def test_number_and_string_distinct(self, repo):
        await repo.count_by_last_name(4)
        await repo.count_by_last_name("4")
        assert repo.calls["count_by_last_name"] == 2

    def test_keyword_and_positional_share_key(self, repo):
        repo.greet("Doc")
        repo.greet(name="Doc")
        assert repo.calls["greet"] == 1

    def test_keyword_only_argument_in_key(self, repo):
        assert repo.greet("Doc") == "Hello, Doc!"
        assert repo.greet("Doc", punctuation="?") == "Hello, Doc?"
        assert repo.calls["greet"] == 2

    def test_default_argument_not_in_key(self, repo):
        repo.greet()
        assert global_keys(repo, "greet") == [SentinelKey.NO_ARGS]

    def test_pydantic_argument(self, repo):
        profile = DwarfProfile(first_name="Grumpy", last_name="Dwarf")
        repo.describe(profile)
        repo.describe(DwarfProfile(first_name="Grumpy", last_name="Dwarf"))
        assert repo.calls["describe"] == 1

    async def test_cacheable_key_argument(self, repo):
        await repo.find_with_interests_matching(CacheableDwarf("Barbecue", "Bob"))
        await repo.find_with_interests_matching(CacheableDwarf("Barbecue", "Bob"))
        assert repo.calls["find_with_interests_matching"] == 1
        assert global_keys(repo, "find_with_interests_matching") == ["Barbecue:Bob"]

    def test_uncacheable_argument_raises_before_invocation(self, repo):
        with pytest.raises(UncacheableArgumentError) as exc_info:
            repo.find_with_interests_matching(Dwarf("Barbecue", "Bob"))
        assert "DwarfRepository::find_with_interests_matching" in str(exc_info.value)
        assert "index 0" in str(exc_info.value)
        assert repo.calls["find_with_interests_matching"] == 0

    def test_wrong_arguments_raise_type_error(self, repo):
        with pytest.raises(TypeError):
            repo.count_by_last_name("a", "b")


class TestTtl:
    def test_present_before_expiry(self, repo, clock):
        repo.find_happiest_with_timeout()
        clock.advance(0.1)
        repo.find_happiest_with_timeout()
        assert repo.calls["find_happiest_with_timeout"] == 1

    def test_recomputed_after_expiry(self, repo, clock):
        repo.find_happiest_with_timeout()
        clock.advance(1.1)
        assert repo.find_happiest_with_timeout() == Dwarf("Huck", "Finn")
        assert repo.calls["find_happiest_with_timeout"] == 2


class TestUndefinedAndNone:
    async def test_undefined_cached_by_default(self, repo):
        assert await repo.find_saddest() is UNDEFINED
        assert await repo.find_saddest() is UNDEFINED
        assert repo.calls["find_saddest"] == 1

    async def test_none_cached(self, repo):
        assert await repo.find_grumpiest() is None
        assert await repo.find_grumpiest() is None
        assert repo.calls["find_grumpiest"] == 1

    def test_undefined_not_cached_when_disabled(self, repo):
        assert repo.find_grumpiest_without_caching_undefined() is UNDEFINED
        assert repo.find_grumpiest_without_caching_undefined() == Dwarf("Mark", "MyWords")
        assert repo.find_grumpiest_without_caching_undefined() == Dwarf("Mark", "MyWords")
        assert repo.calls["find_grumpiest_without_caching_undefined"] == 2

    def test_none_cached_even_when_undefined_disabled(self, repo):
        assert repo.find_nobody() is None
        assert repo.find_nobody() is None
        assert repo.calls["find_nobody"] == 1


class TestAsyncResults:
    async def test_errors_pass_through_and_are_not_cached(self, repo):
        with pytest.raises(ValueError, match="mine collapsed"):
            await repo.fail()
        with pytest.raises(ValueError):
            await repo.fail()
        assert repo.calls["fail"] == 2
        assert global_keys(repo, "fail") == []

    async def test_unawaited_coroutine_is_not_cached(self, repo):
        pending = repo.find_happiest()
        assert global_keys(repo, "find_happiest") == []
        await pending
        assert global_keys(repo, "find_happiest") == [SentinelKey.NO_ARGS]

    async def test_future_result_returned_unchanged(self, repo):
        future = repo.find_later("Doc")
        assert isinstance(future, asyncio.Future)
        assert await future == Dwarf("Doc", "Later")
        assert repo.calls["find_later"] == 1

    async def test_cached_future_can_be_awaited_again(self, repo):
        assert await repo.find_later("Doc") == Dwarf("Doc", "Later")
        for _ in range(2):
            hit = repo.find_later("Doc")
            assert isinstance(hit, asyncio.Future)
            assert await hit == Dwarf("Doc", "Later")
        assert repo.calls["find_later"] == 1

    def test_cached_concurrent_future_keeps_its_kind(self, repo):
        assert repo.find_in_mine("Doc").result() == Dwarf("Doc", "Miner")
        hit = repo.find_in_mine("Doc")
        assert isinstance(hit, concurrent.futures.Future)
        assert hit.result(timeout=0) == Dwarf("Doc", "Miner")
        assert repo.calls["find_in_mine"] == 1

    async def test_cancelled_future_not_cached(self, repo):
        future = repo.find_later("Doc")
        future.cancel()
        await asyncio.sleep(0)
        assert global_keys(repo, "find_later") == []

    async def test_concurrent_misses_each_invoke(self, repo):
        await asyncio.gather(repo.find_happiest(), repo.find_happiest())
        assert repo.calls["find_happiest"] == 2
        await repo.find_happiest()
        assert repo.calls["find_happiest"] == 2

    def test_is_future_like(self):
        loop = asyncio.new_event_loop()
        try:
            assert is_future_like(loop.create_future()) is True
        finally:
            loop.close()
        assert is_future_like(Dwarf("a", "b")) is False


class TestProperties:
    def test_property_over_cacheable(self, repo):
        assert repo.motto == "Heigh-ho"
        assert repo.motto == "Heigh-ho"
        assert repo.calls["motto"] == 1

    def test_cacheable_over_property(self, repo):
        assert repo.anthem == "Whistle while you work"
        assert repo.anthem == "Whistle while you work"
        assert repo.calls["anthem"] == 1
        assert isinstance(DwarfRepository.__dict__["anthem"], property)

    def test_property_setter_preserved(self):
        class Mine:
            def __init__(self):
                self.depth = 1

            @cacheable()
            @property
            def level(self):
                return self.depth

            @level.setter
            def level(self, value):
                self.depth = value

        mine = Mine()
        mine.level = 5
        assert mine.depth == 5
        assert mine.level == 5


class TestMisapplication:
    def test_staticmethod_rejected(self):
        with pytest.raises(UncacheablePropertyError):
            cacheable()(staticmethod(lambda: 1))

    def test_classmethod_rejected(self):
        with pytest.raises(UncacheablePropertyError):
            cacheable()(classmethod(lambda cls: 1))

    def test_non_callable_rejected(self):
        with pytest.raises(UncacheablePropertyError, match="method or property getter"):
            cacheable()(42)

    def test_property_without_getter_rejected(self):
        with pytest.raises(UncacheablePropertyError):
            cacheable()(property())

    def test_unknown_scope_rejected_at_decoration(self):
        with pytest.raises(UnrecognizedScopeError):
            cacheable(scope="LOCAL_STORAGE")

    def test_owner_without_weakrefs_rejected_before_invocation(self):
        calls = []

        class Slotted:
            __slots__ = ("value",)

            @cacheable()
            def compute(self) -> int:
                calls.append(1)
                return 1

        with pytest.raises(UncacheableOwnerError, match="__weakref__"):
            Slotted().compute()
        assert calls == []

    def test_short_lived_slotted_owners_released(self):
        class Slotted:
            __slots__ = ("value", "__weakref__")

            def __init__(self, value: int) -> None:
                self.value = value

            @cacheable()
            def compute(self) -> int:
                return self.value

        registry = CacheRegistryProvider.global_registry
        gc.collect()
        before = len(registry._instances)
        for i in range(200):
            assert Slotted(i).compute() == i
        gc.collect()
        assert len(registry._instances) <= before


class TestContextLocalScope:
    async def test_cached_within_context(self, repo):
        with cache_context():
            first = await repo.find_random()
            second = await repo.find_random()
        assert first == second
        assert repo.calls["find_random"] == 1

    async def test_not_shared_between_contexts(self, repo):
        with cache_context():
            first = await repo.find_random()
        with cache_context():
            second = await repo.find_random()
        assert first != second

    async def test_shared_by_instances_of_same_type_in_context(self):
        with cache_context():
            first = await DwarfRepository().find_random()
            second = await DwarfRepository().find_random()
        assert first == second

    def test_missing_context_raises(self, repo):
        with pytest.raises(MissingContextError):
            repo.find_the_answer()
        assert repo.calls["find_the_answer"] == 0

    async def test_concurrent_contexts_isolated(self):
        count = 7
        repos = [DwarfRepository() for _ in range(count)]

        async def handle(repo):
            with cache_context():
                first = await repo.find_random()
                second = await repo.find_random()
                assert first == second
                assert repo.find_the_answer() == 42
                return f"{first.first_name} {first.last_name}"

        names = await asyncio.gather(*(handle(r) for r in repos))
        assert len(set(names)) == count
        assert all(r.calls["find_random"] == 1 for r in repos)
