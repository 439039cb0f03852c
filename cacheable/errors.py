"""Exception hierarchy for cache configuration and key derivation failures."""


class CacheableError(Exception):
    """Base class for all cacheable errors."""


class UncacheablePropertyError(CacheableError):
    """The decorator was applied to something other than a method or property getter."""


class UncacheableOwnerError(CacheableError):
    """A globally cached method was called on an object that cannot be weakly referenced."""


class UncacheableArgumentError(CacheableError):
    """A call argument could not be converted to a cache key.

    Args:
        identity: ``Type::method`` name of the decorated method.
        index: 0-based position of the offending argument, or the parameter
            name for a keyword argument.
    """

    def __init__(self, identity: str, index: int | str) -> None:
        self.identity = identity
        self.index = index
        where = f"index {index}" if isinstance(index, int) else f"keyword {index!r}"
        super().__init__(
            f"Cannot cache: {identity}. The argument at {where} could not be "
            "serialized to a cache key. Implement cache_key() on the argument type "
            "to return a unique string for it."
        )


class UnrecognizedScopeError(CacheableError):
    """A scope value reached the registry provider that it does not know."""


class MissingContextError(CacheableError):
    """Context-local storage was used outside an active cache context."""
