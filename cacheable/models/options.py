from pydantic import BaseModel, ConfigDict, Field

from cacheable.models.enums import Scope


class CacheableOptions(BaseModel):
    """Per-method caching configuration.

    Attributes:
        scope: ``GLOBAL`` caches per owning instance for its lifetime.
            ``CONTEXT_LOCAL`` caches within the active cache context only,
            for example the span of one HTTP request.
        ttl: Time-to-live in seconds. ``None`` caches indefinitely; consider
            the memory implications.
        cache_undefined: When False, an ``UNDEFINED`` result is not stored and
            the method runs again on the next call. Use it for values that are
            immutable once known but may not exist yet (an fx rate for a future
            date). ``None`` results are always stored.
    """

    model_config = ConfigDict(frozen=True)

    scope: Scope = Scope.GLOBAL
    ttl: float | None = Field(default=None, gt=0)
    cache_undefined: bool = True
