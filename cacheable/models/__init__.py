from cacheable.models.enums import Scope
from cacheable.models.options import CacheableOptions

__all__ = [
    "CacheableOptions",
    "Scope",
]
