"""Cache key derivation from call arguments."""

import dataclasses
import inspect
import json
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from cacheable.errors import UncacheableArgumentError

KEY_SEPARATOR = "_"


class _Undefined:
    """Marker for an absent value, distinct from ``None``."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class SentinelKey(Enum):
    """Keys for calls that have nothing to serialize.

    Members never compare equal to a string, so they cannot collide with a
    serialized argument.
    """

    NO_ARGS = "__no_args__"
    NULL_VALUE = "null"
    UNDEFINED_VALUE = "undefined"

    def __str__(self) -> str:
        return self.value


CacheKey = SentinelKey | str


@runtime_checkable
class CacheableKey(Protocol):
    """Argument types that supply their own cache key."""

    def cache_key(self) -> str: ...


def implements_cacheable_key(value: object) -> bool:
    """Return True if *value* has a ``cache_key()`` method callable with no arguments."""
    method = getattr(value, "cache_key", None)
    if not callable(method):
        return False
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return False
    return all(
        param.default is not inspect.Parameter.empty
        or param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for param in signature.parameters.values()
    )


def _dumps(value: object) -> str:
    return json.dumps(to_jsonable_python(value), sort_keys=True, separators=(",", ":"))


def _canonical(value: object) -> object:
    """Replace sets, at any depth, with lists sorted by their JSON text.

    Set iteration follows hash order, which differs between equal sets and,
    for strings, between interpreter runs.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump()
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}

    if isinstance(value, Mapping):
        return {key: _canonical(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(item) for item in value), key=_dumps)
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


def _serialize(value: object) -> str:
    """Canonical JSON: sorted keys, sorted sets, no whitespace, so ``4`` and ``"4"`` differ."""
    return _dumps(_canonical(value))


def argument_key(value: object, identity: str, index: int | str) -> CacheKey:
    """Derive the key for a single argument.

    Raises:
        UncacheableArgumentError: If *value* has no ``cache_key()`` and cannot
            be serialized to JSON (cycles, unknown types).
    """
    if value is None:
        return SentinelKey.NULL_VALUE
    if value is UNDEFINED:
        return SentinelKey.UNDEFINED_VALUE
    if implements_cacheable_key(value):
        key = value.cache_key()  # type: ignore[attr-defined]
        return key if isinstance(key, str) else str(key)
    try:
        return _serialize(value)
    except (PydanticSerializationError, TypeError, ValueError, RecursionError) as exc:
        raise UncacheableArgumentError(identity, index) from exc


def build_cache_key(
    args: Sequence[object],
    identity: str,
    kwargs: Mapping[str, object] | None = None,
) -> CacheKey:
    """Convert a call's arguments into a single deterministic key.

    A single argument keeps its own key, sentinels included. Several
    arguments are joined with ``_`` in order, keyword arguments last and
    sorted by name as ``name=key``. The separator is not escaped.

    Args:
        args: Positional arguments, excluding the owning object.
        identity: ``Type::method`` name, used only in error messages.
        kwargs: Keyword arguments that did not bind to a positional parameter.
    """
    if not args and not kwargs:
        return SentinelKey.NO_ARGS

    parts: list[CacheKey] = [
        argument_key(arg, identity, index) for index, arg in enumerate(args)
    ]
    for name in sorted(kwargs or {}):
        parts.append(f"{name}={argument_key(kwargs[name], identity, name)!s}")  # type: ignore[index]

    if len(parts) == 1:
        return parts[0]
    return KEY_SEPARATOR.join(str(part) for part in parts)
