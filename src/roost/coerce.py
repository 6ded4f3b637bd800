"""Type coercion of request values to declared input types.

Request arguments arrive as strings (path segments, query values,
headers), lists of strings (repeated keys), or decoded JSON. Operations
declare what they want through annotations; ``coerce`` bridges the two.

Supported targets:

- ``str``, ``int``, ``float``, ``bool``, ``bytes`` (hex text)
- ``X | None`` and other unions (first member that converts wins)
- ``list[X]``, ``tuple[X, ...]``, ``tuple[X, Y]``, ``set[X]``, ``frozenset[X]``
  (a scalar becomes a one-element collection)
- ``dict[K, V]`` and ``Mapping[K, V]``
- dataclasses, from mappings (recursive)
- ``Enum`` subclasses, by value or by member name
- ``datetime``, ``date``, ``time`` from ISO 8601 text
- any other class by calling it with the value (``Decimal``, ``UUID``, ``Path``)

A failed conversion raises ``CoercionError``.
"""

import collections.abc
import dataclasses
import datetime
import enum
import inspect
import types
import typing
from typing import Any, Union, get_args, get_origin

from roost.errors import CoercionError

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off", ""})

_SEQUENCE_ORIGINS: dict[Any, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}

_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)

_ISO_TYPES = (datetime.datetime, datetime.date, datetime.time)


def coerce(value: Any, annotation: Any) -> Any:
    """Convert *value* to *annotation*, raising ``CoercionError`` on failure."""
    if annotation is inspect.Parameter.empty or annotation is Any or annotation is object:
        return value

    origin = get_origin(annotation)

    if origin is Union or origin is types.UnionType:
        return _coerce_union(value, get_args(annotation))

    if origin is typing.Literal:
        for choice in get_args(annotation):
            if value == choice or str(value) == str(choice):
                return choice
        raise CoercionError(f"{value!r} is not one of {get_args(annotation)!r}")

    if annotation in _SEQUENCE_ORIGINS or origin in _SEQUENCE_ORIGINS:
        return _coerce_collection(value, origin or annotation, get_args(annotation))

    if annotation in _MAPPING_ORIGINS or origin in _MAPPING_ORIGINS:
        return _coerce_mapping(value, get_args(annotation))

    if origin is not None:
        # Other parametrized generics: check against the bare origin only
        annotation = origin

    if value is None:
        raise CoercionError(f"missing value for {_name(annotation)}")

    if isinstance(value, list) and annotation is not list:
        # Repeated query key or header bound to a scalar: first value wins
        if not value:
            raise CoercionError(f"empty value for {_name(annotation)}")
        value = value[0]

    return _coerce_scalar(value, annotation)


def _coerce_scalar(value: Any, annotation: Any) -> Any:
    if annotation is bool:
        return _to_bool(value)

    if annotation is str:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8")
        return value if isinstance(value, str) else str(value)

    if annotation is int:
        return _to_int(value)

    if annotation is float:
        if isinstance(value, bool):
            raise CoercionError(f"cannot convert {value!r} to float")
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise CoercionError(f"cannot convert {value!r} to float") from exc

    if annotation is bytes:
        return _to_bytes(value)

    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return _to_enum(value, annotation)

    if dataclasses.is_dataclass(annotation) and isinstance(annotation, type):
        return _to_dataclass(value, annotation)

    if isinstance(annotation, type):
        if isinstance(value, annotation):
            return value
        if issubclass(annotation, _ISO_TYPES) and isinstance(value, str):
            try:
                return annotation.fromisoformat(value)
            except ValueError as exc:
                raise CoercionError(f"cannot convert {value!r} to {_name(annotation)}") from exc
        try:
            return annotation(value)
        except (TypeError, ValueError, ArithmeticError) as exc:  # decimal.InvalidOperation
            raise CoercionError(f"cannot convert {value!r} to {_name(annotation)}") from exc

    # Unknown annotation form (TypeVar, string forward reference): pass through
    return value


def _coerce_union(value: Any, members: tuple[Any, ...]) -> Any:
    if value is None and type(None) in members:
        return None
    candidates = [m for m in members if m is not type(None)]
    # Prefer a member the value already satisfies
    for member in candidates:
        if isinstance(member, type) and not issubclass(member, bool) and isinstance(value, member):
            return value
    for member in candidates:
        try:
            return coerce(value, member)
        except CoercionError:
            continue
    raise CoercionError(f"cannot convert {value!r} to any of {members!r}")


def _coerce_collection(value: Any, origin: Any, args: tuple[Any, ...]) -> Any:
    if value is None:
        raise CoercionError("missing value for collection")
    if isinstance(value, (str, bytes, bytearray)) or isinstance(value, collections.abc.Mapping):
        items: list[Any] = [value]
    elif isinstance(value, collections.abc.Iterable):
        items = list(value)
    else:
        items = [value]

    factory = _SEQUENCE_ORIGINS[origin]

    if factory is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
        if len(args) == 1 and args[0] == ():
            args = ()
        if len(items) != len(args):
            raise CoercionError(f"expected {len(args)} values, got {len(items)}")
        return tuple(coerce(item, arg) for item, arg in zip(items, args, strict=True))

    element = args[0] if args else Any
    return factory(coerce(item, element) for item in items)


def _coerce_mapping(value: Any, args: tuple[Any, ...]) -> dict[Any, Any]:
    if not isinstance(value, collections.abc.Mapping):
        raise CoercionError(f"cannot convert {value!r} to a mapping")
    key_type, value_type = args if len(args) == 2 else (Any, Any)
    return {coerce(k, key_type): coerce(v, value_type) for k, v in value.items()}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise CoercionError(f"cannot convert {value!r} to bool")


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise CoercionError(f"cannot convert {value!r} to int")
    if isinstance(value, float):
        if not value.is_integer():
            raise CoercionError(f"cannot convert {value!r} to int")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise CoercionError(f"cannot convert {value!r} to int") from exc


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return bytes.fromhex(value)
        except ValueError as exc:
            raise CoercionError(f"cannot convert {value!r} to bytes (hex expected)") from exc
    if isinstance(value, list):
        try:
            return bytes(value)
        except (TypeError, ValueError) as exc:
            raise CoercionError(f"cannot convert {value!r} to bytes") from exc
    raise CoercionError(f"cannot convert {value!r} to bytes")


def _to_enum(value: Any, cls: type[enum.Enum]) -> enum.Enum:
    if isinstance(value, cls):
        return value
    try:
        return cls(value)
    except ValueError:
        pass
    if isinstance(value, str):
        if value in cls.__members__:
            return cls[value]
        for member in cls:
            if str(member.value) == value:
                return member
    raise CoercionError(f"{value!r} is not a valid {cls.__name__}")


def _to_dataclass(value: Any, cls: type) -> Any:
    if isinstance(value, cls):
        return value
    if not isinstance(value, collections.abc.Mapping):
        raise CoercionError(f"cannot convert {value!r} to {cls.__name__}")

    hints = typing.get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.name not in value:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise CoercionError(f"{cls.__name__}.{f.name} is required")
            continue
        kwargs[f.name] = coerce(value[f.name], hints.get(f.name, Any))
    return cls(**kwargs)


def _name(annotation: Any) -> str:
    return getattr(annotation, "__name__", repr(annotation))
