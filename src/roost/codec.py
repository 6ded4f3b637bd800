"""Structured-data (JSON) codec used for request bodies and results.

Two immutable configurations exist and are passed explicitly by the
call site:

- ``DEFAULT_CODEC``  — writes every field, keeps ``null`` members
- ``NO_NULL_CODEC``  — drops members whose value is ``None``

Encoding normalizes Python values to the JSON data model first:
dataclasses become objects, iterables become arrays, enums encode by
value, ``bytes`` as upper-case hex, dates and times as ISO 8601.
"""

import dataclasses
import datetime
import enum
import json as json_module
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from roost.coerce import coerce


class _NoContent:
    """Marker for a request body that carried no JSON value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_CONTENT"

    def __bool__(self) -> bool:
        return False


NO_CONTENT: Final = _NoContent()

JSON_CONTENT_TYPE: Final = "application/json;charset=UTF-8"


@dataclass(frozen=True, slots=True)
class JSONCodec:
    """An immutable JSON encoder/decoder configuration.

    ``write_defaults=False`` omits dataclass fields still equal to their
    default; ``ignore_null=True`` omits ``None`` members of objects.
    """

    ignore_null: bool = False
    write_defaults: bool = True

    def encode(self, value: Any) -> bytes:
        """Encode *value* as a UTF-8 JSON document."""
        return json_module.dumps(
            self.plain(value), ensure_ascii=False, separators=(",", ":")
        ).encode("utf-8")

    def decode(self, data: bytes, shape: Any = Any) -> Any:
        """Decode a JSON document into *shape*.

        Returns ``NO_CONTENT`` for an empty (or whitespace-only) body.
        Raises ``ValueError`` for malformed JSON and ``CoercionError``
        when the document does not fit *shape*.
        """
        if not data.strip():
            return NO_CONTENT
        return coerce(json_module.loads(data), shape)

    def plain(self, value: Any) -> Any:
        """Normalize *value* into JSON-native types (dict, list, str, ...)."""
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, enum.Enum):
            return self.plain(value.value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).hex().upper()
        if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
            return value.isoformat()
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return self._object(
                (f.name, getattr(value, f.name)) for f in dataclasses.fields(value)
                if self.write_defaults or not _is_default(f, getattr(value, f.name))
            )
        if isinstance(value, Mapping):
            return self._object((str(k), v) for k, v in value.items())
        if isinstance(value, Iterable):
            return [self.plain(item) for item in value]
        if hasattr(value, "__dict__"):
            return self._object(
                (k, v) for k, v in vars(value).items() if not k.startswith("_")
            )
        return str(value)

    def _object(self, items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, item in items:
            if item is None and self.ignore_null:
                continue
            result[key] = self.plain(item)
        return result


def _is_default(f: dataclasses.Field[Any], value: Any) -> bool:
    if f.default is not dataclasses.MISSING:
        return value == f.default
    if f.default_factory is not dataclasses.MISSING:
        return value == f.default_factory()
    return False


DEFAULT_CODEC: Final = JSONCodec()
NO_NULL_CODEC: Final = JSONCodec(ignore_null=True)
