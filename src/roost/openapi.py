"""API description — an OpenAPI 3 document built from the dispatch table.

Served at the reserved ``openapi.json`` route. Reads only operation
metadata (verb, name, slots); never touches handler objects.

Each operation becomes ``/<encoded name>/{arg}/...``: positional path
inputs are path parameters, a variable tail is one trailing ``{name}``
parameter, named inputs are query parameters (header parameters when
the name is upper case).
"""

import dataclasses
import enum
import inspect
import types
import typing
from typing import Any, Union, get_args, get_origin

from roost.config import RoostConfig
from roost.routing.names import decode, reverse_encode
from roost.routing.operation import Operation, SlotKind
from roost.routing.table import DispatchTable

OPENAPI_VERSION = "3.0.3"

# Python type → JSON Schema type
_TYPE_MAP: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}


def describe(table: DispatchTable, base_uri: str, config: RoostConfig) -> dict[str, Any]:
    """Build the description document for every operation in *table*.

    When several operations share a path and verb only the best-ranked
    one is listed, matching what dispatch would pick.
    """
    paths: dict[str, dict[str, Any]] = {}
    for op in table.operations:
        item = paths.setdefault(operation_path(op), {})
        verb = "options" if op.verb == "OPTION" else op.verb.lower()
        if verb not in item:
            item[verb] = _operation(op)

    return {
        "openapi": OPENAPI_VERSION,
        "info": {"title": config.api_title, "version": config.api_version},
        "servers": [{"url": base_uri}],
        "paths": paths,
    }


def operation_path(op: Operation) -> str:
    """The templated URL path of *op*, relative to the namespace."""
    parts = [reverse_encode(op.name)]
    parts.extend(f"{{{slot.name}}}" for slot in op.positional if slot.kind is SlotKind.PATH)
    if op.tail is not None:
        parts.append(f"{{{op.tail.name}}}")
    return "/" + "/".join(parts)


def _operation(op: Operation) -> dict[str, Any]:
    parameters: list[dict[str, Any]] = []
    for slot in op.positional:
        if slot.kind is SlotKind.PATH:
            parameters.append(
                {"name": slot.name, "in": "path", "required": True, "schema": type_schema(slot.annotation)}
            )
    if op.tail is not None:
        parameters.append(
            {
                "name": op.tail.name,
                "in": "path",
                "required": True,
                "description": "Remaining path segments",
                "schema": {"type": "array", "items": type_schema(op.tail.annotation)},
            }
        )
    for slot in op.keyword:
        if slot.kind is SlotKind.NAMED:
            parameters.append(_named(slot.name, slot.annotation, slot.required))
    for name, annotation in op.context_fields:
        parameters.append(_named(name, annotation, False))

    result: dict[str, Any] = {
        "operationId": op.method_name,
        "summary": _summary(op),
        "parameters": parameters or None,
        "responses": {"200": {"description": "OK"}},
    }
    if op.payload_type is not None:
        result["requestBody"] = {
            "content": {"application/json": {"schema": type_schema(op.payload_type)}},
        }
    return result


def _named(name: str, annotation: Any, required: bool) -> dict[str, Any]:
    location = "header" if name.isupper() else "query"
    wire = decode(name, to_lower=False) if location == "header" else name
    return {"name": wire, "in": location, "required": required, "schema": type_schema(annotation)}


def _summary(op: Operation) -> str | None:
    doc = inspect.getdoc(op.method)
    return doc.splitlines()[0] if doc else None


def type_schema(annotation: Any) -> dict[str, Any]:
    """Convert a Python type annotation to a JSON Schema fragment."""
    if annotation is inspect.Parameter.empty or annotation is Any:
        return {}

    if annotation in _TYPE_MAP:
        return {"type": _TYPE_MAP[annotation]}

    if annotation is bytes:
        return {"type": "string", "format": "hex"}

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in get_args(annotation) if a is not type(None)]
        schema = type_schema(members[0]) if len(members) == 1 else {}
        if type(None) in get_args(annotation):
            schema = {**schema, "nullable": True}
        return schema

    if origin in (list, tuple, set, frozenset) or annotation in (list, tuple, set, frozenset):
        args = [a for a in get_args(annotation) if a is not Ellipsis]
        items = type_schema(args[0]) if args else {}
        return {"type": "array", "items": items}

    if origin is dict or annotation is dict:
        return {"type": "object"}

    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return {"enum": [member.value for member in annotation]}

    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        hints = typing.get_type_hints(annotation)
        return {
            "type": "object",
            "properties": {
                f.name: type_schema(hints.get(f.name, Any)) for f in dataclasses.fields(annotation)
            },
        }

    # Fallback
    return {"type": "string"}
