"""Argument binder — request data to operation call arguments.

``build_arguments`` flattens one request into a name -> value mapping:

- query parameters (a key given once is a scalar, repeated keys a list)
- headers, names upper-cased (repeated headers are lists)
- ``_request``, ``_host`` and ``_response``
- ``_body`` once a payload has been decoded

``bind`` turns that mapping, the remaining path segments and the decoded
payload into ``(args, kwargs)`` for one candidate operation. A candidate
that cannot be bound raises ``BindingFailure``; the dispatcher treats
that as a non-match and moves on to the next candidate.
"""

from dataclasses import dataclass, field
from typing import Any

from roost.codec import NO_CONTENT
from roost.coerce import coerce
from roost.errors import BindingFailure, CoercionError
from roost.http.request import Request
from roost.rest import ResponseDraft
from roost.routing.operation import Operation, Slot, SlotKind


@dataclass(frozen=True, slots=True)
class Bound:
    """A complete parameter set for one operation call."""

    operation: Operation
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    arguments: dict[str, Any] = field(default_factory=dict)


def build_arguments(request: Request, draft: ResponseDraft) -> dict[str, Any]:
    """Collect query values, headers and context entries for one request."""
    arguments: dict[str, Any] = {**request.query.arguments(), **request.headers.arguments()}
    arguments["_request"] = request
    arguments["_host"] = request.headers.get("host")
    arguments["_response"] = draft
    return arguments


def bind(
    operation: Operation,
    segments: tuple[str, ...],
    arguments: dict[str, Any],
    payload: Any = NO_CONTENT,
) -> Bound:
    """Assemble the call arguments of *operation*.

    *arguments* is not modified; renames and ``_body`` are applied to a
    per-candidate copy, exposed as ``Bound.arguments``.
    """
    values = dict(arguments)
    for alias, expected in operation.renames.items():
        if expected not in values and values.get(alias) is not None:
            values[expected] = values[alias]
    if payload is not NO_CONTENT:
        values["_body"] = payload

    count = len(segments)
    if operation.variable_tail:
        if count < operation.arity:
            msg = f"{operation.method_name} needs at least {operation.arity} path segments, got {count}"
            raise BindingFailure(msg)
    elif count != operation.arity:
        msg = f"{operation.method_name} needs {operation.arity} path segments, got {count}"
        raise BindingFailure(msg)

    try:
        args: list[Any] = []
        remaining = iter(segments)
        for slot in operation.positional:
            if slot.kind is SlotKind.CONTEXT:
                args.append(_context(operation, values))
            elif slot.kind is SlotKind.BODY:
                args.append(_body(slot, payload))
            else:
                args.append(coerce(next(remaining), slot.annotation))

        if operation.tail is not None:
            args.extend(coerce(segment, operation.tail.annotation) for segment in remaining)

        kwargs: dict[str, Any] = {}
        for slot in operation.keyword:
            if slot.kind is SlotKind.BODY:
                if payload is not NO_CONTENT or slot.required:
                    kwargs[slot.name] = _body(slot, payload)
            elif slot.name in values:
                kwargs[slot.name] = coerce(values[slot.name], slot.annotation)
            elif slot.required:
                msg = f"{operation.method_name} requires argument {slot.name!r}"
                raise BindingFailure(msg)
    except CoercionError as exc:
        msg = f"{operation.method_name}: {exc}"
        raise BindingFailure(msg) from exc

    if operation.accepts_extra:
        taken = {slot.name for slot in operation.positional}
        for key, value in values.items():
            if key not in kwargs and key not in taken:
                kwargs[key] = value

    return Bound(operation=operation, args=tuple(args), kwargs=kwargs, arguments=values)


def _context(operation: Operation, values: dict[str, Any]) -> Any:
    ctx = operation.context(values)  # type: ignore[misc]
    for name, annotation in operation.context_fields:
        if name in values:
            setattr(ctx, name, coerce(values[name], annotation))
        elif not hasattr(ctx, name):
            setattr(ctx, name, None)
    return ctx


def _body(slot: Slot, payload: Any) -> Any:
    if payload is not NO_CONTENT:
        return payload
    return None if slot.required else slot.default
