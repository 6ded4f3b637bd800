"""Operation descriptors built from a handler's public methods.

Introspection happens once, at registration: each matching method
becomes a frozen ``Operation`` recording its verb, canonical name,
arity and the kind of every input slot. Requests never look at
signatures again.
"""

import enum
import inspect
import re
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from roost.errors import ConfigurationError
from roost.rest import RESTRequest
from roost.routing.names import decode

VERBS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE", "OPTION", "HEAD"})

# get_thing, getThing, get (root), get_class_ (escaped keyword)
METHOD_NAME = re.compile(r"(?P<verb>get|post|put|delete|option|head)_?(?P<path>.*)", re.DOTALL)

BODY_PARAMETER = "body"

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def verb_for(method: str) -> str:
    """Map an HTTP request method onto an operation verb (``OPTIONS`` -> ``OPTION``)."""
    method = method.upper()
    return "OPTION" if method == "OPTIONS" else method


class SlotKind(enum.Enum):
    CONTEXT = "context"
    PATH = "path"
    TAIL = "tail"
    BODY = "body"
    NAMED = "named"


@dataclass(frozen=True, slots=True)
class Slot:
    """One input of an operation."""

    kind: SlotKind
    name: str
    annotation: Any = inspect.Parameter.empty
    default: Any = inspect.Parameter.empty

    @property
    def required(self) -> bool:
        return self.default is inspect.Parameter.empty


@dataclass(frozen=True, slots=True)
class DispatchKey:
    """Table key: verb + canonical name, optionally qualified by arity."""

    verb: str
    name: str
    arity: int | None = None

    def __str__(self) -> str:
        if self.arity is None:
            return f"{self.verb} {self.name}"
        return f"{self.verb} {self.name}/{self.arity}"


@dataclass(frozen=True, slots=True, eq=False)
class HandlerRegistration:
    """A registered handler object. Compared by identity."""

    handler: Any
    ranking: int = 0
    namespace: str = "/"
    sequence: int = 0


@dataclass(frozen=True, slots=True, eq=False)
class Operation:
    """A dispatchable unit derived from one handler method.

    ``positional`` lists context, path and positional body slots in call
    order; ``tail`` absorbs the remaining path segments; ``keyword``
    holds named inputs (and a keyword-only body).
    """

    verb: str
    name: str
    method: Callable[..., Any]
    registration: HandlerRegistration
    positional: tuple[Slot, ...] = ()
    keyword: tuple[Slot, ...] = ()
    tail: Slot | None = None
    context: type[RESTRequest] | None = None
    context_fields: tuple[tuple[str, Any], ...] = ()
    payload_type: Any = None
    accepts_extra: bool = False
    renames: Mapping[str, str] = field(default_factory=dict)

    @property
    def arity(self) -> int:
        return sum(1 for slot in self.positional if slot.kind is SlotKind.PATH)

    @property
    def variable_tail(self) -> bool:
        return self.tail is not None

    @property
    def has_context_input(self) -> bool:
        return self.context is not None

    @property
    def has_body_input(self) -> bool:
        return any(slot.kind is SlotKind.BODY for slot in (*self.positional, *self.keyword))

    @property
    def ranking(self) -> int:
        return self.registration.ranking

    @property
    def handler(self) -> Any:
        return self.registration.handler

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.registration.ranking, self.registration.sequence)

    @property
    def keys(self) -> tuple[DispatchKey, DispatchKey]:
        """The arity-qualified key and the unqualified key."""
        return (
            DispatchKey(self.verb, self.name, self.arity),
            DispatchKey(self.verb, self.name),
        )

    @property
    def method_name(self) -> str:
        return getattr(self.method, "__name__", repr(self.method))

    def __repr__(self) -> str:
        return f"<Operation {self.keys[0]}{'+' if self.tail else ''} {self.method_name} ranking={self.ranking}>"


def scan(registration: HandlerRegistration) -> list[Operation]:
    """Build an Operation for every public verb-named method of the handler.

    Static methods, class methods and anything defined on ``object`` are
    skipped. Methods are visited in name order, so the result is stable.
    """
    cls = type(registration.handler)
    operations: list[Operation] = []
    for attr in sorted(dir(cls)):
        if attr.startswith("_"):
            continue
        match = METHOD_NAME.fullmatch(attr)
        if match is None:
            continue
        raw = inspect.getattr_static(cls, attr)
        if isinstance(raw, (staticmethod, classmethod)) or not inspect.isfunction(raw):
            continue
        if getattr(object, attr, None) is raw:
            continue
        operations.append(
            build_operation(
                registration,
                match["verb"].upper(),
                decode(match["path"]),
                getattr(registration.handler, attr),
            )
        )
    return operations


def build_operation(
    registration: HandlerRegistration,
    verb: str,
    name: str,
    method: Callable[..., Any],
) -> Operation:
    """Describe one bound method as an Operation."""
    try:
        sig = inspect.signature(method, eval_str=True)
    except (NameError, TypeError, ValueError) as exc:
        msg = f"Cannot introspect {getattr(method, '__qualname__', method)!r}: {exc}"
        raise ConfigurationError(msg) from exc

    params = list(sig.parameters.values())
    positional: list[Slot] = []
    keyword: list[Slot] = []
    tail: Slot | None = None
    context: type[RESTRequest] | None = None
    payload_type: Any = None
    accepts_extra = False

    if params and params[0].kind in _POSITIONAL and _is_context(params[0].annotation):
        context = params[0].annotation
        positional.append(Slot(SlotKind.CONTEXT, params[0].name, context))
        params = params[1:]

    for param in params:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            tail = Slot(SlotKind.TAIL, param.name, param.annotation)
        elif param.kind is inspect.Parameter.VAR_KEYWORD:
            accepts_extra = True
        elif param.name == BODY_PARAMETER:
            body = Slot(SlotKind.BODY, param.name, param.annotation, param.default)
            payload_type = _payload(param.annotation)
            (positional if param.kind in _POSITIONAL else keyword).append(body)
        elif param.kind in _POSITIONAL:
            positional.append(Slot(SlotKind.PATH, param.name, param.annotation, param.default))
        else:
            keyword.append(Slot(SlotKind.NAMED, param.name, param.annotation, param.default))

    context_fields: tuple[tuple[str, Any], ...] = ()
    if context is not None:
        hints = _context_hints(context)
        context_fields = tuple((name, hints.get(name, Any)) for name in context.fields())
        if payload_type is None and "_body" in hints:
            payload_type = hints["_body"]

    names = [slot.name for slot in keyword if slot.kind is SlotKind.NAMED]
    if context is not None:
        names.extend(context.fields())
    renames: dict[str, str] = {}
    for expected in names:
        decoded = decode(expected, to_lower=False)
        # Header arguments are keyed by upper-cased name
        for alias in (decoded, decoded.upper()):
            if alias != expected:
                renames.setdefault(alias, expected)

    return Operation(
        verb=verb,
        name=name,
        method=method,
        registration=registration,
        positional=tuple(positional),
        keyword=tuple(keyword),
        tail=tail,
        context=context,
        context_fields=context_fields,
        payload_type=payload_type,
        accepts_extra=accepts_extra,
        renames=renames,
    )


def _context_hints(context: type[RESTRequest]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(context)
    except NameError as exc:
        msg = f"Cannot resolve annotations of {context.__qualname__}: {exc}"
        raise ConfigurationError(msg) from exc


def _is_context(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, RESTRequest)


def _payload(annotation: Any) -> Any:
    return Any if annotation is inspect.Parameter.empty else annotation
