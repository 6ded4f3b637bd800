"""Types that handler operations see: request contexts and structured responses.

A handler is any object whose public methods follow the verb naming
convention. Operations may take a ``RESTRequest`` subclass as their
first argument to reach named request arguments as typed attributes::

    class ThingRequest(RESTRequest):
        verbose: bool = False
        v: list[int]
        _body: Thing            # decoded JSON payload

    class Things:
        def get_thing(self, rq: ThingRequest, id: int) -> Thing: ...
        def put_thing(self, rq: ThingRequest, id: int) -> None: ...

``RESTResponse`` short-circuits with an explicit status, headers and
body. Returning one and raising one produce the same response.
"""

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, get_origin

from roost.http.request import Request


@dataclass(slots=True)
class ResponseDraft:
    """Per-request response adjustments made by an operation.

    Reachable as ``_response`` on a ``RESTRequest`` or as the ``_response``
    named argument. Headers are appended to whatever the operation returns;
    ``status`` overrides the status of a plain (non-structured) result.
    """

    status: int | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)

    def add_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))


class RESTRequest:
    """Typed view of the request arguments for one operation call.

    Public annotated attributes of a subclass are filled from the request
    arguments (query parameters, upper-cased headers) with type coercion.
    Missing values fall back to the class default or ``None``. Annotating
    ``_body`` declares the shape the JSON request body decodes into.
    """

    def __init__(self, arguments: Mapping[str, Any]) -> None:
        self._arguments = arguments

    @classmethod
    def fields(cls) -> tuple[str, ...]:
        """Public annotated attribute names, base classes first."""
        return tuple(name for name in _declared(cls, RESTRequest) if not name.startswith("_"))

    @property
    def _request(self) -> Request:
        return self._arguments["_request"]

    @property
    def _host(self) -> str | None:
        return self._arguments.get("_host")

    @property
    def _response(self) -> ResponseDraft:
        return self._arguments["_response"]

    @property
    def _body(self) -> Any:
        return self._arguments.get("_body")

    def __repr__(self) -> str:
        items = ", ".join(f"{name}={getattr(self, name, None)!r}" for name in self.fields())
        return f"{type(self).__name__}({items})"


class RESTResponse(Exception):  # noqa: N818
    """A response with explicit status, content type, headers and body value.

    Subclasses declare response headers as public annotated attributes;
    ``None`` values are skipped, sequences emit one header per element::

        class Created(RESTResponse):
            location: str

            def __init__(self, location: str, value: Any = None) -> None:
                super().__init__(201, value)
                self.location = location

    The header name is the decoded, upper-cased attribute name
    (``retry_after`` -> ``RETRY-AFTER``).
    """

    status_code: int = 200
    value: Any = None
    content_type: str | None = None

    def __init__(
        self,
        status_code: int | None = None,
        value: Any = None,
        content_type: str | None = None,
    ) -> None:
        super().__init__(status_code)
        if status_code is not None:
            self.status_code = status_code
        if value is not None:
            self.value = value
        if content_type is not None:
            self.content_type = content_type

    @classmethod
    def header_fields(cls) -> tuple[str, ...]:
        """Public annotated attribute names declared below ``RESTResponse``."""
        return tuple(name for name in _declared(cls, RESTResponse) if not name.startswith("_"))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code!r}, value={self.value!r})"


def _declared(cls: type, base: type) -> list[str]:
    """Annotated attribute names of *cls* and its bases, stopping at *base*."""
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        if klass is base or not issubclass(klass, base):
            continue
        for name, annotation in inspect.get_annotations(klass).items():
            if name in names or _is_classvar(annotation):
                continue
            names.append(name)
    return names


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or get_origin(annotation) is ClassVar
