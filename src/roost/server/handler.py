"""Request pipeline — match, bind, invoke, write.

The only component that sequences the dispatch steps. Every request
ends in a Response: a serialized result, a rendered RESTResponse, or a
mapped failure.

An invocation collapses into one of three outcomes, so a returned and a
raised ``RESTResponse`` are indistinguishable from here on::

    Ok(value) | Structured(response) | Failure(error)
"""

import logging
from dataclasses import dataclass
from typing import Any, TypeAlias

from roost._internal.invoke import invoke, unwrap
from roost.binding import Bound, bind, build_arguments
from roost.codec import DEFAULT_CODEC, NO_CONTENT, NO_NULL_CODEC
from roost.config import RoostConfig
from roost.errors import BindingFailure, NotFound, status_for
from roost.http.request import Request
from roost.http.response import Response
from roost.rest import ResponseDraft, RESTResponse
from roost.routing import matcher
from roost.routing.table import DispatchTable
from roost.server.errors import handle_error
from roost.server.writer import render_structured, serialize

logger = logging.getLogger("roost.server")


@dataclass(frozen=True, slots=True)
class Ok:
    """The operation returned normally."""

    value: Any


@dataclass(frozen=True, slots=True)
class Structured:
    """The operation returned or raised a RESTResponse."""

    response: RESTResponse


@dataclass(frozen=True, slots=True)
class Failure:
    """The operation raised anything else."""

    error: BaseException

    @property
    def status(self) -> int:
        return status_for(self.error)


Outcome: TypeAlias = Ok | Structured | Failure


async def dispatch(
    table: DispatchTable,
    request: Request,
    path: str,
    config: RoostConfig,
    *,
    base_uri: str = "",
) -> Response:
    """Route one request. *path* is relative to the table's namespace."""
    try:
        found = matcher.match(table, request.method, path, diagnostics=config.diagnostics)
        if found.describe:
            return await _describe(table, request, config, base_uri)

        draft = ResponseDraft()
        arguments = build_arguments(request, draft)
        bound = await bind_first(found, arguments, request)
        outcome = await call(bound)
        return await write(outcome, request, draft, config)
    except Exception as exc:
        return handle_error(exc, request, config)


async def bind_first(found: matcher.Match, arguments: dict[str, Any], request: Request) -> Bound:
    """Bind the best-ranked candidate that accepts the request.

    Candidates are tried in ranking order. Raises ``BindingFailure``
    when none of them binds.
    """
    failures: list[str] = []
    for operation in found.candidates:
        try:
            payload = NO_CONTENT
            if operation.payload_type is not None:
                payload = await read_payload(request, operation.payload_type)
            return bind(operation, found.segments, arguments, payload)
        except BindingFailure as exc:
            logger.debug("Candidate %r rejected: %s", operation, exc.detail)
            failures.append(exc.detail)
    raise BindingFailure("; ".join(failures) or "No candidate accepted the request")


async def read_payload(request: Request, shape: Any) -> Any:
    """Decode the request body into *shape*; ``NO_CONTENT`` when empty."""
    data = await request.body()
    try:
        return DEFAULT_CODEC.decode(data, shape)
    except ValueError as exc:
        # json.JSONDecodeError and CoercionError are both ValueErrors
        msg = f"Cannot decode request body: {exc}"
        raise BindingFailure(msg) from exc


async def call(bound: Bound) -> Outcome:
    """Invoke the bound operation and classify what came back."""
    try:
        result = await invoke(bound.operation.method, *bound.args, **bound.kwargs)
    except Exception as exc:
        cause = unwrap(exc)
        if isinstance(cause, RESTResponse):
            return Structured(cause)
        return Failure(cause)
    if isinstance(result, RESTResponse):
        return Structured(result)
    return Ok(result)


async def write(
    outcome: Outcome,
    request: Request,
    draft: ResponseDraft,
    config: RoostConfig,
) -> Response:
    """Produce the Response for an outcome, adding the draft's headers."""
    match outcome:
        case Ok(value=value):
            response = await serialize(value, request, config)
            if draft.status is not None:
                response = response.with_status(draft.status)
        case Structured(response=structured):
            response = await render_structured(structured, request, config)
        case Failure(error=error):
            response = handle_error(error, request, config)
    return response.with_headers(draft.headers)


async def _describe(
    table: DispatchTable,
    request: Request,
    config: RoostConfig,
    base_uri: str,
) -> Response:
    if not config.api_description:
        raise NotFound("API description is disabled")

    from roost.openapi import describe

    document = describe(table, base_uri or request.url, config)
    return await serialize(document, request, config, NO_NULL_CODEC)
