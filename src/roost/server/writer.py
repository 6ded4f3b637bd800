"""Response writer — turns operation results into Response objects.

isinstance-based dispatch, no magic, fully predictable:

1. ``None``                          -> empty 200, no content type
2. ``bytes`` / ``bytearray``          -> raw, application/octet-stream
3. ``pathlib.Path``                  -> file contents, type guessed from name
4. readable stream (has ``read()``)  -> contents read to the end, raw
5. anything else                     -> JSON document (default codec)

``RESTResponse`` values go through ``render_structured`` which adds the
declared headers and status before serializing the carried value.
"""

import gzip
import logging
import mimetypes
import zlib
from pathlib import PurePath
from typing import Any

import anyio
from anyio import to_thread

from roost.codec import DEFAULT_CODEC, JSON_CONTENT_TYPE, JSONCodec
from roost.config import RoostConfig
from roost.http.request import Request
from roost.http.response import Response
from roost.rest import RESTResponse
from roost.routing.names import decode

logger = logging.getLogger("roost.server")

OCTET_STREAM = "application/octet-stream"
STRUCTURED_DEFAULT_TYPE = "application/json"


async def serialize(
    value: Any,
    request: Request,
    config: RoostConfig,
    codec: JSONCodec = DEFAULT_CODEC,
) -> Response:
    """Encode a plain operation result as a Response body."""
    if value is None:
        return Response()

    if isinstance(value, (bytes, bytearray, memoryview)):
        response = Response(body=bytes(value), content_type=OCTET_STREAM)
    elif isinstance(value, PurePath):
        body = await anyio.Path(value).read_bytes()
        guessed, _ = mimetypes.guess_type(value.name)
        response = Response(body=body, content_type=guessed or OCTET_STREAM)
    elif callable(getattr(value, "read", None)):
        response = Response(body=await _read_stream(value), content_type=OCTET_STREAM)
    else:
        response = Response(body=codec.encode(value), content_type=JSON_CONTENT_TYPE)

    if config.compression and not _is_small(value, config.compress_min_length):
        response = compress(response, request)
    return response


async def render_structured(
    structured: RESTResponse,
    request: Request,
    config: RoostConfig,
) -> Response:
    """Render a RESTResponse: declared headers, content type, status, body.

    A body value that fails to serialize is logged and turns the
    response into a bodiless 500.
    """
    response = Response(
        status=structured.status_code,
        content_type=structured.content_type or STRUCTURED_DEFAULT_TYPE,
        headers=tuple(response_headers(structured)),
    )
    if structured.value is None:
        return response

    try:
        rendered = await serialize(structured.value, request, config)
    except Exception:
        logger.exception("Failed to serialize the value of %r", structured)
        return response.with_status(500)

    return (
        response
        .with_body(rendered.body)
        .with_headers(rendered.headers)
        .with_content_type(structured.content_type or rendered.content_type)
    )


def response_headers(structured: RESTResponse) -> list[tuple[str, str]]:
    """Header pairs from the public annotated attributes of a RESTResponse."""
    headers: list[tuple[str, str]] = []
    for attr in type(structured).header_fields():
        value = getattr(structured, attr, None)
        if value is None:
            continue
        name = decode(attr).upper()
        if isinstance(value, (list, tuple, set, frozenset)):
            headers.extend((name, str(item)) for item in value)
        else:
            headers.append((name, str(value)))
    return headers


def compress(response: Response, request: Request) -> Response:
    """Compress the body when the client accepts gzip (preferred) or deflate."""
    accept = request.headers.get("accept-encoding")
    if not accept or not response.body:
        return response
    if "gzip" in accept:
        return response.with_body(gzip.compress(response.body)).with_header(
            "Content-Encoding", "gzip"
        )
    if "deflate" in accept:
        return response.with_body(zlib.compress(response.body)).with_header(
            "Content-Encoding", "deflate"
        )
    return response


def _is_small(value: Any, limit: int) -> bool:
    # Tiny bodies grow under compression
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and len(value) < limit


async def _read_stream(stream: Any) -> bytes:
    try:
        data = await to_thread.run_sync(stream.read)
    finally:
        close = getattr(stream, "close", None)
        if callable(close):
            close()
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)
