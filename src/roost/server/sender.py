"""ASGI response sending — translates roost Response objects to ASGI messages."""

from roost._internal.asgi import Send
from roost.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _latin1(text: str) -> bytes:
    # Header bytes are latin-1; anything outside it is sent as "?"
    return text.encode("latin-1", errors="replace")


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a roost Response into ASGI send() calls.

    For ``HEAD`` requests the headers (including Content-Length) describe
    the body that a ``GET`` would carry, but no body bytes are sent.
    """
    raw_headers: list[tuple[bytes, bytes]] = []
    if response.content_type is not None:
        raw_headers.append((b"content-type", _latin1(response.content_type)))
    for name, value in response.headers:
        raw_headers.append((_latin1(name.lower()), _latin1(value)))

    body = response.body if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )
