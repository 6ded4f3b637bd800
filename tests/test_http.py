"""Tests for roost.http — Headers, QueryParams, Request and Response."""

import pytest

from roost.http.headers import Headers
from roost.http.query import QueryParams
from roost.http.request import Request
from roost.http.response import Response


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


def _make_receive(*bodies: bytes):
    """Create an ASGI receive callable that yields bodies."""
    messages = []
    for i, body in enumerate(bodies):
        is_last = i == len(bodies) - 1
        messages.append({"type": "http.request", "body": body, "more_body": not is_last})
    if not messages:
        messages.append({"type": "http.request", "body": b"", "more_body": False})
    it = iter(messages)

    async def receive():
        return next(it)

    return receive


class TestHeaders:
    def test_case_insensitive(self) -> None:
        h = Headers({"Content-Type": "text/html"})
        assert h["content-type"] == "text/html"
        assert h["CONTENT-TYPE"] == "text/html"

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            Headers()["X-Missing"]

    def test_get_default(self) -> None:
        assert Headers().get("x-missing", "d") == "d"

    def test_get_list_in_order(self) -> None:
        h = Headers([("Accept", "a"), ("accept", "b")])
        assert h.get_list("ACCEPT") == ["a", "b"]

    def test_iter_unique_lowercase(self) -> None:
        h = Headers([("Accept", "a"), ("X-Y", "1"), ("Accept", "b")])
        assert list(h) == ["accept", "x-y"]
        assert len(h) == 2

    def test_from_asgi_decodes_latin1(self) -> None:
        h = Headers.from_asgi([(b"X-Name", "café".encode("latin-1"))])
        assert h["x-name"] == "café"

    def test_arguments_upper_cased(self) -> None:
        h = Headers([("Content-Type", "text/x"), ("Accept", "a"), ("accept", "b")])
        assert h.arguments() == {"CONTENT-TYPE": "text/x", "ACCEPT": ["a", "b"]}


class TestQueryParams:
    def test_first_value(self) -> None:
        q = QueryParams(b"a=1&a=2")
        assert q["a"] == "1"
        assert q.get_list("a") == ["1", "2"]

    def test_blank_values_kept(self) -> None:
        assert QueryParams(b"flag=")["flag"] == ""

    def test_percent_decoding(self) -> None:
        assert QueryParams(b"q=a%20b")["q"] == "a b"

    def test_missing(self) -> None:
        q = QueryParams()
        assert q.get("x") is None
        assert q.get_list("x") == []

    def test_arguments_collapse_singletons(self) -> None:
        q = QueryParams(b"a=1&v=1&v=2&flag=")
        assert q.arguments() == {"a": "1", "v": ["1", "2"], "flag": ""}

    def test_str_query_string(self) -> None:
        assert QueryParams("user-id=7")["user-id"] == "7"


class TestRequest:
    def test_from_asgi(self) -> None:
        scope = _make_scope(
            method="POST",
            path="/thing/1",
            query_string=b"v=1",
            headers=[(b"host", b"example.com")],
        )
        req = Request.from_asgi(scope, _make_receive())
        assert req.method == "POST"
        assert req.path == "/thing/1"
        assert req.query["v"] == "1"
        assert req.host == "example.com"
        assert req.url == "http://example.com/thing/1"

    def test_host_falls_back_to_server(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive())
        assert req.host == "localhost:8000"

    def test_url_includes_root_path(self) -> None:
        req = Request.from_asgi(_make_scope(root_path="/api", path="/x"), _make_receive())
        assert req.url == "http://localhost:8000/api/x"

    async def test_body_chunks_joined_and_cached(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive(b"ab", b"cd"))
        assert await req.body() == b"abcd"
        assert await req.body() == b"abcd"

    async def test_no_body(self) -> None:
        req = Request(method="GET", path="/")
        assert await req.body() == b""

    def test_frozen(self) -> None:
        req = Request(method="GET", path="/")
        with pytest.raises(AttributeError):
            req.method = "POST"  # type: ignore[misc]


class TestResponse:
    def test_defaults(self) -> None:
        r = Response()
        assert r.status == 200
        assert r.body == b""
        assert r.content_type is None

    def test_chain_returns_new(self) -> None:
        base = Response(b"x")
        changed = base.with_status(201).with_header("Location", "/a")
        assert base.status == 200
        assert changed.status == 201
        assert changed.header("location") == "/a"

    def test_with_headers_mapping_and_pairs(self) -> None:
        r = Response().with_headers({"A": "1"}).with_headers([("A", "2")])
        assert r.header_list("a") == ["1", "2"]

    def test_text(self) -> None:
        assert Response("héllo".encode()).text == "héllo"
