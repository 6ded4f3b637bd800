"""Tests for roost.mapper — end-to-end dispatch through the ASGI boundary."""

import json
from dataclasses import dataclass
from typing import Any

import anyio
import pytest

from roost.config import RoostConfig
from roost.errors import ConfigurationError, HTTPError
from roost.http.response import Response
from roost.mapper import RestMapper, normalize_namespace
from roost.rest import ResponseDraft, RESTRequest, RESTResponse
from roost.testing import TestClient


@dataclass
class Thing:
    name: str
    size: int = 1


class Created(RESTResponse):
    location: str

    def __init__(self, location: str, value: Any = None) -> None:
        super().__init__(201, value)
        self.location = location


class Priced(RESTResponse):
    x_price: str

    def __init__(self, price: str) -> None:
        super().__init__(200, {"ok": True})
        self.x_price = price


class ThingRequest(RESTRequest):
    verbose: bool = False
    v: list[int]
    _body: Thing


class TypedRequest(RESTRequest):
    content_type: str


class Things:
    def __init__(self) -> None:
        self.stored: dict[int, Thing] = {}

    def get(self) -> dict:
        return {"root": True}

    def get_thing(self, id: int) -> dict:
        return {"id": id}

    def get_view(self, rq: ThingRequest, id: int) -> dict:
        return {"id": id, "verbose": rq.verbose, "v": rq.v}

    def put_thing(self, rq: ThingRequest, id: int) -> Created:
        self.stored[id] = rq._body
        return Created(f"/thing/{id}")

    def post_raised(self) -> None:
        raise Created("/thing/42")

    def post_returned(self) -> Created:
        return Created("/thing/42")

    def post_thing(self, body: Thing) -> Thing:
        return body

    def get_files(self, root: str, *rest: str) -> list[str]:
        return [root, *rest]

    def get_search(self, *, q: str, limit: int = 10) -> dict:
        return {"q": q, "limit": limit}

    def get_header(self, *, X_TRACE: str) -> str:
        return X_TRACE

    def get_named(self, *, content_type: str = "none") -> str:
        return content_type

    def get_typed(self, rq: TypedRequest) -> str:
        return rq.content_type

    def get_priced(self) -> Priced:
        return Priced("5 €")

    def get_class_(self) -> str:
        return "escaped"

    def get_missing(self) -> None:
        raise KeyError("nothing")

    def get_broken(self) -> None:
        raise RuntimeError("boom")

    def get_teapot(self) -> None:
        raise HTTPError(status=418, detail="short and stout")

    def get_bytes(self) -> bytes:
        return b"\x00\x01"

    def get_empty(self) -> None:
        return None

    def get_accepted(self, *, _response: ResponseDraft) -> dict:
        _response.status = 202
        _response.add_header("X-Job", "17")
        return {"queued": True}

    async def get_slow(self, id: int) -> dict:
        await anyio.sleep(0)
        return {"id": id, "async": True}

    def option_thing(self) -> list[str]:
        return ["GET", "PUT"]

    def head_thing(self, id: int) -> dict:
        return {"id": id}


class Primary:
    def get_thing(self, id: int) -> str:
        return "primary"


class Secondary:
    def get_thing(self, id: int) -> str:
        return "secondary"


class Picky:
    def get_pick(self, id: int) -> str:
        return "int"


class Lenient:
    def get_pick(self, id: str) -> str:
        return "str"


def _json(response: Response) -> Any:
    return json.loads(response.body)


@pytest.fixture
def mapper() -> RestMapper:
    mapper = RestMapper()
    mapper.register(Things())
    return mapper


class TestNamespace:
    @pytest.mark.parametrize(
        ("given", "expected"),
        [("/", "/"), ("", "/"), ("rest", "/rest"), ("/rest/", "/rest"), ("/a/b", "/a/b")],
    )
    def test_normalize(self, given: str, expected: str) -> None:
        assert normalize_namespace(given) == expected

    def test_relative(self) -> None:
        mapper = RestMapper("/rest")
        assert mapper.relative("/rest/thing/1") == "/thing/1"
        assert mapper.relative("/rest") == ""
        assert mapper.relative("/restful/thing") is None
        assert mapper.relative("/other") is None

    async def test_requests_under_namespace(self) -> None:
        mapper = RestMapper("/rest")
        mapper.register(Things())
        async with TestClient(mapper) as client:
            response = await client.get("/rest/thing/42")
            outside = await client.get("/thing/42")
        assert _json(response) == {"id": 42}
        assert outside.status == 404


class TestDispatch:
    async def test_get_with_path_argument(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/thing/42")
        assert response.status == 200
        assert response.content_type == "application/json;charset=UTF-8"
        assert _json(response) == {"id": 42}

    async def test_root_operation(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/")
        assert _json(response) == {"root": True}

    async def test_trailing_slash(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/thing/42/")
        assert _json(response) == {"id": 42}

    async def test_lenient_name(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/Thing/7")
        assert _json(response) == {"id": 7}

    async def test_escaped_keyword_name(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/class")
        assert _json(response) == "escaped"

    async def test_context_from_query(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/view/1?verbose=yes&v=3&v=4")
        assert _json(response) == {"id": 1, "verbose": True, "v": [3, 4]}

    async def test_named_arguments(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/search?q=owls&limit=2")
        assert _json(response) == {"q": "owls", "limit": 2}

    async def test_header_argument(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/header", headers={"X-Trace": "t-1"})
        assert _json(response) == "t-1"

    async def test_variable_tail(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/files/a/b/c")
        assert _json(response) == ["a", "b", "c"]

    async def test_async_operation(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/slow/3")
        assert _json(response) == {"id": 3, "async": True}

    async def test_options_verb(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.options("/thing")
        assert _json(response) == ["GET", "PUT"]

    async def test_head_operation_sends_no_body(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.head("/thing/5")
        assert response.status == 200
        assert response.body == b""

    async def test_bytes_result(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/bytes")
        assert response.body == b"\x00\x01"
        assert response.content_type == "application/octet-stream"

    async def test_empty_result(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/empty")
        assert response.status == 200
        assert response.body == b""
        assert response.content_type is None

    async def test_response_draft(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/accepted")
        assert response.status == 202
        assert response.header("x-job") == "17"
        assert _json(response) == {"queued": True}

    async def test_gzip_when_accepted(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get(
                "/files/" + "/".join(["segment"] * 20), headers={"Accept-Encoding": "gzip"}
            )
        assert response.header("content-encoding") == "gzip"


class TestLowerCaseNames:
    async def test_keyword_from_header(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/named", headers={"Content-Type": "text/x"})
        assert _json(response) == "text/x"

    async def test_keyword_default_without_header(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/named")
        assert _json(response) == "none"

    async def test_context_field_from_header(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/typed", headers={"Content-Type": "text/x"})
        assert _json(response) == "text/x"

    async def test_keyword_from_query_alias(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/named?content-type=text/q")
        assert _json(response) == "text/q"

    async def test_exact_query_name_wins_over_header(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get(
                "/named?content_type=text/q", headers={"Content-Type": "text/x"}
            )
        assert _json(response) == "text/q"


class TestBody:
    async def test_body_parameter(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.post("/thing", json={"name": "owl", "size": 3})
        assert _json(response) == {"name": "owl", "size": 3}

    async def test_context_body(self) -> None:
        things = Things()
        mapper = RestMapper()
        mapper.register(things)
        async with TestClient(mapper) as client:
            response = await client.put("/thing/42", json={"name": "owl"})
        assert response.status == 201
        assert response.header("location") == "/thing/42"
        assert response.body == b""
        assert things.stored[42] == Thing("owl")

    async def test_malformed_body(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.post("/thing", body=b"{nope")
        assert response.status == 400

    async def test_body_of_wrong_shape(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.post("/thing", json={"size": 3})
        assert response.status == 400


class TestStructuredResponses:
    async def test_raised_and_returned_identical(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            raised = await client.post("/raised")
            returned = await client.post("/returned")
        assert raised.status == returned.status == 201
        assert raised.headers == returned.headers
        assert raised.body == returned.body == b""
        assert raised.header("LOCATION") == "/thing/42"

    async def test_non_latin1_header_value_is_replaced(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/priced")
        assert response.status == 200
        assert response.header("x-price") == "5 ?"
        assert _json(response) == {"ok": True}


class TestFailures:
    async def test_unknown_operation(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/nothing")
        assert response.status == 404
        assert response.body == b""

    async def test_debug_lists_available_keys(self) -> None:
        mapper = RestMapper(config=RoostConfig(debug=True))
        mapper.register(Primary())
        async with TestClient(mapper) as client:
            response = await client.get("/nothing")
        assert response.status == 404
        assert "GET thing/1" in response.text

    async def test_missing_path_argument(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/thing")
        assert response.status == 404

    async def test_wrong_arity(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/thing/1/2")
        assert response.status == 404

    async def test_unconvertible_path_argument(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/thing/abc")
        assert response.status == 400

    async def test_missing_named_argument(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/search")
        assert response.status == 400

    async def test_lookup_error_is_404(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/missing")
        assert response.status == 404

    async def test_unexpected_error_is_500(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/broken")
        assert response.status == 500
        assert b"boom" not in response.body

    async def test_http_error_status(self, mapper: RestMapper) -> None:
        async with TestClient(mapper) as client:
            response = await client.get("/teapot")
        assert response.status == 418


class TestRanking:
    async def test_lower_ranking_wins(self) -> None:
        mapper = RestMapper()
        mapper.register(Secondary(), ranking=5)
        mapper.register(Primary(), ranking=1)
        async with TestClient(mapper) as client:
            response = await client.get("/thing/42")
        assert _json(response) == "primary"

    async def test_ties_go_to_first_registered(self) -> None:
        mapper = RestMapper()
        mapper.register(Secondary())
        mapper.register(Primary())
        async with TestClient(mapper) as client:
            response = await client.get("/thing/42")
        assert _json(response) == "secondary"

    async def test_unbindable_candidate_falls_through(self) -> None:
        mapper = RestMapper()
        mapper.register(Picky(), ranking=0)
        mapper.register(Lenient(), ranking=1)
        async with TestClient(mapper) as client:
            number = await client.get("/pick/1")
            word = await client.get("/pick/owl")
        assert _json(number) == "int"
        assert _json(word) == "str"


class TestRuntimeRegistration:
    async def test_deregister_removes_routes(self) -> None:
        mapper = RestMapper()
        things = Things()
        mapper.register(things)
        async with TestClient(mapper) as client:
            before = await client.get("/thing/1")
            assert mapper.deregister(things) is True
            after = await client.get("/thing/1")
        assert before.status == 200
        assert after.status == 404

    async def test_deregister_reveals_next_candidate(self) -> None:
        mapper = RestMapper()
        primary = Primary()
        mapper.register(primary, ranking=1)
        mapper.register(Secondary(), ranking=5)
        mapper.deregister(primary)
        async with TestClient(mapper) as client:
            response = await client.get("/thing/1")
        assert _json(response) == "secondary"

    def test_duplicate_registration(self) -> None:
        mapper = RestMapper()
        things = Things()
        mapper.register(things)
        with pytest.raises(ConfigurationError):
            mapper.register(things)


class TestFallback:
    async def test_outside_namespace_goes_to_fallback(self) -> None:
        async def fallback(scope: Any, receive: Any, send: Any) -> None:
            await send({"type": "http.response.start", "status": 299, "headers": []})
            await send({"type": "http.response.body", "body": b"fallback"})

        mapper = RestMapper("/rest", fallback=fallback)
        mapper.register(Things())
        async with TestClient(mapper) as client:
            outside = await client.get("/elsewhere")
            inside = await client.get("/rest/nothing")
        assert outside.status == 299
        assert outside.body == b"fallback"
        assert inside.status == 404
