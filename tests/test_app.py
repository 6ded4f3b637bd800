"""Tests for roost.app — namespaces, lifecycle hooks and ASGI lifespan."""

import json
from typing import Any

from roost.app import App
from roost.testing import TestClient


class Owls:
    def get_owl(self, id: int) -> dict:
        return {"owl": id}


class Nested:
    def get_owl(self, id: int) -> dict:
        return {"nested": id}


class TestRegistration:
    def test_mapper_created_once_per_namespace(self) -> None:
        app = App()
        assert app.mapper("/rest") is app.mapper("rest/")

    def test_mappers_longest_first(self) -> None:
        app = App()
        app.mapper("/")
        app.mapper("/a")
        app.mapper("/a/b")
        assert [m.namespace for m in app.mappers] == ["/a/b", "/a", "/"]

    def test_mappers_share_config(self) -> None:
        app = App()
        assert app.mapper("/x").config is app.config

    def test_deregister_finds_namespace(self) -> None:
        app = App()
        owls = Owls()
        app.register(owls, namespace="/birds")
        assert app.deregister(owls) is True
        assert app.deregister(owls) is False
        assert len(app.mapper("/birds").table) == 0


class TestRouting:
    async def test_namespaces(self) -> None:
        app = App()
        app.register(Owls(), namespace="/birds")
        app.register(Nested(), namespace="/birds/nested")
        async with TestClient(app) as client:
            outer = await client.get("/birds/owl/1")
            inner = await client.get("/birds/nested/owl/2")
        assert json.loads(outer.body) == {"owl": 1}
        assert json.loads(inner.body) == {"nested": 2}

    async def test_unrouted_is_404(self) -> None:
        app = App()
        app.register(Owls(), namespace="/birds")
        async with TestClient(app) as client:
            response = await client.get("/fish/owl/1")
        assert response.status == 404

    async def test_fallback(self) -> None:
        async def fallback(scope: Any, receive: Any, send: Any) -> None:
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"static"})

        app = App(fallback=fallback)
        app.register(Owls(), namespace="/birds")
        async with TestClient(app) as client:
            response = await client.get("/index.html")
        assert response.body == b"static"


class TestLifecycle:
    async def test_startup_registers_handlers(self) -> None:
        app = App()

        @app.on_startup
        async def register() -> None:
            app.register(Owls())

        async with TestClient(app) as client:
            response = await client.get("/owl/3")
        assert json.loads(response.body) == {"owl": 3}

    async def test_shutdown_hooks_run(self) -> None:
        app = App()
        calls: list[str] = []
        app.on_shutdown(lambda: calls.append("sync"))

        @app.on_shutdown
        async def closing() -> None:
            calls.append("async")

        async with TestClient(app):
            pass
        assert calls == ["sync", "async"]

    async def test_lifespan_protocol(self) -> None:
        app = App()
        started: list[bool] = []
        app.on_startup(lambda: started.append(True))

        incoming = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return next(incoming)

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert started == [True]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    async def test_lifespan_startup_failure(self) -> None:
        app = App()

        @app.on_startup
        def fail() -> None:
            raise RuntimeError("no database")

        incoming = iter([{"type": "lifespan.startup"}])
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return next(incoming)

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert sent == [{"type": "lifespan.startup.failed", "message": "no database"}]
