"""RestMapper — the registration and request boundary for one namespace.

Maps requests under a namespace prefix onto the operations of
registered handler objects::

    class Things:
        def get_thing(self, id: int) -> dict:
            return {"id": id}

    mapper = RestMapper("/rest")
    mapper.register(Things())
    # GET /rest/thing/42 -> {"id": 42}

A mapper is an ASGI application on its own; ``App`` hosts several.
"""

import logging
from typing import Any

from roost._internal.asgi import ASGIApp, Receive, Scope, Send
from roost.config import RoostConfig
from roost.http.request import Request
from roost.http.response import Response
from roost.routing.operation import HandlerRegistration
from roost.routing.table import DispatchTable
from roost.server.handler import dispatch
from roost.server.sender import send_response

logger = logging.getLogger("roost.server")


def normalize_namespace(namespace: str) -> str:
    """``"rest/"`` -> ``"/rest"``; the root namespace is ``"/"``."""
    stripped = namespace.strip("/")
    return f"/{stripped}" if stripped else "/"


class RestMapper:
    """Dispatches requests under ``namespace`` to registered handlers.

    Thread safety:
        ``register`` and ``deregister`` may be called from any thread
        while requests are in flight. The dispatch table publishes
        immutable snapshots; a request sees the table as it was when
        the request was matched.
    """

    __slots__ = ("_table", "config", "fallback", "namespace")

    def __init__(
        self,
        namespace: str = "/",
        config: RoostConfig | None = None,
        *,
        fallback: ASGIApp | None = None,
    ) -> None:
        self.namespace = normalize_namespace(namespace)
        self.config: RoostConfig = config or RoostConfig()
        self.fallback = fallback
        self._table = DispatchTable(self.namespace)

    # -- Registration --

    def register(self, handler: Any, ranking: int = 0) -> HandlerRegistration:
        """Add a handler object; lower *ranking* wins on shared routes."""
        registration = self._table.add(handler, ranking)
        logger.info(
            "Registered %s under %s (ranking %d)",
            type(handler).__name__,
            self.namespace,
            ranking,
        )
        return registration

    def deregister(self, handler: Any) -> bool:
        """Remove a handler and every operation it contributed."""
        return self._table.remove(handler)

    @property
    def table(self) -> DispatchTable:
        return self._table

    # -- Requests --

    def relative(self, path: str) -> str | None:
        """Return *path* relative to the namespace, or None if outside it."""
        if self.namespace == "/":
            return path
        if path == self.namespace:
            return ""
        if path.startswith(self.namespace + "/"):
            return path[len(self.namespace) :]
        return None

    async def handle(self, request: Request) -> Response | None:
        """Route *request*.

        Returns None only when the path lies outside the namespace (no
        routing attempt was made). Otherwise always returns a Response,
        for successes and mapped failures alike.
        """
        path = self.relative(request.path)
        if path is None:
            return None
        base_uri = f"{request.scheme}://{request.host or 'localhost'}{request.root_path}"
        if self.namespace != "/":
            base_uri += self.namespace
        return await dispatch(self._table, request, path, self.config, base_uri=base_uri)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point for HTTP scopes."""
        if scope["type"] != "http":
            if self.fallback is not None:
                await self.fallback(scope, receive, send)
            return

        request = Request.from_asgi(scope, receive)
        response = await self.handle(request)
        if response is None:
            if self.fallback is not None:
                await self.fallback(scope, receive, send)
                return
            response = Response(status=404)
        await send_response(response, send, head=request.method == "HEAD")
