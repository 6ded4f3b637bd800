"""Roost application — hosts one RestMapper per namespace.

Handlers come and go at runtime (``register`` / ``deregister``); each
lands in the mapper for its namespace, created on first use. Requests
go to the mapper with the longest namespace containing the path.
"""

import inspect
import threading
from collections.abc import Callable
from typing import Any

from roost._internal.asgi import ASGIApp, Receive, Scope, Send
from roost.config import RoostConfig
from roost.http.request import Request
from roost.http.response import Response
from roost.mapper import RestMapper, normalize_namespace
from roost.routing.operation import HandlerRegistration
from roost.server.sender import send_response


class App:
    """The roost application.

    Thread safety:
        The mapper set is replaced as a whole under ``_lock`` and read
        without locking, longest namespace first. Each mapper guards
        its own dispatch table.
    """

    __slots__ = (
        "_lock",
        "_mappers",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "fallback",
    )

    def __init__(
        self,
        config: RoostConfig | None = None,
        *,
        fallback: ASGIApp | None = None,
    ) -> None:
        self.config: RoostConfig = config or RoostConfig()
        self.fallback = fallback
        self._lock = threading.Lock()
        self._mappers: tuple[RestMapper, ...] = ()
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []

    # -- Registration --

    def register(self, handler: Any, ranking: int = 0, namespace: str = "/") -> HandlerRegistration:
        """Register *handler* under *namespace* with the given ranking."""
        return self.mapper(namespace).register(handler, ranking)

    def deregister(self, handler: Any) -> bool:
        """Remove *handler* from whichever namespace holds it."""
        removed = False
        for mapper in self._mappers:
            removed = mapper.deregister(handler) or removed
        return removed

    def mapper(self, namespace: str = "/") -> RestMapper:
        """Return the mapper for *namespace*, creating it on first use."""
        namespace = normalize_namespace(namespace)
        with self._lock:
            for existing in self._mappers:
                if existing.namespace == namespace:
                    return existing
            created = RestMapper(namespace, self.config)
            self._mappers = tuple(
                sorted((*self._mappers, created), key=lambda m: len(m.namespace), reverse=True)
            )
            return created

    @property
    def mappers(self) -> tuple[RestMapper, ...]:
        """Mappers, longest namespace first."""
        return self._mappers

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        typically to register handlers before traffic arrives.
        """
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Requests --

    async def handle(self, request: Request) -> Response | None:
        """Route *request* through the first mapper whose namespace holds it."""
        for mapper in self._mappers:
            response = await mapper.handle(request)
            if response is not None:
                return response
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan directly, then delegates HTTP scopes to the
        mappers. Unrouted requests go to ``fallback`` or get a 404.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

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

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return
