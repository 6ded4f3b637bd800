"""Roost — runtime-registered REST handlers behind an ASGI boundary.

Handler objects expose operations through method names; the mapper
routes ``VERB /name/arg/...`` onto them, binds arguments by type and
writes the result as JSON (or raw bytes, files and streams).

Basic usage::

    from roost import RestMapper

    class Things:
        def get_thing(self, id: int) -> dict:
            return {"id": id}

    mapper = RestMapper("/rest")
    mapper.register(Things())

Handlers can be added and removed while the application serves traffic;
``App`` hosts one mapper per namespace.
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "BindingFailure",
    "ConfigurationError",
    "HTTPError",
    "NotFound",
    "RESTRequest",
    "RESTResponse",
    "Request",
    "Response",
    "ResponseDraft",
    "RestMapper",
    "RoostConfig",
    "RoostError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name == "App":
        from roost.app import App

        return App

    if name == "RestMapper":
        from roost.mapper import RestMapper

        return RestMapper

    if name == "RoostConfig":
        from roost.config import RoostConfig

        return RoostConfig

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name == "Response":
        from roost.http.response import Response

        return Response

    if name in ("RESTRequest", "RESTResponse", "ResponseDraft"):
        from roost import rest as _rest

        return getattr(_rest, name)

    if name in ("BindingFailure", "ConfigurationError", "HTTPError", "NotFound", "RoostError"):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
