"""Roost exception hierarchy and the failure-category status table.

Shared across the dispatch table, binder, writer and error mapper so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when a handler or mapper is set up incorrectly.

    Typically raised from ``RestMapper.register()``.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Raised by the matcher, the binder, or handler operations. The error
    mapper sets the response status from ``status``.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no dispatch key matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class BindingFailure(HTTPError):  # noqa: N818
    """400 — a candidate operation exists but no argument set could be bound."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class CoercionError(ValueError):
    """A request value could not be converted to the declared input type."""


# Failure category -> status code. Looked up along the exception's MRO,
# so the most specific registered base wins.
STATUS_CODES: dict[type[BaseException], int] = {
    FileNotFoundError: 404,
    LookupError: 404,
    PermissionError: 403,
    NotImplementedError: 501,
    TimeoutError: 504,
    ConnectionError: 503,
    ValueError: 400,
    TypeError: 400,
}


def status_for(exc: BaseException) -> int:
    """Return the response status for a raised failure.

    ``HTTPError`` carries its own status. Anything not in the table is 500.
    """
    if isinstance(exc, HTTPError):
        return exc.status
    for cls in type(exc).__mro__:
        status = STATUS_CODES.get(cls)
        if status is not None:
            return status
    return 500
