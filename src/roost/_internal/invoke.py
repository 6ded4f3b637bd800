"""Invoke helpers — call sync or async operations uniformly.

Handler operations can be ``def`` or ``async def``. Any code that calls
a bound operation must handle both cases. This module keeps the
sync/async check, and the unwrapping of the raised failure, in one place.

Usage::

    from roost._internal.invoke import invoke

    result = await invoke(method, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(method: Any, *args: Any, **kwargs: Any) -> Any:
    """Call an operation and await the result if it's a coroutine."""
    result = method(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def unwrap(exc: BaseException) -> BaseException:
    """Return the underlying cause of a failure raised by an operation.

    An exception group holding exactly one failure (what a task group
    raises when a single child fails) unwraps to that failure, recursively.
    """
    while isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return exc
