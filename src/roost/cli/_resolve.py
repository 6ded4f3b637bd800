"""Import resolution — resolves ``"module:attribute"`` strings to mappers.

Used by ``roost routes`` to locate an App or RestMapper from a
user-supplied import string.
"""

import importlib

from roost.app import App
from roost.mapper import RestMapper


def resolve_app(import_string: str) -> App | RestMapper:
    """Resolve an import string to a roost App or RestMapper.

    Accepts ``"module:attribute"`` format. When the attribute portion
    is omitted, defaults to ``"app"`` (e.g. ``"myapp"`` resolves to
    ``myapp.app``). A factory function is called.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is neither an App nor a RestMapper.

    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    # Support factory functions
    if callable(obj) and not isinstance(obj, (App, RestMapper)):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, (App, RestMapper)):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a roost App or RestMapper"
        raise TypeError(msg)

    return obj
