"""Request matcher — selects ranked candidate operations for a request.

The first path segment names the operation; the remaining segments are
its positional arguments. Lookup goes by ``verb name/arity`` first and
falls back to variable-tail operations registered under ``verb name``.
"""

from dataclasses import dataclass

from roost.errors import NotFound
from roost.routing.names import decode
from roost.routing.operation import DispatchKey, Operation, verb_for
from roost.routing.table import DispatchTable

API_DESCRIPTION = "openapi.json"


@dataclass(frozen=True, slots=True)
class Match:
    """Result of a successful lookup.

    ``describe`` is set for the reserved API description route, in which
    case there are no candidates.
    """

    key: DispatchKey | None
    candidates: tuple[Operation, ...] = ()
    segments: tuple[str, ...] = ()
    describe: bool = False


def split_path(path: str) -> list[str]:
    """Split a namespace-relative path into segments.

    The leading separator is dropped, and so are trailing empty segments
    (``thing/42/`` is ``["thing", "42"]``). The root path is ``[""]``.
    """
    parts = path.removeprefix("/").split("/")
    while len(parts) > 1 and parts[-1] == "":
        parts.pop()
    return parts


def match(table: DispatchTable, method: str, path: str, *, diagnostics: bool = True) -> Match:
    """Find the candidates for *method* and *path*.

    Both keys are looked up in one table snapshot, so a concurrent
    registration is seen by both or by neither.

    Raises ``NotFound`` when neither key has candidates. With
    *diagnostics*, the detail enumerates the known dispatch keys.
    """
    first, *rest = split_path(path)
    name = decode(first)
    if name == API_DESCRIPTION:
        return Match(key=None, describe=True)

    verb = verb_for(method)
    snapshot = table.snapshot()
    key = DispatchKey(verb, name, len(rest))
    candidates = snapshot.lookup(key)

    if not candidates:
        key = DispatchKey(verb, name)
        candidates = tuple(
            op for op in snapshot.lookup(key) if op.variable_tail and op.arity <= len(rest)
        )

    if not candidates:
        detail = f"No such operation {verb} {name}/{len(rest)}"
        if diagnostics:
            available = ", ".join(str(k) for k in snapshot.keys()) or "none"
            detail = f"{detail}. Available: {available}"
        raise NotFound(detail)

    return Match(key=key, candidates=candidates, segments=tuple(rest))
