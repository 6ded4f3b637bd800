"""Query string parameters.

Values are kept in arrival order. ``arguments()`` folds them into the
shape operations bind against: a key given once maps to its value, a
repeated key to the list of its values (``?v=1&v=2`` -> ``["1", "2"]``).
"""

from collections.abc import Iterable, Iterator, Mapping
from urllib.parse import parse_qsl


def collapse(pairs: Iterable[tuple[str, str]]) -> dict[str, str | list[str]]:
    """Group *pairs* by name; a name seen once keeps a scalar value."""
    grouped: dict[str, list[str]] = {}
    for name, value in pairs:
        grouped.setdefault(name, []).append(value)
    return {name: values[0] if len(values) == 1 else values for name, values in grouped.items()}


class QueryParams(Mapping[str, str]):
    """Parsed query string. Blank values (``?flag=``) are kept.

    ``__getitem__`` returns the first value for a key.
    """

    __slots__ = ("_pairs",)

    def __init__(self, query_string: bytes | str = b"") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        self._pairs: tuple[tuple[str, str], ...] = tuple(
            parse_qsl(query_string, keep_blank_values=True)
        )

    def __getitem__(self, key: str) -> str:
        for name, value in self._pairs:
            if name == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._pairs))

    def __repr__(self) -> str:
        return f"QueryParams({self.arguments()!r})"

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*, in arrival order."""
        return [value for name, value in self._pairs if name == key]

    def arguments(self) -> dict[str, str | list[str]]:
        """Scalar-or-list values keyed by parameter name."""
        return collapse(self._pairs)
