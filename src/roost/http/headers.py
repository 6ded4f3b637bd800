"""Request headers, case-insensitive and multi-valued.

Names are stored lower-cased and decoded once, when the request is
built. Operations see headers through ``arguments()``, keyed by the
upper-cased name (``X-Trace`` -> ``X-TRACE``).
"""

from collections.abc import Iterable, Iterator, Mapping

from roost.http.query import collapse


class Headers(Mapping[str, str]):
    """Immutable request headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns every value for a header, in arrival order.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        self._pairs: tuple[tuple[str, str], ...] = tuple(
            (name.lower(), value) for name, value in items
        )

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> "Headers":
        """Decode the byte pairs of an ASGI scope."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._pairs:
            if name == wanted:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and any(name == key.lower() for name, _ in self._pairs)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._pairs))

    def __repr__(self) -> str:
        return f"Headers({list(self._pairs)!r})"

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*, in arrival order."""
        wanted = key.lower()
        return [value for name, value in self._pairs if name == wanted]

    def arguments(self) -> dict[str, str | list[str]]:
        """Scalar-or-list values keyed by upper-cased header name."""
        return collapse((name.upper(), value) for name, value in self._pairs)
