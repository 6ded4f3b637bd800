"""Dispatch table — ranked operations keyed by verb, name and arity.

Writers (``add`` / ``remove``) serialize on a single lock and publish a
new immutable snapshot; readers take the current snapshot reference
once per request and never observe a half-applied mutation.

Free-threading safety:
    - ``_Snapshot`` is a frozen dataclass over tuples and a dict that is
      never mutated after publication
    - replacing ``self._snapshot`` is a single reference assignment
    - the lock is never held while an operation runs
"""

import itertools
import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from roost.errors import ConfigurationError
from roost.routing.operation import DispatchKey, HandlerRegistration, Operation, scan

logger = logging.getLogger("roost.routing")


@dataclass(frozen=True, slots=True)
class _Snapshot:
    """One published generation of the table."""

    registrations: tuple[HandlerRegistration, ...] = ()
    entries: dict[DispatchKey, tuple[Operation, ...]] = field(default_factory=dict)

    def lookup(self, key: DispatchKey) -> tuple[Operation, ...]:
        return self.entries.get(key, ())

    def keys(self) -> list[DispatchKey]:
        """Known dispatch keys, sorted for display."""
        return sorted(
            self.entries,
            key=lambda k: (k.name, k.verb, -1 if k.arity is None else k.arity),
        )


class DispatchTable:
    """Registry of handler operations.

    Usage::

        table = DispatchTable()
        table.add(handler, ranking=0)
        table.lookup(DispatchKey("GET", "thing", 1))
        table.remove(handler)
    """

    __slots__ = ("_lock", "_namespace", "_sequence", "_snapshot")

    def __init__(self, namespace: str = "/") -> None:
        self._namespace = namespace
        self._lock = threading.Lock()
        self._sequence = itertools.count()
        self._snapshot = _Snapshot()

    def add(self, handler: Any, ranking: int = 0) -> HandlerRegistration:
        """Register *handler* and insert all of its operations.

        Raises ``ConfigurationError`` if the handler is already registered.
        """
        with self._lock:
            current = self._snapshot
            if any(r.handler is handler for r in current.registrations):
                msg = f"Handler {handler!r} is already registered."
                raise ConfigurationError(msg)

            registration = HandlerRegistration(
                handler=handler,
                ranking=ranking,
                namespace=self._namespace,
                sequence=next(self._sequence),
            )
            operations = scan(registration)
            if not operations:
                logger.warning("Handler %r exposes no operations", handler)

            entries = dict(current.entries)
            for op in operations:
                for key in op.keys:
                    candidates = (*entries.get(key, ()), op)
                    entries[key] = tuple(sorted(candidates, key=lambda o: o.sort_key))
                logger.debug("Registered %r", op)

            self._snapshot = _Snapshot((*current.registrations, registration), entries)
            return registration

    def remove(self, handler: Any) -> bool:
        """Deregister *handler* and purge its operations from every key.

        Returns False when the handler was not registered.
        """
        with self._lock:
            current = self._snapshot
            remaining = tuple(r for r in current.registrations if r.handler is not handler)
            if len(remaining) == len(current.registrations):
                return False

            entries: dict[DispatchKey, tuple[Operation, ...]] = {}
            for key, candidates in current.entries.items():
                kept = tuple(op for op in candidates if op.handler is not handler)
                if kept:
                    entries[key] = kept

            self._snapshot = _Snapshot(remaining, entries)
            logger.debug("Deregistered %r", handler)
            return True

    def lookup(self, key: DispatchKey) -> tuple[Operation, ...]:
        """Return the ranked candidates for *key* (empty when unknown)."""
        return self._snapshot.lookup(key)

    def snapshot(self) -> "_Snapshot":
        """The current published generation. Safe to read without locking.

        Take it once to make several lookups against the same generation.
        """
        return self._snapshot

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def registrations(self) -> tuple[HandlerRegistration, ...]:
        return self._snapshot.registrations

    @property
    def keys(self) -> list[DispatchKey]:
        """Known dispatch keys, sorted for display."""
        return self._snapshot.keys()

    @property
    def operations(self) -> list[Operation]:
        """Every registered operation once, in ranking order."""
        seen: set[int] = set()
        result: list[Operation] = []
        for candidates in self._snapshot.entries.values():
            for op in candidates:
                if id(op) not in seen:
                    seen.add(id(op))
                    result.append(op)
        return sorted(result, key=lambda o: (o.name, o.verb, o.arity, o.sort_key))

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __contains__(self, handler: object) -> bool:
        return any(r.handler is handler for r in self._snapshot.registrations)
