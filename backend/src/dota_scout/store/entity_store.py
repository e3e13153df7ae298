"""Keyed in-memory entity collections with reference-identity change detection."""

import logging
from contextlib import contextmanager
from types import MappingProxyType
from typing import Callable, Generic, Hashable, Iterator, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Listener = Callable[[Mapping], None]


class EntityStore(Generic[K, V]):
    """One keyed collection of entities.

    Every mutation publishes a new read-only ``ref`` over the current
    contents, so observers can detect updates by identity alone. Inside a
    ``batch()`` block the refresh is deferred and happens once on exit.
    """

    def __init__(self, name: str):
        self.name = name
        self._items: dict[K, V] = {}
        self._ref: Mapping[K, V] = MappingProxyType({})
        self._version = 0
        self._listeners: list[Listener] = []
        self._batch_depth = 0
        self._dirty = False

    @property
    def ref(self) -> Mapping[K, V]:
        """Snapshot whose identity changes on every mutation."""
        return self._ref

    @property
    def version(self) -> int:
        return self._version

    def get(self, key: K) -> Optional[V]:
        return self._items.get(key)

    def set(self, key: K, value: V) -> None:
        self._items[key] = value
        self._changed()

    def delete(self, key: K) -> bool:
        """Remove an entry. Returns False when the key was absent."""
        if key not in self._items:
            return False
        del self._items[key]
        self._changed()
        return True

    def all(self) -> list[V]:
        return list(self._items.values())

    def keys(self) -> list[K]:
        return list(self._items.keys())

    def items(self) -> list[tuple[K, V]]:
        return list(self._items.items())

    def replace_all(self, entries: Mapping[K, V]) -> None:
        self._items = dict(entries)
        self._changed()

    def clear(self) -> None:
        self._items.clear()
        self._changed()

    def touch(self) -> None:
        """Publish a new ref after an entity was mutated in place."""
        self._changed()

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._items))

    @contextmanager
    def batch(self):
        """Group several mutations into a single ref refresh."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self._refresh_ref()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with each new ref. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        if self._batch_depth > 0:
            self._dirty = True
            return
        self._refresh_ref()

    def _refresh_ref(self) -> None:
        self._ref = MappingProxyType(dict(self._items))
        self._version += 1
        for listener in list(self._listeners):
            listener(self._ref)
