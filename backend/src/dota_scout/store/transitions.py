"""State-transition helpers for replacing one keyed entry with another."""

from dataclasses import dataclass
from typing import Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class SwapResult(Generic[K, V]):
    """Outcome of a swap: the state before and the state to publish."""

    previous: dict[K, V]
    current: dict[K, V]

    @property
    def changed(self) -> bool:
        return self.previous is not self.current


def swap_entry(
    entries: dict[K, V],
    old_key: K,
    new_key: K,
    new_value: V,
    position: Optional[int] = None,
) -> SwapResult[K, V]:
    """Build the mapping with ``old_key`` replaced by ``new_key``.

    The input mapping is never mutated. The new entry takes the old entry's
    position unless ``position`` is given, so the caller can publish the
    result with a single assignment and no observer ever sees a state that
    holds neither key.

    Raises:
        KeyError: ``old_key`` is not present
        ValueError: ``new_key`` already names a different entry
    """
    if old_key not in entries:
        raise KeyError(old_key)
    if new_key != old_key and new_key in entries:
        raise ValueError(f"Entry {new_key} already exists")

    ordered = [(k, v) for k, v in entries.items() if k != old_key]
    if position is None:
        position = list(entries).index(old_key)
    position = max(0, min(position, len(ordered)))
    ordered.insert(position, (new_key, new_value))

    return SwapResult(previous=entries, current=dict(ordered))
