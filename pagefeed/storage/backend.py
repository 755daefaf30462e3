"""
Key-value backend contract.

The page store only needs four operations: get, set, delete, and an ordered
prefix scan. Keys are tuples of strings; values are JSON-compatible dicts.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from threading import Lock
from typing import Any, Protocol, runtime_checkable

Key = tuple[str, ...]
Value = dict[str, Any]


class StorageError(RuntimeError):
    """Backend unavailable, or a stored value could not be decoded."""

    pass


@runtime_checkable
class KeyValueBackend(Protocol):
    """Ordered key-value store keyed by string tuples."""

    def get(self, key: Key) -> Value | None: ...

    def set(self, key: Key, value: Value) -> None: ...

    def delete(self, key: Key) -> None: ...

    def scan(self, prefix: Key) -> Iterator[tuple[Key, Value]]:
        """Yield (key, value) pairs whose key starts with `prefix`, in key order."""
        ...


class InMemoryBackend:
    """
    Dict-backed backend for tests and local development.

    Values are deep-copied on the way in and out so callers can't mutate
    stored state. `scan` works on a snapshot taken under the lock, which
    gives eviction the same "not transactional" semantics as a real store.
    """

    def __init__(self) -> None:
        self._data: dict[Key, Value] = {}
        self._lock = Lock()

    def get(self, key: Key) -> Value | None:
        with self._lock:
            value = self._data.get(tuple(key))
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: Key, value: Value) -> None:
        with self._lock:
            self._data[tuple(key)] = copy.deepcopy(value)

    def delete(self, key: Key) -> None:
        with self._lock:
            self._data.pop(tuple(key), None)

    def scan(self, prefix: Key) -> Iterator[tuple[Key, Value]]:
        prefix = tuple(prefix)
        with self._lock:
            matches = sorted(
                ((k, v) for k, v in self._data.items() if k[: len(prefix)] == prefix),
                key=lambda item: item[0],
            )
        for key, value in matches:
            yield key, copy.deepcopy(value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
