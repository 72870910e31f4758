"""
tickets.store
=============

Light abstractions for storage backends used by the sale (tiers, tickets,
soulbound ownership, pricing config).

Backends are pluggable (in-memory, SQLite). This module exposes a small typing
protocol so higher layers depend on a stable interface, plus the in-memory
backend and `open_store(uri)`.

Only bytes go in/out; `tickets.store.kv.Buckets` handles record encoding.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Generator, Iterable, Optional, Protocol, Tuple
from urllib.parse import urlparse


class KeyValue(Protocol):
    """Minimal byte-oriented KV interface with all-or-nothing transactions."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Return value for key, or None if missing."""
        ...

    def put(self, key: bytes, value: bytes) -> None:
        """Insert or replace key with value."""
        ...

    def delete(self, key: bytes) -> None:
        """Remove key if present (no-op if absent)."""
        ...

    def has(self, key: bytes) -> bool:
        """Return True if key exists."""
        ...

    def iter_prefix(self, prefix: bytes) -> Iterable[Tuple[bytes, bytes]]:
        """Yield (key, value) pairs whose keys start with prefix, ordered by key."""
        ...

    def transaction(self):  # -> ContextManager[None]
        """Group writes; on error every write inside the block is undone.

        Nested transactions join the outermost one.
        """
        ...

    def close(self) -> None:
        ...


class MemoryKeyValue:
    """
    Dict-backed KeyValue. Transactions snapshot the map at the outermost
    `transaction()` and restore it if the block raises.
    """

    def __init__(self) -> None:
        self._data: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()
        self._depth = 0

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._data.get(bytes(key))

    def put(self, key: bytes, value: bytes) -> None:
        if not isinstance(key, (bytes, bytearray)) or not isinstance(value, (bytes, bytearray)):
            raise TypeError("key and value must be bytes")
        with self._lock:
            self._data[bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._data.pop(bytes(key), None)

    def has(self, key: bytes) -> bool:
        with self._lock:
            return bytes(key) in self._data

    def iter_prefix(self, prefix: bytes) -> Iterable[Tuple[bytes, bytes]]:
        with self._lock:
            items = sorted((k, v) for k, v in self._data.items() if k.startswith(prefix))
        return iter(items)

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with self._lock:
            outermost = self._depth == 0
            snapshot = dict(self._data) if outermost else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost and snapshot is not None:
                    self._data = snapshot
                raise
            finally:
                self._depth -= 1

    def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._data)


def open_store(uri: str) -> KeyValue:
    """
    Open a backend from a URI:
      - memory://                  → MemoryKeyValue
      - sqlite:///path/to/file.db  → SQLiteKeyValue (relative path)
      - sqlite:////abs/file.db     → SQLiteKeyValue (absolute path)
    """
    u = urlparse(uri)
    if u.scheme == "memory":
        return MemoryKeyValue()
    if u.scheme == "sqlite":
        from .sqlite import SQLiteKeyValue

        # sqlite:///rel/path.db is relative, sqlite:////abs/path.db is absolute
        path = u.path[1:] if u.path.startswith("/") else u.path
        if not path:
            raise ValueError("sqlite URI requires a path")
        return SQLiteKeyValue(path)
    raise ValueError(f"unsupported store URI scheme: {u.scheme!r}")


__all__ = [
    "KeyValue",
    "MemoryKeyValue",
    "open_store",
]
