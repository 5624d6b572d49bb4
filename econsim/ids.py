"""Opaque identifier generation.

Identifiers are ``<prefix><uuid4 hex>``. UUIDs are drawn from a pool that
is refilled in batches from ``os.urandom``, so one syscall serves many
entities. Only uniqueness is guaranteed; callers must not parse ids.
"""

from __future__ import annotations

import os
import threading
import uuid as _uuid


class IdPool:
    """Thread-safe batch of random UUID hex strings.

    Parameters
    ----------
    batch_size : int
        Number of UUIDs to generate per refill (default 256).
    """

    __slots__ = ("_batch_size", "_pool", "_index", "_lock")

    def __init__(self, batch_size: int = 256) -> None:
        self._batch_size = batch_size
        self._pool: list[str] = []
        self._index = 0
        self._lock = threading.Lock()

    def _refill(self) -> None:
        raw = os.urandom(16 * self._batch_size)
        self._pool = [
            _uuid.UUID(bytes=raw[i : i + 16], version=4).hex
            for i in range(0, len(raw), 16)
        ]
        self._index = 0

    def next(self, prefix: str = "") -> str:
        """Return a fresh identifier with ``prefix`` prepended."""
        with self._lock:
            if self._index >= len(self._pool):
                self._refill()
            val = self._pool[self._index]
            self._index += 1
        return f"{prefix}{val}"


_default_pool = IdPool()


def new_id(prefix: str = "") -> str:
    """Generate an identifier from the module-wide pool."""
    return _default_pool.next(prefix)
