from __future__ import annotations

from threading import Lock
from typing import Any


class InMemoryCache:
    """Process-local key-value cache, last write wins."""

    def __init__(self):
        self._cache: dict[str, Any] = {}
        self._lock = Lock()

    def read(self, *, key: str) -> Any | None:
        with self._lock:
            return self._cache.get(key)

    def write(self, *, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value
