"""
Store adapters for the object cache.

The cache talks to stores through ``StoreAdapter``, which accepts any
redis-py compatible client and reports every client error as
``BackendFault``. ``MemoryStore`` is an in-process stand-in with the same
surface.
"""

import fnmatch
import threading
import time
from typing import Any, Callable, Dict, Optional, Set, Tuple, Union

import redis

from shared.errors import BackendFault


def _to_bytes(value: Union[bytes, str, int, float]) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def _to_str(key: Union[bytes, str]) -> str:
    return key.decode("utf-8") if isinstance(key, bytes) else key


def redis_store(url: str, socket_timeout: Optional[float] = 5.0) -> redis.Redis:
    """Create a synchronous Redis client from a URL."""
    return redis.Redis.from_url(
        url,
        socket_connect_timeout=socket_timeout,
        socket_timeout=socket_timeout,
        health_check_interval=30
    )


class StoreAdapter:
    """Normalizing, fault-classifying wrapper around a key-value client."""

    def __init__(self, client: Any, name: Optional[str] = None):
        self.client = client
        self.name = name or type(client).__name__

    def __repr__(self) -> str:
        return f"StoreAdapter({self.name!r})"

    def _call(self, operation: str, *args) -> Any:
        try:
            return getattr(self.client, operation)(*args)
        except Exception as e:
            raise BackendFault(
                self.name,
                f"{operation} failed: {e}",
                {"operation": operation, "error_type": type(e).__name__}
            ) from e

    def get(self, key: str) -> Optional[bytes]:
        return self._call("get", key)

    def set(self, key: str, payload: bytes) -> None:
        self._call("set", key, payload)

    def setex(self, key: str, ttl_seconds: int, payload: bytes) -> None:
        self._call("setex", key, ttl_seconds, payload)

    def delete(self, key: str) -> bool:
        return bool(self._call("delete", key))

    def exists(self, key: str) -> bool:
        return bool(self._call("exists", key))

    def keys(self, pattern: str = "*") -> Set[str]:
        return {_to_str(key) for key in self._call("keys", pattern)}


class MemoryStore:
    """Thread-safe in-process store mirroring the Redis commands we use."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[bytes, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> Optional[Tuple[bytes, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def set(self, key: str, value: Union[bytes, str, int, float]) -> bool:
        with self._lock:
            self._data[key] = (_to_bytes(value), None)
        return True

    def setex(self, key: str, ttl_seconds: int, value: Union[bytes, str, int, float]) -> bool:
        if int(ttl_seconds) <= 0:
            raise ValueError("invalid expire time in 'setex' command")
        with self._lock:
            self._data[key] = (_to_bytes(value), self._clock() + int(ttl_seconds))
        return True

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._live(key) is not None:
                    del self._data[key]
                    removed += 1
        return removed

    def exists(self, *keys: str) -> int:
        with self._lock:
            return sum(1 for key in keys if self._live(key) is not None)

    def keys(self, pattern: str = "*") -> Set[str]:
        with self._lock:
            return {
                key for key in list(self._data)
                if self._live(key) is not None and fnmatch.fnmatchcase(key, pattern)
            }

    def ttl(self, key: str) -> int:
        """Remaining seconds; ``-1`` without expiry, ``-2`` when missing."""
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return -2
            if entry[1] is None:
                return -1
            return int(round(entry[1] - self._clock()))

    def flushdb(self) -> bool:
        with self._lock:
            self._data.clear()
        return True
