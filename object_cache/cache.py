"""
Read-through cache in front of an expensive producer.

``Cache.fetch`` looks the call up in a replica, returns the decoded value on
a hit, and on a miss runs the producer and writes the result to the primary.
Store and codec problems never reach the caller:

- a ``SerializationFault`` (value cannot be encoded, stored bytes cannot be
  decoded) purges the key from the primary and returns a fresh, uncached
  producer result;
- a ``BackendFault`` falls back to the producer without touching the store.

Exceptions raised by the producer itself propagate unchanged.
"""

import dataclasses
import threading
from typing import Any, Callable, Optional, Set, TypeVar

from shared.errors import BackendFault, CacheException, FaultKind
from shared.logging import get_logger
from shared.metrics import CacheMetrics, get_metrics
from .codec import Codec, PickleCodec
from .config import TTL, CacheConfig, ttl_seconds
from .keys import CallSite, KeyBuilder, PrefixLike
from .store import StoreAdapter

T = TypeVar("T")

_DEFAULT: Any = object()


class Cache:
    """Read-through cache bound to one ``CacheConfig``."""

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        *,
        codec: Optional[Codec] = None,
        key_builder: Optional[KeyBuilder] = None,
        metrics: Optional[CacheMetrics] = None,
    ):
        self.config = config or CacheConfig()
        self.codec = codec or PickleCodec()
        self.key_builder = key_builder or KeyBuilder()
        self.metrics = metrics
        self.logger = get_logger("object_cache.cache")

    def fetch(
        self,
        producer: Callable[[], T],
        key: Any = None,
        *,
        ttl: TTL = _DEFAULT,
        key_prefix: PrefixLike = _DEFAULT,
        call_site: Optional[CallSite] = None,
        receiver: Any = None,
    ) -> T:
        """Return the cached value for this call site, or compute and cache it.

        The cache key is derived from where ``fetch`` is called plus the
        optional ``key`` discriminator. Leave ``key`` out only when the
        producer always returns the same thing at that call site:

            cache.fetch(lambda: settings_blob())        # fine
            cache.fetch(lambda: load_item(item_id))     # wrong: first item wins
            cache.fetch(lambda: load_item(item_id), item_id)

        ``ttl`` (seconds or ``timedelta``) defaults to the configured TTL;
        ``None`` or ``0`` stores without expiry. ``key_prefix`` is a literal
        string or a ``KeyPrefix`` strategy. ``receiver`` names the object
        whose class ``KeyPrefix.CLASS_NAME`` uses, overriding the ``self``
        found at the call site.
        """
        snapshot = self.config.snapshot()
        replica = snapshot.topology.replica()
        if replica is None:
            self._record("bypass")
            return producer()

        if ttl is _DEFAULT:
            ttl = snapshot.default_ttl
        if key_prefix is _DEFAULT:
            key_prefix = snapshot.default_key_prefix
        if call_site is None:
            call_site = CallSite.capture(stacklevel=2)
        if receiver is not None:
            call_site = dataclasses.replace(call_site, receiver=receiver)

        cache_key = self.key_builder.build(key, key_prefix, call_site)
        primary = snapshot.topology.primary()

        try:
            payload = replica.get(cache_key)
            if payload is not None:
                value = self.codec.decode(payload)
                self._record("hit")
                self.logger.debug("Cache hit", cache_key=cache_key, store=replica.name)
                return value
        except CacheException as fault:
            return self._recover(fault, cache_key, primary, producer)

        self._record("miss")
        self.logger.debug("Cache miss", cache_key=cache_key, store=replica.name)
        value = producer()

        try:
            self._write(primary, cache_key, value, ttl)
        except CacheException as fault:
            if fault.kind is FaultKind.SERIALIZATION:
                return self._recover(fault, cache_key, primary, producer)
            self._note_fault(fault, cache_key)

        return value

    def update(self, key: str, value: Any, ttl: TTL = _DEFAULT) -> bool:
        """Write ``value`` under ``key`` on the primary."""
        snapshot = self.config.snapshot()
        primary = snapshot.topology.primary()
        if primary is None:
            return False
        if ttl is _DEFAULT:
            ttl = snapshot.default_ttl

        try:
            self._write(primary, key, value, ttl)
        except CacheException as fault:
            self._note_fault(fault, key)
            return False
        return True

    def exists(self, key: str) -> bool:
        """Whether a replica holds ``key``; ``False`` when the store fails."""
        replica = self.config.snapshot().topology.replica()
        if replica is None:
            return False

        try:
            return replica.exists(key)
        except BackendFault as fault:
            self._note_fault(fault, key)
            return False

    def delete(self, key: str) -> bool:
        """Delete ``key`` from the primary if a replica reports it present."""
        if not self.exists(key):
            return False

        primary = self.config.snapshot().topology.primary()
        try:
            return primary.delete(key)
        except BackendFault as fault:
            self._note_fault(fault, key)
            return False

    def keys(self, pattern: str = "*") -> Set[str]:
        """Keys on the primary matching ``pattern`` (operator inspection)."""
        primary = self.config.snapshot().topology.primary()
        if primary is None:
            return set()

        try:
            return primary.keys(pattern)
        except BackendFault as fault:
            self._note_fault(fault, pattern)
            return set()

    def purge(self, prefix: str) -> int:
        """Delete every key in the ``prefix`` namespace; returns the count."""
        primary = self.config.snapshot().topology.primary()
        if primary is None:
            return 0

        removed = 0
        try:
            for key in primary.keys(f"{prefix}_*"):
                if primary.delete(key):
                    removed += 1
        except BackendFault as fault:
            self._note_fault(fault, prefix)

        self.logger.info("Purged cache namespace", prefix=prefix, count=removed)
        return removed

    def _write(self, primary: StoreAdapter, key: str, value: Any, ttl: TTL):
        payload = self.codec.encode(value)
        seconds = ttl_seconds(ttl)
        if seconds > 0:
            primary.setex(key, seconds, payload)
        else:
            primary.set(key, payload)

    def _recover(
        self,
        fault: CacheException,
        cache_key: str,
        primary: StoreAdapter,
        producer: Callable[[], T],
    ) -> T:
        self._note_fault(fault, cache_key)
        if fault.kind is FaultKind.SERIALIZATION:
            self._purge_key(primary, cache_key)
        return producer()

    def _purge_key(self, primary: StoreAdapter, cache_key: str):
        try:
            deleted = primary.delete(cache_key)
        except BackendFault as fault:
            self._note_fault(fault, cache_key)
            return

        if deleted:
            if self.metrics:
                self.metrics.record_purge()
            self.logger.warning("Purged unreadable cache entry", cache_key=cache_key)

    def _note_fault(self, fault: CacheException, cache_key: str):
        if self.metrics:
            self.metrics.record_fault(fault.kind.value)
        self.logger.warning(
            "Cache fault, falling back to producer",
            cache_key=cache_key,
            code=fault.code,
            error=fault.message,
            details=fault.details
        )

    def _record(self, result: str):
        if self.metrics:
            self.metrics.record_request(result)


_default_cache: Optional[Cache] = None
_default_lock = threading.Lock()


def get_cache() -> Cache:
    """Process-wide cache configured from ``OBJECT_CACHE_*`` settings."""
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = Cache(CacheConfig.from_settings(), metrics=get_metrics())
        return _default_cache


def configure_cache(
    backend: Any = _DEFAULT,
    *,
    default_ttl: TTL = _DEFAULT,
    default_key_prefix: PrefixLike = _DEFAULT,
) -> Cache:
    """Change the process-wide cache; affects calls issued afterwards."""
    cache = get_cache()
    if backend is not _DEFAULT:
        cache.config.backend = backend
    if default_ttl is not _DEFAULT:
        cache.config.default_ttl = default_ttl
    if default_key_prefix is not _DEFAULT:
        cache.config.default_key_prefix = default_key_prefix
    return cache
