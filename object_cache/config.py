"""
Runtime configuration for a ``Cache``.

Settings may change at any time; each fetch reads one ``ConfigSnapshot``
when it starts, so a change only affects calls issued after it.
"""

import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Union

from shared.config import DEFAULT_TTL, CacheSettings
from shared.errors import ConfigurationError
from shared.logging import get_logger
from .keys import PrefixLike, parse_prefix
from .store import redis_store
from .topology import BackendTopology

TTL = Union[None, int, timedelta]


def ttl_seconds(ttl: TTL) -> int:
    """Normalize a TTL to whole seconds; ``0`` means no expiry."""
    if ttl is None:
        return 0
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    return int(ttl)


@dataclass(frozen=True)
class ConfigSnapshot:
    topology: BackendTopology
    default_ttl: TTL
    default_key_prefix: PrefixLike


class CacheConfig:
    """Backend topology plus the default TTL and key prefix."""

    def __init__(
        self,
        backend: Any = None,
        *,
        default_ttl: TTL = DEFAULT_TTL,
        default_key_prefix: PrefixLike = None,
    ):
        self.logger = get_logger("object_cache.config")
        self._lock = threading.Lock()
        self._backend = backend
        self._topology = BackendTopology(backend)
        self._default_ttl = self._check_ttl(default_ttl)
        self._default_key_prefix = default_key_prefix

    @classmethod
    def from_settings(cls, settings: Optional[CacheSettings] = None) -> "CacheConfig":
        """Build a configuration with Redis clients from ``CacheSettings``."""
        settings = settings or CacheSettings()

        backend = None
        if settings.redis_url:
            primary = redis_store(settings.redis_url, settings.socket_timeout)
            if settings.replica_urls:
                backend = {
                    "primary": primary,
                    "replicas": [
                        redis_store(url, settings.socket_timeout)
                        for url in settings.replica_urls
                    ]
                }
            else:
                backend = primary

        return cls(
            backend,
            default_ttl=settings.default_ttl,
            default_key_prefix=parse_prefix(settings.default_key_prefix)
        )

    @staticmethod
    def _check_ttl(ttl: TTL) -> TTL:
        if ttl is not None and ttl_seconds(ttl) < 0:
            raise ConfigurationError("default_ttl must not be negative", {"ttl": str(ttl)})
        return ttl

    @property
    def backend(self) -> Any:
        return self._backend

    @backend.setter
    def backend(self, backend: Any):
        topology = BackendTopology(backend)
        with self._lock:
            self._backend = backend
            self._topology = topology
        self.logger.info(
            "Cache backend configured",
            enabled=topology.enabled,
            replicas=len(topology.replicas())
        )

    @property
    def topology(self) -> BackendTopology:
        return self._topology

    @property
    def default_ttl(self) -> TTL:
        return self._default_ttl

    @default_ttl.setter
    def default_ttl(self, ttl: TTL):
        ttl = self._check_ttl(ttl)
        with self._lock:
            self._default_ttl = ttl
        self.logger.info("Cache default TTL configured", ttl=ttl_seconds(ttl))

    @property
    def default_key_prefix(self) -> PrefixLike:
        return self._default_key_prefix

    @default_key_prefix.setter
    def default_key_prefix(self, key_prefix: PrefixLike):
        with self._lock:
            self._default_key_prefix = key_prefix
        self.logger.info("Cache default key prefix configured", key_prefix=str(key_prefix))

    def snapshot(self) -> ConfigSnapshot:
        with self._lock:
            return ConfigSnapshot(
                topology=self._topology,
                default_ttl=self._default_ttl,
                default_key_prefix=self._default_key_prefix
            )
