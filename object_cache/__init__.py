"""
Read-through object cache over Redis with primary/replica routing.

Keys are derived from the call site of each fetch, so the common case needs
no explicit key management. The cache is an optimization only: store and
serialization problems fall back to calling the producer.
"""

from .cache import Cache, configure_cache, get_cache
from .codec import Codec, JsonCodec, PickleCodec
from .config import CacheConfig, ConfigSnapshot
from .keys import CallSite, KeyBuilder, KeyPrefix
from .store import MemoryStore, StoreAdapter, redis_store
from .topology import BackendTopology

__all__ = [
    "BackendTopology",
    "Cache",
    "CacheConfig",
    "CallSite",
    "Codec",
    "ConfigSnapshot",
    "JsonCodec",
    "KeyBuilder",
    "KeyPrefix",
    "MemoryStore",
    "PickleCodec",
    "StoreAdapter",
    "configure_cache",
    "get_cache",
    "redis_store",
]
