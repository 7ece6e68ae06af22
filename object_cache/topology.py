"""
Primary/replica resolution for cache backends.

A backend is either ``None`` (caching disabled), a single store (used for
reads and writes), or a mapping ``{"primary": store, "replicas": stores}``.
Writes and deletes go to the primary; each read goes to a replica chosen
uniformly at random. Without replicas the primary serves reads too.
"""

import random
from typing import Any, Iterable, List, Mapping, Optional

from shared.errors import ConfigurationError
from .store import StoreAdapter


def _adapt(store: Any, name: str) -> StoreAdapter:
    if isinstance(store, StoreAdapter):
        return store
    return StoreAdapter(store, name=name)


def _replica_list(replicas: Any) -> List[Any]:
    """Normalize ``None``, one store or any iterable of stores to a list."""
    if replicas is None:
        return []
    # stores expose get(); lists, sets and generators do not
    if hasattr(replicas, "get") or not isinstance(replicas, Iterable):
        return [replicas]
    return list(replicas)


class BackendTopology:
    """Resolved view of a configured backend."""

    def __init__(self, backend: Any = None, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._primary: Optional[StoreAdapter] = None
        self._replicas: List[StoreAdapter] = []

        if backend is None:
            return

        if isinstance(backend, Mapping):
            unknown = set(backend) - {"primary", "replicas"}
            if unknown:
                raise ConfigurationError(
                    "Unknown backend keys",
                    {"keys": sorted(str(key) for key in unknown)}
                )
            if backend.get("primary") is None:
                raise ConfigurationError("Backend mapping requires a primary store")

            self._primary = _adapt(backend["primary"], "primary")
            self._replicas = [
                _adapt(replica, f"replica-{index}")
                for index, replica in enumerate(_replica_list(backend.get("replicas")))
            ]
        else:
            self._primary = _adapt(backend, "primary")

        if not self._replicas:
            self._replicas = [self._primary]

    @property
    def enabled(self) -> bool:
        return self._primary is not None

    def primary(self) -> Optional[StoreAdapter]:
        """Store receiving writes and deletes."""
        return self._primary

    def replicas(self) -> List[StoreAdapter]:
        if self._primary is None:
            return []
        return list(self._replicas)

    def replica(self) -> Optional[StoreAdapter]:
        """A read store, picked at random per call."""
        if self._primary is None:
            return None
        return self._rng.choice(self._replicas)
