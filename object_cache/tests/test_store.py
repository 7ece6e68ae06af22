"""
Unit tests for store adapters.
"""

import pytest
from unittest.mock import MagicMock

import redis

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from object_cache.store import MemoryStore, StoreAdapter, redis_store
from shared.errors import BackendFault, FaultKind


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestMemoryStore:
    """Test cases for MemoryStore."""

    @pytest.fixture
    def clock(self):
        """Create a controllable clock."""
        return FakeClock()

    @pytest.fixture
    def store(self, clock):
        """Create MemoryStore instance."""
        return MemoryStore(clock=clock)

    def test_get_set(self, store):
        """Test values are stored as bytes."""
        store.set("greeting", "hello")
        assert store.get("greeting") == b"hello"
        assert store.get("missing") is None

    def test_setex_expires(self, store, clock):
        """Test entries disappear once their TTL passes."""
        store.setex("greeting", 60, b"hello")
        assert store.ttl("greeting") == 60

        clock.now += 59
        assert store.get("greeting") == b"hello"

        clock.now += 1
        assert store.get("greeting") is None
        assert store.ttl("greeting") == -2

    def test_setex_rejects_non_positive_ttl(self, store):
        """Test setex mirrors Redis on invalid expire times."""
        with pytest.raises(ValueError):
            store.setex("greeting", 0, b"hello")

    def test_set_clears_expiry(self, store):
        """Test a plain set persists indefinitely."""
        store.setex("greeting", 60, b"hello")
        store.set("greeting", b"hello")
        assert store.ttl("greeting") == -1

    def test_delete_and_exists(self, store):
        """Test delete and exists report counts."""
        store.set("a", b"1")
        store.set("b", b"2")

        assert store.exists("a", "b", "c") == 2
        assert store.delete("a", "c") == 1
        assert store.exists("a") == 0

    def test_keys_pattern(self, store, clock):
        """Test glob patterns and expired keys."""
        store.set("reports_abc123", b"1")
        store.set("reports_def456", b"2")
        store.setex("users_aaa111", 5, b"3")

        assert store.keys("reports_*") == {"reports_abc123", "reports_def456"}
        assert len(store.keys()) == 3

        clock.now += 10
        assert store.keys("users_*") == set()

    def test_flushdb(self, store):
        """Test flushdb empties the store."""
        store.set("a", b"1")
        store.flushdb()
        assert store.keys() == set()


class TestStoreAdapter:
    """Test cases for StoreAdapter."""

    def test_normalizes_results(self):
        """Test delete/exists return bools and keys return strings."""
        client = MagicMock()
        client.delete.return_value = 1
        client.exists.return_value = 0
        client.keys.return_value = [b"reports_abc123", "users_def456"]
        adapter = StoreAdapter(client, name="primary")

        assert adapter.delete("reports_abc123") is True
        assert adapter.exists("reports_abc123") is False
        assert adapter.keys("*") == {"reports_abc123", "users_def456"}

    def test_passes_commands_through(self):
        """Test writes reach the client unchanged."""
        client = MagicMock()
        adapter = StoreAdapter(client)

        adapter.set("k", b"v")
        adapter.setex("k", 30, b"v")

        client.set.assert_called_once_with("k", b"v")
        client.setex.assert_called_once_with("k", 30, b"v")

    @pytest.mark.parametrize("error", [
        redis.exceptions.ConnectionError("connection refused"),
        redis.exceptions.TimeoutError("timed out"),
        OSError("network unreachable"),
    ])
    def test_errors_become_backend_faults(self, error):
        """Test client errors are classified as backend faults."""
        client = MagicMock()
        client.get.side_effect = error
        adapter = StoreAdapter(client, name="replica-0")

        with pytest.raises(BackendFault) as exc_info:
            adapter.get("k")

        fault = exc_info.value
        assert fault.kind is FaultKind.BACKEND
        assert fault.store == "replica-0"
        assert fault.details["operation"] == "get"
        assert fault.__cause__ is error

    def test_default_name(self):
        """Test the adapter defaults to the client's type name."""
        assert StoreAdapter(MemoryStore()).name == "MemoryStore"


def test_redis_store_from_url():
    """Test Redis clients are built lazily from a URL."""
    client = redis_store("redis://localhost:6379/3", socket_timeout=1.5)

    assert isinstance(client, redis.Redis)
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["db"] == 3
    assert kwargs["socket_timeout"] == 1.5
