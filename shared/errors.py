"""
Shared error handling for the object cache.

Two fault kinds are recoverable inside the cache and never reach callers of
``Cache.fetch``: ``SerializationFault`` (payload could not be encoded or
decoded) and ``BackendFault`` (the store failed). ``ConfigurationError`` is
raised only from configuration calls.
"""

from enum import Enum
from typing import Dict, Any, Optional


class FaultKind(Enum):
    """Classification of cache exceptions."""
    SERIALIZATION = "serialization"
    BACKEND = "backend"
    CONFIGURATION = "configuration"


class CacheException(Exception):
    """Base exception for the object cache."""

    kind: FaultKind = FaultKind.BACKEND

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a flat dictionary suitable for structured log fields."""
        return {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class SerializationFault(CacheException):
    """A value could not be encoded, or stored bytes could not be decoded."""

    kind = FaultKind.SERIALIZATION

    def __init__(self, message: str = "Serialization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERIALIZATION_FAULT", message, details)


class BackendFault(CacheException):
    """Any failure reported by a store (connectivity, protocol, timeout)."""

    kind = FaultKind.BACKEND

    def __init__(self, store: str, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        self.store = store
        super().__init__("BACKEND_FAULT", f"{store}: {message}", details)


class ConfigurationError(CacheException):
    """Invalid cache configuration."""

    kind = FaultKind.CONFIGURATION

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
