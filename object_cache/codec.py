"""
Codecs turning cached values into store payloads and back.

Every failure is reported as ``SerializationFault`` so the cache can purge
the entry and fall back to the producer.
"""

import json
import pickle
from typing import Any, Protocol

from shared.errors import SerializationFault


class Codec(Protocol):
    """Opaque encode/decode capability."""

    def encode(self, value: Any) -> bytes:
        ...

    def decode(self, payload: bytes) -> Any:
        ...


class PickleCodec:
    """Pickle codec for arbitrary Python objects.

    Only decode payloads written by a trusted process: unpickling foreign
    bytes can execute code.
    """

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def encode(self, value: Any) -> bytes:
        try:
            return pickle.dumps(value, protocol=self.protocol)
        except Exception as e:
            # pickle reports unpicklable values with more than PicklingError.
            raise SerializationFault(
                "Value cannot be pickled",
                {"type": type(value).__name__, "error": str(e)}
            ) from e

    def decode(self, payload: bytes) -> Any:
        try:
            return pickle.loads(payload)
        except Exception as e:
            # Truncated or foreign payloads raise a wide range of errors.
            raise SerializationFault(
                "Payload cannot be unpickled",
                {"size": len(payload), "error": str(e)}
            ) from e


class JsonCodec:
    """UTF-8 JSON codec for JSON-representable values."""

    def encode(self, value: Any) -> bytes:
        try:
            return json.dumps(value, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            raise SerializationFault(
                "Value is not JSON serializable",
                {"type": type(value).__name__, "error": str(e)}
            ) from e

    def decode(self, payload: bytes) -> Any:
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            return json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise SerializationFault(
                "Payload is not valid JSON",
                {"size": len(payload), "error": str(e)}
            ) from e
