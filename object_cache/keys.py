"""
Cache key derivation.

A key is ``<prefix>_<digest>`` (or just ``<digest>``), where the digest is
the first six hex characters of a SHA-1 over the caller's discriminator and
the call site's location. Six characters is only 24 bits: distinct call
sites can collide once a store holds a few thousand entries.
"""

import hashlib
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

DIGEST_LENGTH = 6


class KeyPrefix(Enum):
    """Prefixes resolved from the call site at fetch time."""
    METHOD_NAME = "method_name"
    CLASS_NAME = "class_name"


PrefixLike = Union[None, str, KeyPrefix]


@dataclass(frozen=True)
class CallSite:
    """Where a cache call happens in the caller's source."""

    path: str
    lineno: int
    function: Optional[str] = None
    receiver: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def capture(cls, stacklevel: int = 1) -> "CallSite":
        """Capture the call site ``stacklevel`` frames above the caller.

        ``stacklevel=1`` is the function calling ``capture``; ``2`` is its
        caller, and so on.
        """
        frame = sys._getframe(stacklevel)
        try:
            local_vars = frame.f_locals
            receiver = local_vars.get("self", local_vars.get("cls"))
            return cls(
                path=frame.f_code.co_filename,
                lineno=frame.f_lineno,
                function=frame.f_code.co_name,
                receiver=receiver
            )
        finally:
            del frame

    @property
    def fingerprint(self) -> str:
        return f"{self.path}{self.lineno}"


def _discriminator_text(key: Any) -> str:
    if key is None:
        return ""
    if isinstance(key, (list, tuple)):
        return "".join(_discriminator_text(part) for part in key)
    return str(key)


class KeyBuilder:
    """Derive cache keys from a discriminator, a prefix and a call site."""

    def __init__(self, digest_length: int = DIGEST_LENGTH):
        self.digest_length = digest_length

    def digest(self, key: Any, call_site: CallSite) -> str:
        material = _discriminator_text(key) + call_site.fingerprint
        return hashlib.sha1(material.encode("utf-8")).hexdigest()[:self.digest_length]

    def resolve_prefix(self, key_prefix: PrefixLike, call_site: CallSite) -> Optional[str]:
        """Resolve ``key_prefix`` to a literal prefix, or ``None``."""
        if key_prefix is KeyPrefix.METHOD_NAME:
            function = call_site.function
            # "<module>", "<lambda>" and friends are not method names
            return function if function and function.isidentifier() else None

        if key_prefix is KeyPrefix.CLASS_NAME:
            receiver = call_site.receiver
            if receiver is None:
                return None
            return receiver.__name__ if isinstance(receiver, type) else type(receiver).__name__

        return key_prefix or None

    def build(self, key: Any, key_prefix: PrefixLike, call_site: CallSite) -> str:
        """Build the cache key for ``key`` at ``call_site``."""
        body = self.digest(key, call_site)
        prefix = self.resolve_prefix(key_prefix, call_site)
        return f"{prefix}_{body}" if prefix else body


def parse_prefix(value: PrefixLike) -> PrefixLike:
    """Map ``"method_name"`` / ``"class_name"`` to their ``KeyPrefix``."""
    if isinstance(value, str):
        try:
            return KeyPrefix(value)
        except ValueError:
            return value
    return value
