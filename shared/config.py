"""
Shared configuration management for the object cache.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TTL = 7 * 24 * 60 * 60  # 1 week


class CacheSettings(BaseSettings):
    """Environment-backed settings (``OBJECT_CACHE_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="OBJECT_CACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Logging
    log_level: str = Field(default="warning")

    # Backend
    redis_url: Optional[str] = Field(default=None)
    replica_urls: List[str] = Field(default_factory=list)
    socket_timeout: float = Field(default=5.0)

    # Defaults applied to every fetch
    default_ttl: int = Field(default=DEFAULT_TTL)
    default_key_prefix: Optional[str] = Field(default=None)

    @field_validator("default_ttl")
    @classmethod
    def _ttl_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("default_ttl must be >= 0")
        return value


def get_settings() -> CacheSettings:
    """Read settings from the environment."""
    return CacheSettings()
