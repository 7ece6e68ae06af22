"""
Shared utilities for the object cache.

This package aggregates the ambient building blocks used by ``object_cache``:

- config: Environment settings via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus counters for cache outcomes and faults
- errors: Cache fault taxonomy

Do not import from ``object_cache`` into shared/.
"""
