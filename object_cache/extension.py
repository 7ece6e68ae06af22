"""
Shorthand for caching through the process-wide cache.

    from object_cache.extension import cache

    report = cache(lambda: build_report(day), day, ttl=3600)
    banner = cache(value=render_banner())
"""

from typing import Any, Callable, Optional

from .cache import Cache, get_cache
from .keys import CallSite

_UNSET: Any = object()


def cache(
    producer: Optional[Callable[[], Any]] = None,
    key: Any = None,
    *,
    value: Any = _UNSET,
    using: Optional[Cache] = None,
    **options: Any,
) -> Any:
    """Pass-through to ``Cache.fetch`` keyed on the caller's call site.

    Without a producer, ``value`` itself is cached.
    """
    if producer is None:
        if value is _UNSET:
            raise TypeError("cache() needs a producer or a value")
        producer = lambda: value  # noqa: E731

    options.setdefault("call_site", CallSite.capture(stacklevel=2))
    return (using or get_cache()).fetch(producer, key, **options)
