#!/usr/bin/env python3
"""
Inspect or purge object cache entries in Redis.

Cache keys are short digests, optionally namespaced as ``<prefix>_<digest>``.
This helper lists keys by pattern and deletes whole prefix namespaces, for
example after moving cached call sites around in the source.
"""

import argparse
import json
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from object_cache import Cache, CacheConfig, redis_store  # noqa: E402
from shared.config import get_settings  # noqa: E402
from shared.logging import configure_logging  # noqa: E402


def _parse_args(argv=None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Inspect or purge object cache entries.")
    parser.add_argument("--redis-url", default=settings.redis_url or "redis://localhost:6379/0", help="Primary Redis connection URL")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")
    commands = parser.add_subparsers(dest="command", required=True)

    keys_parser = commands.add_parser("keys", help="List keys matching a pattern")
    keys_parser.add_argument("pattern", nargs="?", default="*", help="Glob pattern (default: *)")

    purge_parser = commands.add_parser("purge", help="Delete every key under a prefix")
    purge_parser.add_argument("prefix", help="Key prefix, without the trailing underscore")
    return parser.parse_args(argv)


def run(args: argparse.Namespace, cache: Cache) -> dict:
    """Execute the selected command and return a JSON-ready summary."""
    if args.command == "keys":
        keys = sorted(cache.keys(args.pattern))
        return {"pattern": args.pattern, "count": len(keys), "keys": keys}
    return {"prefix": args.prefix, "deleted": cache.purge(args.prefix)}


def main(argv=None) -> int:
    args = _parse_args(argv)
    configure_logging("object_cache", args.log_level)
    try:
        cache = Cache(CacheConfig(redis_store(args.redis_url), default_ttl=None))
        summary = run(args, cache)
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[object-cache] failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
