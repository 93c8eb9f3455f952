"""
Response Cache Module for Ghost
Cache-aside store for platform responses that stay valid for a long,
externally determined period (manifest contents, daily vendor rotations)
"""

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

import gevent

from ghost.utils import is_empty_result

logger = logging.getLogger("main")

# Sentinel so that a per-call ttl of None means "never expire"
_DEFAULT = object()
_MISSING = object()


class ResponseCache:
    """
    In-memory keyed cache with an optional TTL.

    With the default ttl of None entries never expire and are only dropped by
    invalidate(), invalidate_prefix() or clear().
    """

    def __init__(self, ttl: Optional[float] = None, hit_delay: float = 0.01, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.hit_delay = hit_delay
        self._clock = clock
        # Key -> (value, expires_at or None)
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "invalidations": 0,
        }

    def _expires_at(self, ttl):
        if ttl is _DEFAULT:
            ttl = self.ttl
        return self._clock() + ttl if ttl else None

    def _lookup(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return _MISSING

            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                self._stats["misses"] += 1
                logger.debug(f"Cache entry {key} expired")
                return _MISSING

            self._stats["hits"] += 1
            return copy.deepcopy(value)

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: str, value: Any, ttl: Any = _DEFAULT):
        entry = (copy.deepcopy(value), self._expires_at(ttl))
        with self._lock:
            self._entries[key] = entry
            self._stats["sets"] += 1
        logger.debug(f"Cached response for {key}")

    def get_or_fetch(self, key: str, fetch_fn: Callable[[], Any], ttl: Any = _DEFAULT, cache_empty: bool = True) -> Any:
        """
        Return the cached value for key, or call fetch_fn and cache what it returns.

        A hit still yields to the event loop before returning so hits and misses
        both complete asynchronously. Failures from fetch_fn propagate and are
        never cached.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            gevent.sleep(self.hit_delay)
            return value

        logger.debug(f"Cache miss for {key}, fetching")
        value = fetch_fn()

        if cache_empty or not is_empty_result(value):
            self.set(key, value, ttl=ttl)
        return value

    def invalidate(self, key: str) -> bool:
        with self._lock:
            removed = self._entries.pop(key, _MISSING) is not _MISSING
            if removed:
                self._stats["invalidations"] += 1
        if removed:
            logger.info(f"Invalidated cached response for {key}")
        return removed

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [k for k in self._entries if k.startswith(prefix)]
            for k in keys:
                del self._entries[k]
            self._stats["invalidations"] += len(keys)
        if keys:
            logger.info(f"Invalidated {len(keys)} cached responses under {prefix}")
        return len(keys)

    def clear(self):
        with self._lock:
            self._entries.clear()
        logger.info("Response cache cleared")

    def stats(self) -> Dict:
        """Get statistics about the response cache"""
        with self._lock:
            stats = dict(self._stats)
            stats["size"] = len(self._entries)
        total = stats["hits"] + stats["misses"]
        stats["hit_rate"] = round(stats["hits"] / total * 100, 2) if total else 0
        return stats

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            expires_at = entry[1]
            return expires_at is None or self._clock() < expires_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
