"""
In-process TTL cache with tag-based invalidation.

Reference data (questions, band tables) and student result views are read
far more often than they change. They are cached here and dropped by tag
when the underlying rows are written:

- "test:<test_id>": questions and band table of one test
- "student-results:<student_id>": result views for one student

Usage:
    @cached(
        key_prefix="band_ranges",
        key_args=lambda db, test_id: (test_id,),
        tags=lambda db, test_id: [f"test:{test_id}"],
    )
    async def get_band_score_ranges(db, test_id): ...

    invalidate_tags(f"test:{test_id}")
"""

import functools
import hashlib
import inspect
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple

from ielts_mock.core.config import settings

logger = logging.getLogger(__name__)


class SimpleCache:
    """Thread-safe dict-backed cache with per-entry expiry and tags."""

    def __init__(self, default_ttl: int = 300) -> None:
        self.default_ttl = default_ttl
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self._tags: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if expiry > time.time():
                return value
            self._remove(key)
            return None

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value for ttl seconds (default_ttl when omitted)."""
        expiry = time.time() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._cache[key] = (value, expiry)
            for tag in tags:
                self._tags.setdefault(tag, set()).add(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._remove(key)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._tags.clear()

    def cleanup_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = time.time()
        with self._lock:
            expired = [key for key, (_, expiry) in self._cache.items() if expiry <= now]
            for key in expired:
                self._remove(key)
        return len(expired)

    def delete_by_prefix(self, prefix: str) -> int:
        with self._lock:
            matching = [key for key in self._cache if key.startswith(prefix)]
            for key in matching:
                self._remove(key)
        return len(matching)

    def invalidate_tag(self, tag: str) -> int:
        """Drop every entry stored under tag and return how many were removed."""
        with self._lock:
            keys = self._tags.pop(tag, set())
            removed = 0
            for key in keys:
                if key in self._cache:
                    self._remove(key)
                    removed += 1
        return removed

    def _remove(self, key: str) -> None:
        self._cache.pop(key, None)
        for tag, keys in list(self._tags.items()):
            keys.discard(key)
            if not keys:
                del self._tags[tag]


_cache = SimpleCache(default_ttl=settings.CACHE_DEFAULT_TTL_SECONDS)


def get_cache() -> SimpleCache:
    """Return the process-wide cache."""
    return _cache


def cache_key(*args: Any, **kwargs: Any) -> str:
    """Deterministic key for a set of call arguments (MD5 hex digest)."""
    raw = repr(args) + repr(sorted(kwargs.items()))
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


def invalidate_tags(*tags: str) -> int:
    """Drop every cached entry carrying any of the given tags."""
    removed = sum(_cache.invalidate_tag(tag) for tag in tags)
    if removed:
        logger.debug(f"Invalidated {removed} cache entries for tags {list(tags)}")
    return removed


def cached(
    ttl: Optional[int] = None,
    key_prefix: str = "",
    key_args: Optional[Callable[..., Tuple[Any, ...]]] = None,
    tags: Optional[Callable[..., Iterable[str]]] = None,
) -> Callable:
    """
    Cache a function's return value in the process-wide cache.

    Works on both plain and async functions. None results are not cached.

    Args:
        ttl: Entry lifetime in seconds; the cache default when omitted
        key_prefix: Namespace for this function's keys (defaults to its name)
        key_args: Maps the call arguments to the values that identify the
            result. Use it to leave out unhashable or per-request arguments
            such as a database session.
        tags: Maps the call arguments to invalidation tags

    The wrapped function gains a cache_clear() method that drops only its
    own entries.
    """

    def decorator(func: Callable) -> Callable:
        prefix = f"{key_prefix or func.__qualname__}:"

        def _key(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> str:
            if key_args is not None:
                return prefix + cache_key(*key_args(*args, **kwargs))
            return prefix + cache_key(*args, **kwargs)

        def _store(args: Tuple[Any, ...], kwargs: Dict[str, Any], key: str, value: Any) -> None:
            if value is None:
                return
            entry_tags = list(tags(*args, **kwargs)) if tags is not None else []
            _cache.set(key, value, ttl=ttl, tags=entry_tags)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                key = _key(args, kwargs)
                hit = _cache.get(key)
                if hit is not None:
                    return hit
                value = await func(*args, **kwargs)
                _store(args, kwargs, key, value)
                return value

            async_wrapper.cache_clear = lambda: _cache.delete_by_prefix(prefix)  # type: ignore[attr-defined]
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = _key(args, kwargs)
            hit = _cache.get(key)
            if hit is not None:
                return hit
            value = func(*args, **kwargs)
            _store(args, kwargs, key, value)
            return value

        wrapper.cache_clear = lambda: _cache.delete_by_prefix(prefix)  # type: ignore[attr-defined]
        return wrapper

    return decorator
