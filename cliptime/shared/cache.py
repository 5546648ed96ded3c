"""In-process caches for cliptime.

Uses cachetools.TTLCache for zero-infrastructure caching. Nothing here is
shared across processes.

Two helpers sit on top of :class:`AsyncTTLCache`:

* :func:`cached` memoises async store reads (blacklist, Discord mapping) and
  falls back to stale values when the database is unreachable.
* :class:`ReadThrough` hydrates persisted rows that are missing a value from
  an external provider, writes the result back and remembers it, so a given
  key costs at most one provider call per process.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

# Sentinel object to distinguish "not in cache" from cached None values
_MISSING = object()

F = TypeVar("F", bound=Callable[..., Any])
V = TypeVar("V")


class AsyncTTLCache:
    """Async-aware TTL cache with a stale fallback store.

    Two tiers:
      1. ``_cache`` (TTLCache): fresh data, governed by *ttl*.
      2. ``_stale`` (OrderedDict, LRU, bounded by *maxsize*): last-known-good
         values that survive TTL expiry.  Used **only** when the upstream source
         (DB) is unreachable.
    """

    def __init__(self, maxsize: int = 128, ttl: float = 60.0):
        self._maxsize = maxsize
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._stale: OrderedDict[str, Any] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    # --- lock management (bounded) ---

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
            # Prune locks that no longer have a corresponding entry
            if len(self._locks) > self._maxsize * 2:
                stale_keys = set(self._stale)
                for k in list(self._locks):
                    if k not in stale_keys and k not in self._cache and not self._locks[k].locked():
                        del self._locks[k]
        return self._locks[key]

    # --- primary (fresh) operations ---

    def get(self, key: str) -> Any:
        """Return fresh value or ``_MISSING``."""
        return self._cache.get(key, _MISSING)

    def set(self, key: str, value: Any) -> None:
        """Write to both fresh cache and stale store."""
        self._cache[key] = value
        self._stale[key] = value
        self._stale.move_to_end(key)
        while len(self._stale) > self._maxsize:
            self._stale.popitem(last=False)

    def invalidate(self, key: str) -> None:
        """Remove from fresh cache; stale store keeps the value."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear fresh cache; stale store is preserved."""
        self._cache.clear()

    # --- stale fallback ---

    def get_stale(self, key: str) -> Any:
        """Return last-known-good value or ``_MISSING``."""
        value = self._stale.get(key, _MISSING)
        if value is not _MISSING:
            self._stale.move_to_end(key)
        return value

    @property
    def size(self) -> int:
        return len(self._cache)

    @property
    def stale_size(self) -> int:
        return len(self._stale)


def cached(cache: AsyncTTLCache, key_func: Callable[..., str]):
    """Decorator for caching async store reads with a stale fallback.

    Parameters
    ----------
    cache : AsyncTTLCache
        The cache instance to use.
    key_func : callable
        Receives the same ``(*args, **kwargs)`` as the decorated function
        and returns the cache key string.

    Behaviour on DB failure
    -----------------------
    The read is attempted once. On failure the **stale** store is checked;
    if a stale value exists it is returned with a warning log, otherwise the
    original exception is re-raised.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache_key = key_func(*args, **kwargs)

            result = cache.get(cache_key)
            if result is not _MISSING:
                return result

            # Double-checked locking so concurrent misses share one query
            async with cache._get_lock(cache_key):
                result = cache.get(cache_key)
                if result is not _MISSING:
                    return result

                try:
                    result = await func(*args, **kwargs)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    stale = cache.get_stale(cache_key)
                    if stale is _MISSING:
                        raise
                    logger.warning(
                        "Returning stale data for %s (%s)",
                        cache_key,
                        type(exc).__name__,
                    )
                    return stale

                cache.set(cache_key, result)
                return result

        wrapper.cache = cache  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator


class ReadThrough(Generic[V]):
    """Read-through hydration of persisted rows.

    A row read from the store may be missing a value that only an external
    provider knows. :meth:`resolve` asks *fetch* for the completed row,
    hands it to *persist* and remembers it under *key*.

    Policy:
      * At most one *fetch* per key per process. Concurrent resolvers of the
        same key wait on a per-key lock and reuse the remembered result.
      * Processes do not coordinate. Two of them may both fetch and write
        the same key; the write is idempotent so the second one is harmless.
      * A *fetch* that returns ``None`` or raises is not remembered. The row
        comes back unchanged and the next call tries again, with no backoff.
    """

    def __init__(
        self,
        *,
        is_complete: Callable[[V], bool],
        fetch: Callable[[V], Awaitable[V | None]],
        persist: Callable[[V], Awaitable[None]],
        maxsize: int = 256,
        ttl: float = 3600.0,
    ):
        self._is_complete = is_complete
        self._fetch = fetch
        self._persist = persist
        self._resolved = AsyncTTLCache(maxsize=maxsize, ttl=ttl)

    async def resolve(self, key: str, row: V) -> V:
        """Return *row* completed, hydrating it through the provider if needed."""
        if self._is_complete(row):
            return row

        remembered = self._resolved.get(key)
        if remembered is not _MISSING:
            return remembered

        async with self._resolved._get_lock(key):
            remembered = self._resolved.get(key)
            if remembered is not _MISSING:
                return remembered

            try:
                hydrated = await self._fetch(row)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(f"Hydration fetch failed for {key}: {type(exc).__name__}: {exc}")
                return row

            if hydrated is None or not self._is_complete(hydrated):
                logger.info(f"Hydration for {key} found nothing yet, will retry on next read")
                return row

            try:
                await self._persist(hydrated)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(f"Persisting hydrated {key} failed: {type(exc).__name__}: {exc}")
                return hydrated

            self._resolved.set(key, hydrated)
            return hydrated

    def forget(self, key: str) -> None:
        self._resolved.invalidate(key)
