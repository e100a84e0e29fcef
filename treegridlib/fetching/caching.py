"""
Caching wrapper for fetch_children callables.

Loaded children already stay in the tree snapshot, so a single grid
never fetches the same node twice. The cache pays off when several grids
(or a grid that is rebuilt) read from the same slow data source.
"""

import asyncio
from typing import Any, Dict, List, Optional

from cachetools import TTLCache
from loguru import logger

from ..core import FetchChildren, KeyType


class CachingFetcher:
    """
    TTL cache in front of a fetch_children callable.

    Results are cached by row key. Concurrent calls for the same key
    share one in-flight fetch through a Future. Failures and ``None``
    results are never cached.

    Example:
        fetch = CachingFetcher(source.fetch_children, max_size=5000)
        grid = TreeGrid(DataModel(rows=rows, fetch_children=fetch))
    """

    def __init__(
        self,
        fetch: FetchChildren,
        max_size: int = 10000,
        ttl: float = 300.0  # 5 minutes
    ):
        """
        Initialize caching fetcher.

        Args:
            fetch: The underlying fetch_children callable
            max_size: Maximum number of cached keys
            ttl: Time-to-live for cache entries in seconds
        """
        self._fetch = fetch
        self._cache = TTLCache(maxsize=max_size, ttl=ttl)
        self._fetches_in_progress: Dict[KeyType, asyncio.Future] = {}

        # Statistics
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0

    async def __call__(self, row: Any) -> Optional[List[Any]]:
        """
        Fetch children of ``row`` with caching and in-flight sharing.

        1. If another task is already fetching this key, wait for it
        2. Check the cache
        3. Fetch, cache a defined result, share it with waiters
        """
        key = row.key

        in_progress = self._fetches_in_progress.get(key)
        if in_progress is not None:
            self.concurrent_waits += 1
            return await asyncio.shield(in_progress)

        if key in self._cache:
            self.cache_hits += 1
            return list(self._cache[key])

        self.cache_misses += 1
        future = asyncio.get_running_loop().create_future()
        self._fetches_in_progress[key] = future

        try:
            children = await self._fetch(row)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Waiters re-raise it; nobody else needs to retrieve it
            future.exception()
            raise
        else:
            if children is not None:
                self._cache[key] = list(children)
            future.set_result(children)
            return children
        finally:
            del self._fetches_in_progress[key]

    def invalidate(self, key: Optional[KeyType] = None) -> int:
        """
        Drop cached results.

        Args:
            key: Key to drop (None = everything)

        Returns:
            Number of entries removed
        """
        if key is None:
            count = len(self._cache)
            self._cache.clear()
            logger.debug("Fetch cache cleared ({} entries)", count)
            return count
        if key in self._cache:
            del self._cache[key]
            return 1
        return 0

    def get_stats(self) -> dict:
        return {
            'size': len(self._cache),
            'max_size': self._cache.maxsize,
            'ttl': self._cache.ttl,
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'concurrent_waits': self.concurrent_waits,
        }
