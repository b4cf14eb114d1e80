# storefront/storage/query_cache.py

"""In-memory TTL cache of normalized catalog pages."""

import logging
import time
from dataclasses import dataclass

from storefront.config.settings import Settings
from storefront.filters.predicate_engine import FilterPredicateEngine
from storefront.models.page import PageResult

logger = logging.getLogger("storefront.cache")


@dataclass
class CacheEntry:
    """A cached page for one canonical parameter set."""

    key: str
    params: dict[str, str]
    result: PageResult
    timestamp: float


class QueryCache:
    """Cache keyed by canonical filter params and page number.

    Keys come from :meth:`FilterPredicateEngine.cache_key`, so criteria
    that differ only in sentinel values or search whitespace share an
    entry.
    """

    def __init__(self, ttl: float | None = None) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl: float = (
            Settings.QUERY_CACHE_TTL if ttl is None else ttl
        )

    def get(
        self,
        params: dict[str, str],
        page: int = 1,
    ) -> PageResult | None:
        """Return a copy of the cached page, or ``None`` on miss."""
        now = time.time()
        self._evict_expired(now)

        key = FilterPredicateEngine.cache_key(params, page)
        entry = self._entries.get(key)
        if entry is None:
            return None

        logger.info("Cache hit for %s", key)
        return PageResult(
            items=list(entry.result.items),
            total_count=entry.result.total_count,
            has_more=entry.result.has_more,
        )

    def store(
        self,
        params: dict[str, str],
        page: int,
        result: PageResult,
    ) -> None:
        """Store a freshly fetched page."""
        key = FilterPredicateEngine.cache_key(params, page)
        self._entries[key] = CacheEntry(
            key=key,
            params=dict(params),
            result=PageResult(
                items=list(result.items),
                total_count=result.total_count,
                has_more=result.has_more,
            ),
            timestamp=time.time(),
        )
        logger.info(
            "Cached %d results for %s", len(result.items), key
        )

    def invalidate(self, params: dict[str, str]) -> int:
        """Drop every cached page of one query.

        Returns the number of entries that were removed.
        """
        stale = [
            k for k, e in self._entries.items() if e.params == params
        ]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> int:
        """Purge all cached entries.

        Returns the number of entries that were removed.
        """
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache manually purged (%d entries removed)", count)
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self, now: float) -> None:
        """Remove entries older than the TTL threshold."""
        before = len(self._entries)
        self._entries = {
            k: e
            for k, e in self._entries.items()
            if now - e.timestamp < self._ttl
        }
        evicted = before - len(self._entries)
        if evicted:
            logger.debug(
                "Evicted %d expired cache entries", evicted
            )
