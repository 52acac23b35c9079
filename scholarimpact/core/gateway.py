"""
cache-aside gateway between callers and the upstream api.

read path: fresh cache row for (type, query) -> return it verbatim.
miss: one upstream call, append a new row, return the fresh data.
nothing is cached when upstream fails; nothing is ever retried here.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .db import CacheStore
from .models import CacheEntry
from ..providers.base import UpstreamProvider

logger = logging.getLogger("scholarimpact.gateway")

DEFAULT_MAX_AGE_SECONDS = 24 * 60 * 60

# cache entry types, one per gateway route
AUTHOR_SEARCH = "author_search"
AUTHOR_DETAILS = "author_details"
PAPER_CITATIONS = "paper_citations"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheAsideGateway:
    """
    mediates upstream calls through a timestamped store.

    keys are compared as exact strings; "Turing" and "turing " are
    different entries. stale rows stay in the store untouched and a
    new row is appended on the next miss.

    usage:
        gateway = CacheAsideGateway(SemanticScholarProvider(), SqliteCacheStore())
        data = await gateway.resolve("author_search", "turing", endpoint)
    """

    def __init__(
        self,
        provider: UpstreamProvider,
        store: CacheStore,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.provider = provider
        self.store = store
        self.max_age_seconds = max_age_seconds
        self._clock = clock or utc_now

        # stats
        self.hits = 0
        self.misses = 0
        self.upstream_failures = 0

    async def resolve(self, type: str, query: str, endpoint: str) -> Any:
        """
        return cached data for (type, query) or fetch endpoint upstream.

        raises whatever the provider raises (UpstreamError on non-2xx);
        in that case no row is written.
        """
        cached = self.store.find_fresh(type, query, self.max_age_seconds, self._clock())
        if cached is not None:
            self.hits += 1
            logger.info(f"cache hit: {type} {query}")
            return cached.data

        self.misses += 1
        logger.info(f"cache miss: {type} {query}")

        try:
            data = await self.provider.get(endpoint)
        except Exception as e:
            self.upstream_failures += 1
            logger.error(f"upstream fetch failed for {type} {query}: {e}")
            raise

        self.store.insert(CacheEntry(
            type=type,
            query=query,
            data=data,
            timestamp=self._clock()
        ))
        return data

    def stats(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "upstream_failures": self.upstream_failures,
            "entries": self.store.count()
        }
