"""Search service — cache-fronted rates search."""

import logging

from staysearch.services.cache_keys import build_cache_key
from staysearch.services.pricing import PricingInputs
from staysearch.services.rate_aggregator import RateAggregator, SearchResult
from staysearch.services.result_cache import ResultCache
from staysearch.services.search_query import SearchQuery

logger = logging.getLogger(__name__)


class SearchService:
    """
    Looks up the canonical key in the result cache and aggregates on a miss.

    Only successful aggregations are cached; a failed search raises and leaves
    the cache untouched so the next identical request retries upstream.
    Concurrent identical searches are not coalesced.
    """

    def __init__(self, aggregator: RateAggregator, cache: ResultCache):
        self._aggregator = aggregator
        self._cache = cache

    async def search(self, query: SearchQuery, pricing: PricingInputs) -> SearchResult:
        key = build_cache_key(query, pricing)
        cached = self._cache.get(key)
        if cached is not None:
            logger.info(f"Cache hit: {key}")
            return cached

        result = await self._aggregator.aggregate(query, pricing)
        self._cache.set(key, result)
        return result
