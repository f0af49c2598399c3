"""Tests for the cache-fronted search service."""

from unittest.mock import AsyncMock

import pytest
from factories import make_query, make_result

from staysearch.services.pricing import PricingInputs
from staysearch.services.result_cache import ResultCache
from staysearch.services.search_errors import SearchTimeoutError
from staysearch.services.search_service import SearchService


@pytest.mark.asyncio
class TestSearchService:
    """Cache lookup before aggregation."""

    async def test_identical_search_is_served_from_cache(self):
        aggregator = AsyncMock()
        aggregator.aggregate.return_value = make_result(["h1"], prices={"h1": 90.0})
        service = SearchService(aggregator, ResultCache(ttl_seconds=180))

        first = await service.search(make_query(), PricingInputs())
        second = await service.search(make_query(), PricingInputs())

        assert second is first
        aggregator.aggregate.assert_awaited_once()

    async def test_different_margin_is_a_separate_entry(self):
        aggregator = AsyncMock()
        aggregator.aggregate.side_effect = [make_result(["h1"]), make_result(["h2"])]
        service = SearchService(aggregator, ResultCache(ttl_seconds=180))

        await service.search(make_query(), PricingInputs())
        await service.search(make_query(), PricingInputs(channel="cug", margin=7.0))

        assert aggregator.aggregate.await_count == 2

    async def test_failed_search_is_not_cached(self):
        aggregator = AsyncMock()
        aggregator.aggregate.side_effect = [SearchTimeoutError(), make_result(["h1"])]
        cache = ResultCache(ttl_seconds=180)
        service = SearchService(aggregator, cache)

        with pytest.raises(SearchTimeoutError):
            await service.search(make_query(), PricingInputs())
        assert len(cache) == 0

        result = await service.search(make_query(), PricingInputs())

        assert result.hotel_ids == ["h1"]
        assert aggregator.aggregate.await_count == 2
