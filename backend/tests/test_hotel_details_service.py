"""Tests for batched hotel details lookups."""

import asyncio

import pytest

from staysearch.services.hotel_details_service import HotelDetailsService
from staysearch.services.rate_aggregator import HotelDetails
from staysearch.services.search_errors import LiteApiError


class MemoryCache:
    def __init__(self):
        self.store: dict[tuple, dict] = {}

    async def get_hotel_details(self, hotel_id, language):
        return self.store.get((hotel_id, language))

    async def set_hotel_details(self, hotel_id, language, data):
        self.store[(hotel_id, language)] = data


class FakeDetailsClient:
    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.requested: list[str] = []
        self.active = 0
        self.max_active = 0

    async def get_hotel_details(self, hotel_id, language=None, api_key=None):
        self.requested.append(hotel_id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0)
        self.active -= 1
        if hotel_id in self.failing:
            raise LiteApiError("not found", status=404)
        if hotel_id == "bare":
            return {"id": hotel_id, "name": "No data"}
        return {"id": hotel_id, "rating": 8.1, "reviewCount": "312", "starRating": 4}


@pytest.mark.asyncio
class TestHotelDetailsService:
    """Chunked fetches, caching and failure handling."""

    async def test_fetches_and_parses_details(self):
        service = HotelDetailsService(FakeDetailsClient(), MemoryCache())

        result = await service.get_details_batch(["h1", "h2"], "en")

        assert result == {
            "h1": HotelDetails(rating=8.1, review_count=312, star_rating=4.0),
            "h2": HotelDetails(rating=8.1, review_count=312, star_rating=4.0),
        }

    async def test_failed_and_empty_hotels_are_omitted(self):
        service = HotelDetailsService(FakeDetailsClient(failing={"h2"}), MemoryCache())

        result = await service.get_details_batch(["h1", "h2", "bare"])

        assert set(result) == {"h1"}

    async def test_concurrency_is_bounded_per_chunk(self):
        client = FakeDetailsClient()
        service = HotelDetailsService(client, MemoryCache(), concurrency=3)

        await service.get_details_batch([f"h{i}" for i in range(10)])

        assert client.max_active <= 3
        assert len(client.requested) == 10

    async def test_cached_details_skip_the_client(self):
        client = FakeDetailsClient()
        cache = MemoryCache()
        cache.store[("h1", "en")] = {"rating": 9.2, "reviewCount": 40}
        service = HotelDetailsService(client, cache)

        result = await service.get_details_batch(["h1", "h2"], "en")

        assert client.requested == ["h2"]
        assert result["h1"] == HotelDetails(rating=9.2, review_count=40)
        assert cache.store[("h2", "en")] == {"rating": 8.1, "reviewCount": 312, "starRating": 4.0}

    async def test_ids_are_cleaned_and_capped(self):
        client = FakeDetailsClient()
        service = HotelDetailsService(client, MemoryCache(), max_ids=2)

        assert service.clean_ids(["a", "", None, 5, "b", "c"]) == ["a", "b"]
        assert service.clean_ids("a,b") == []

        await service.get_details_batch(["a", "b", "c"])

        assert client.requested == ["a", "b"]
