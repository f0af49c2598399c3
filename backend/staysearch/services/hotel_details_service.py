"""Hotel details service — batched, cached rating/review/star lookups."""

import asyncio
import logging

from staysearch.config import settings
from staysearch.services.cache_service import CacheService
from staysearch.services.liteapi_client import LiteApiClient
from staysearch.services.pricing import api_key_for_channel
from staysearch.services.rate_aggregator import HotelDetails

logger = logging.getLogger(__name__)


class HotelDetailsService:
    """Fetches per-hotel details in bounded concurrent chunks through the Redis cache."""

    def __init__(
        self,
        client: LiteApiClient,
        cache: CacheService,
        concurrency: int | None = None,
        max_ids: int | None = None,
    ):
        self._client = client
        self._cache = cache
        self.concurrency = concurrency or settings.detail_batch_concurrency
        self.max_ids = max_ids or settings.max_hotel_ids_per_request

    def clean_ids(self, hotel_ids) -> list[str]:
        """Keep non-empty string ids, capped at the per-request maximum."""
        if not isinstance(hotel_ids, list):
            return []
        return [i for i in hotel_ids if isinstance(i, str) and i][: self.max_ids]

    async def get_details_batch(
        self,
        hotel_ids: list[str],
        language: str | None = None,
        channel: str = "b2c",
    ) -> dict[str, HotelDetails]:
        """
        Details for up to `max_ids` hotels.

        Hotels whose lookup fails, or that carry none of the fields, are simply
        absent from the result.
        """
        ids = self.clean_ids(hotel_ids)
        api_key = api_key_for_channel(channel)
        results: dict[str, HotelDetails] = {}

        for i in range(0, len(ids), self.concurrency):
            chunk = ids[i:i + self.concurrency]
            fetched = await asyncio.gather(
                *(self._get_one(hotel_id, language, api_key) for hotel_id in chunk)
            )
            for hotel_id, details in zip(chunk, fetched):
                if details is not None and not details.is_empty():
                    results[hotel_id] = details

        logger.info(f"Hotel details batch: {len(results)}/{len(ids)} hotels enriched")
        return results

    async def _get_one(self, hotel_id: str, language: str | None, api_key: str) -> HotelDetails | None:
        cached = await self._cache.get_hotel_details(hotel_id, language)
        if cached is not None:
            return HotelDetails.from_hotel(cached)

        try:
            hotel = await self._client.get_hotel_details(hotel_id, language, api_key)
        except Exception as e:
            logger.warning(f"Hotel details failed for {hotel_id}: {e}")
            return None

        details = HotelDetails.from_hotel(hotel)
        await self._cache.set_hotel_details(hotel_id, language, details.to_dict())
        return details
