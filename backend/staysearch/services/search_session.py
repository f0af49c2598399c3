"""Search sessions — one active search per client, progressively enriched."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from staysearch.config import settings
from staysearch.services import filter_sort
from staysearch.services.enrichment_scheduler import EnrichmentScheduler
from staysearch.services.filter_sort import FilterCriteria
from staysearch.services.hotel_details_service import HotelDetailsService
from staysearch.services.pricing import PricingInputs
from staysearch.services.rate_aggregator import HotelDetails, SearchResult
from staysearch.services.search_errors import SearchError
from staysearch.services.search_query import SearchQuery
from staysearch.services.search_service import SearchService

logger = logging.getLogger(__name__)


class SearchSession:
    """Holds the current search for one client and drives its enrichment waves."""

    def __init__(
        self,
        search_service: SearchService,
        details_service: HotelDetailsService,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._search_service = search_service
        self._details_service = details_service
        self._language: str | None = None
        self._channel = "b2c"
        self.scheduler = EnrichmentScheduler(self._fetch_details, sleep=sleep)
        self.result: SearchResult | None = None
        self.secondary: SearchResult | None = None

    async def _fetch_details(self, hotel_ids: list[str]) -> dict[str, HotelDetails]:
        return await self._details_service.get_details_batch(hotel_ids, self._language, self._channel)

    async def submit(
        self,
        query: SearchQuery,
        pricing: PricingInputs,
        show_all_properties: bool = False,
    ) -> SearchResult:
        """
        Start a new logical search.

        The generation moves on before the upstream call, so waves from the
        previous search are inert from this point. If another submit lands while
        this one is waiting, this result is returned but not installed.
        """
        generation = self.scheduler.advance_generation()
        try:
            primary = await self._search_service.search(query, pricing)
        except SearchError:
            if generation == self.scheduler.generation:
                self.result = None
                self.secondary = None
            raise

        secondary = None
        if show_all_properties and query.has_quality_filters:
            try:
                secondary = await self._search_service.search(query.without_quality_filters(), pricing)
            except SearchError as e:
                logger.warning(f"Show-all-properties search failed, omitting segment: {e.code}")

        if generation != self.scheduler.generation:
            logger.info(f"Search generation {generation} superseded before install")
            return primary

        self.result = primary
        self.secondary = secondary
        self._language = query.language
        self._channel = pricing.channel
        self.scheduler.start(generation, primary.hotel_ids, primary.details)
        return primary

    def view(self, criteria: FilterCriteria) -> dict:
        """Filtered and sorted hotels for the current search, with live details."""
        state = self.scheduler.state
        enrichment = {
            "generation": state.generation,
            "nextOffset": state.next_offset,
            "waveIndex": state.wave_index,
            "inFlight": state.in_flight,
            "totalHotels": len(self.scheduler.hotel_ids),
        }
        if self.result is None:
            return {"hotels": [], "secondaryHotels": [], "hotelDetailsByHotelId": {}, "enrichment": enrichment}

        result = self.result
        details = self.scheduler.details
        hotels = filter_sort.apply(result.hotels, result.prices, result.refundable, details, criteria)

        secondary_hotels = []
        if self.secondary is not None:
            secondary_hotels = [
                _summary(h, self.secondary, self.secondary.details)
                for h in filter_sort.apply_secondary(
                    result.hotels,
                    self.secondary.hotels,
                    self.secondary.prices,
                    self.secondary.refundable,
                    self.secondary.details,
                    criteria,
                )
            ]

        return {
            "hotels": [_summary(h, result, details) for h in hotels],
            "secondaryHotels": secondary_hotels,
            "hotelDetailsByHotelId": {k: v.to_dict() for k, v in details.items() if not v.is_empty()},
            "enrichment": enrichment,
        }

    async def close(self) -> None:
        await self.scheduler.close()


class SessionRegistry:
    """
    Process-local map of client session id to SearchSession.

    Every lookup refreshes the session's last-used time; `purge_idle` (run by
    the background scheduler) closes and drops sessions idle past the TTL.
    """

    def __init__(
        self,
        factory: Callable[[], SearchSession],
        idle_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self.idle_ttl_seconds = (
            settings.session_idle_ttl_seconds if idle_ttl_seconds is None else idle_ttl_seconds
        )
        self._clock = clock
        self._sessions: dict[str, SearchSession] = {}
        self._last_used: dict[str, float] = {}

    def get(self, session_id: str) -> SearchSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_used[session_id] = self._clock()
        return session

    def get_or_create(self, session_id: str) -> SearchSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = self._factory()
            self._sessions[session_id] = session
        self._last_used[session_id] = self._clock()
        return session

    async def purge_idle(self) -> int:
        now = self._clock()
        idle = [k for k, t in self._last_used.items() if now - t > self.idle_ttl_seconds]
        for session_id in idle:
            session = self._sessions.pop(session_id)
            del self._last_used[session_id]
            await session.close()
        if idle:
            logger.info(f"Search sessions: {len(idle)} idle sessions closed")
        return len(idle)

    async def close_all(self) -> None:
        for session in self._sessions.values():
            await session.close()
        self._sessions.clear()
        self._last_used.clear()

    def __len__(self) -> int:
        return len(self._sessions)


def _summary(hotel: dict, result: SearchResult, details: dict[str, HotelDetails]) -> dict:
    hotel_id = hotel["id"]
    price = result.prices.get(hotel_id)
    record = details.get(hotel_id)
    summary = {
        **hotel,
        "price": price.to_dict() if price else None,
        "hasRefundableRate": result.refundable.get(hotel_id, False),
    }
    if record is not None:
        summary.update(record.to_dict())
    return summary
