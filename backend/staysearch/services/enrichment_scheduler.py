"""Enrichment scheduler — generation-guarded background waves of hotel detail fetches."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from staysearch.config import settings
from staysearch.services.rate_aggregator import HotelDetails

logger = logging.getLogger(__name__)

FetchDetails = Callable[[list[str]], Awaitable[dict[str, HotelDetails]]]


@dataclass
class EnrichmentWaveState:
    generation: int = 0
    next_offset: int = 0
    wave_index: int = 0
    in_flight: bool = False


class EnrichmentScheduler:
    """
    Fills the hotel detail record for one active search, one batch at a time.

    Every new search calls `advance_generation()` first. Waves capture the
    generation they were started under; a wave that completes after the
    generation moved on is discarded whole and does not advance the offset.
    In-flight waves are never cancelled, only ignored.

    Details already present (the rates response's own data) are never
    overwritten; waves only fill missing fields.
    """

    def __init__(
        self,
        fetch_details: FetchDetails,
        batch_size: int | None = None,
        max_waves: int | None = None,
        debounce_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._fetch_details = fetch_details
        self.batch_size = batch_size or settings.enrichment_batch_size
        self.max_waves = settings.enrichment_max_waves if max_waves is None else max_waves
        self.debounce_seconds = (
            settings.enrichment_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self._sleep = sleep
        self.state = EnrichmentWaveState()
        self.details: dict[str, HotelDetails] = {}
        self._hotel_ids: list[str] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self.state.generation

    @property
    def hotel_ids(self) -> list[str]:
        return list(self._hotel_ids)

    def advance_generation(self) -> int:
        # Fresh state object; waves still holding the old one cannot touch it
        self.state = EnrichmentWaveState(generation=self.state.generation + 1)
        logger.debug(f"Enrichment generation -> {self.state.generation}")
        return self.state.generation

    def start(
        self,
        generation: int,
        hotel_ids: list[str],
        inline_details: dict[str, HotelDetails] | None = None,
    ) -> bool:
        """Install a search's hotels and schedule wave 1. False if `generation` is stale."""
        if generation != self.state.generation:
            logger.debug(f"Ignoring start for stale generation {generation}")
            return False

        self.state = EnrichmentWaveState(generation=generation)
        self._hotel_ids = list(dict.fromkeys(hotel_ids))
        self.details = {k: v.copy() for k, v in (inline_details or {}).items()}
        if self._hotel_ids and self.max_waves > 0:
            self._spawn(self._run_waves(generation))
        return True

    async def run_wave(self, generation: int) -> bool:
        """Run one wave. Returns True when another wave should follow."""
        state = self.state
        if generation != state.generation or state.in_flight:
            return False

        start = state.next_offset
        batch = self._hotel_ids[start:start + self.batch_size]
        if not batch:
            return False

        state.in_flight = True
        try:
            fetched = await self._fetch_details(batch)
        except Exception as e:
            logger.warning(f"Enrichment wave {state.wave_index + 1} failed: {e}")
            fetched = {}

        if generation != self.state.generation:
            logger.info(
                f"Discarding enrichment wave {state.wave_index + 1} "
                f"(generation {generation} superseded by {self.state.generation})"
            )
            return False

        state.in_flight = False
        in_batch = set(batch)
        for hotel_id, found in (fetched or {}).items():
            if hotel_id in in_batch:
                self.details.setdefault(hotel_id, HotelDetails()).fill_missing(found)

        state.next_offset = start + self.batch_size
        state.wave_index += 1
        logger.debug(
            f"Enrichment wave {state.wave_index} merged {len(fetched or {})}/{len(batch)} hotels"
        )
        return state.next_offset < len(self._hotel_ids) and state.wave_index < self.max_waves

    async def _run_waves(self, generation: int) -> None:
        while True:
            await self._sleep(self.debounce_seconds)
            if generation != self.state.generation:
                return
            if not await self.run_wave(generation):
                return

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait until every scheduled wave sequence (of any generation) has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
