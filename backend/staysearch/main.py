import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from staysearch.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "staysearch.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

from staysearch.exception_handlers import setup_exception_handlers
from staysearch.routers import hotels, rates, sessions
from staysearch.services.cache_service import CacheService
from staysearch.services.hotel_details_service import HotelDetailsService
from staysearch.services.liteapi_client import LiteApiClient
from staysearch.services.rate_aggregator import RateAggregator
from staysearch.services.result_cache import ResultCache
from staysearch.services.search_service import SearchService
from staysearch.services.search_session import SearchSession, SessionRegistry

logger = logging.getLogger(__name__)


def build_services(app: FastAPI, client: LiteApiClient | None = None) -> None:
    """Wire the search services onto app.state."""
    client = client or LiteApiClient()
    result_cache = ResultCache(max_entries=settings.result_cache_max_entries)
    details_cache = CacheService()

    search_service = SearchService(RateAggregator(client), result_cache)
    details_service = HotelDetailsService(client, details_cache)

    app.state.client = client
    app.state.result_cache = result_cache
    app.state.details_cache = details_cache
    app.state.search_service = search_service
    app.state.details_service = details_service
    app.state.sessions = SessionRegistry(lambda: SearchSession(search_service, details_service))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if not hasattr(app.state, "search_service"):
        build_services(app)
    if not settings.liteapi_api_key:
        logger.warning("LITEAPI_API_KEY not set — serving deterministic demo rates")

    scheduler = None
    if settings.scheduler_enabled:
        try:
            scheduler = AsyncIOScheduler()

            async def _purge_result_cache():
                app.state.result_cache.purge_expired()

            scheduler.add_job(
                _purge_result_cache,
                IntervalTrigger(seconds=settings.result_cache_sweep_interval_seconds),
                id="purge_result_cache",
            )

            async def _purge_idle_sessions():
                await app.state.sessions.purge_idle()

            scheduler.add_job(
                _purge_idle_sessions,
                IntervalTrigger(seconds=settings.result_cache_sweep_interval_seconds),
                id="purge_idle_sessions",
            )
            scheduler.start()
            logger.info("Background scheduler started")
        except Exception as e:
            logger.error(f"Scheduler failed to start: {e}")
            scheduler = None

    yield

    # Shutdown
    await app.state.sessions.close_all()
    await app.state.client.close()
    await app.state.details_cache.close()
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")


app = FastAPI(
    title="StaySearch",
    description="Hotel search aggregation, caching and progressive enrichment",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Rate-Channel", "X-Rate-Margin", "X-Rate-AdditionalMarkup"],
)

setup_exception_handlers(app)

app.include_router(rates.router, prefix="/api/rates", tags=["rates"])
app.include_router(hotels.router, prefix="/api/hotel", tags=["hotels"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "staysearch"}
