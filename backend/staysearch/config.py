from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LiteAPI (rates + hotel data)
    liteapi_base_url: str = "https://api.liteapi.travel/v3.0"
    liteapi_api_key: str = ""
    liteapi_cug_api_key: str = ""
    liteapi_http_timeout: float = 35.0

    # Channel / pricing
    default_channel: str = "b2c"
    cug_margin: float | None = 7.0
    cug_additional_markup: float | None = None
    cug_display_discount_percent: float | None = None

    # Search defaults
    default_currency: str = "USD"
    default_guest_nationality: str = "EG"
    rates_search_limit: int = 1000
    rates_timeout_default: int = 5
    rates_timeout_min: int = 1
    rates_timeout_max: int = 30
    rates_timeout_grace_seconds: float = 5.0

    # Result cache
    result_cache_ttl: int = 180
    result_cache_max_entries: int | None = None
    result_cache_sweep_interval_seconds: int = 300

    # Search sessions
    session_idle_ttl_seconds: int = 1800

    # Enrichment waves
    enrichment_batch_size: int = 80
    enrichment_max_waves: int = 10
    enrichment_debounce_seconds: float = 1.5

    # Hotel details
    detail_batch_concurrency: int = 15
    max_hotel_ids_per_request: int = 80
    hotel_details_cache_ttl: int = 3600

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Scheduler
    scheduler_enabled: bool = True

    # CORS
    cors_origins: str = "http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
