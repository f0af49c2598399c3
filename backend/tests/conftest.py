"""Shared fixtures: an app wired to an in-process LiteAPI stand-in."""

import pytest
from factories import rate_item
from fastapi.testclient import TestClient

from staysearch.config import settings
from staysearch.main import app, build_services


class FakeLiteApi:
    """Serves canned rates; refundable-only calls get the hotels listed in `refundable_ids`."""

    def __init__(self):
        self.rates = {"data": [rate_item("h1", 120.0, rating=8.4), rate_item("h2", 75.0), rate_item("h3", 99.0)]}
        self.refundable_ids = {"h2"}
        self.error: Exception | None = None
        self.rate_calls: list[dict] = []
        self.detail_calls: list[str] = []

    async def search_hotel_rates(self, body, api_key=None):
        self.rate_calls.append(body)
        if self.error is not None:
            raise self.error
        if body.get("refundableRatesOnly"):
            return {"data": [item for item in self.rates["data"] if item["hotelId"] in self.refundable_ids]}
        return self.rates

    async def get_hotel_details(self, hotel_id, language=None, api_key=None):
        self.detail_calls.append(hotel_id)
        return {"id": hotel_id, "rating": 7.5, "reviewCount": 20, "starRating": 3}

    async def close(self):
        pass


@pytest.fixture
def fake_liteapi() -> FakeLiteApi:
    return FakeLiteApi()


@pytest.fixture
def api_client(monkeypatch, fake_liteapi):
    """TestClient over the real app with fresh services per test."""
    monkeypatch.setattr(settings, "scheduler_enabled", False)
    monkeypatch.setattr(settings, "redis_url", "")
    monkeypatch.setattr(settings, "enrichment_debounce_seconds", 0.0)
    monkeypatch.setattr(settings, "cug_margin", 7.0)
    monkeypatch.setattr(settings, "cug_additional_markup", None)
    build_services(app, client=fake_liteapi)
    with TestClient(app) as client:
        yield client
