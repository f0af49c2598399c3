"""LiteAPI client — adapter for hotel rates search and hotel data with rate limiting."""

import asyncio
import hashlib
import json
import logging
import random

import httpx

from staysearch.config import settings
from staysearch.services.search_errors import LiteApiError

logger = logging.getLogger(__name__)

MOCK_HOTEL_NAMES = [
    "Grand Palace", "Nile View", "Harbour Suites", "Old Town Inn", "Mövenpick Resort",
    "Garden Residence", "City Lights Hotel", "Riverside Lodge", "Sunset Boutique",
    "Central Plaza", "Marina Bay Hotel", "Citadel House", "Oasis Retreat", "Crown Hotel",
]


class LiteApiClient:
    """Adapter for the LiteAPI v3 rates and static-data endpoints."""

    def __init__(self, base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = base_url or settings.liteapi_base_url
        self._transport = transport
        self._semaphore = asyncio.Semaphore(20)
        self._client: httpx.AsyncClient | None = None
        self._use_mock = not settings.liteapi_api_key and transport is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=settings.liteapi_http_timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        api_key: str | None,
        *,
        params: dict | None = None,
        body: dict | None = None,
    ) -> dict:
        key = api_key or settings.liteapi_api_key
        if not key and self._transport is None:
            raise LiteApiError("LITEAPI_API_KEY is not configured")

        client = await self._get_client()
        headers = {"X-API-Key": key or "", "accept": "application/json"}

        async with self._semaphore:
            for attempt in range(3):
                resp = await client.request(method, path, params=params, json=body, headers=headers)
                if resp.status_code == 429 and attempt < 2:
                    logger.warning(f"LiteAPI rate limited on {method} {path}, retrying")
                    await asyncio.sleep(2 ** attempt)
                    continue
                break

        try:
            data = resp.json()
        except ValueError:
            data = None

        error = data.get("error") if isinstance(data, dict) else None
        if resp.is_error or error:
            error = error if isinstance(error, dict) else {}
            message = (
                error.get("message")
                or error.get("description")
                or f"LiteAPI {method} {path} failed with status {resp.status_code}"
            )
            code = error.get("code")
            raise LiteApiError(
                f"[{code}] {message}" if code else message,
                status=resp.status_code,
                code=code,
            )
        return data or {}

    async def search_hotel_rates(self, body: dict, api_key: str | None = None) -> dict:
        """POST /hotels/rates with a prepared request body."""
        if self._use_mock:
            return self._generate_mock_rates(body)
        return await self._request("POST", "/hotels/rates", api_key, body=body)

    async def get_hotel_details(
        self, hotel_id: str, language: str | None = None, api_key: str | None = None
    ) -> dict:
        """GET /data/hotel for one hotel. Returns the hotel object."""
        if self._use_mock:
            return self._generate_mock_details(hotel_id)

        params = {"hotelId": hotel_id, "timeout": "4"}
        if language:
            params["language"] = language
        data = await self._request("GET", "/data/hotel", api_key, params=params)
        # Response may wrap the hotel in "data" or return it at top level
        return data.get("data", data) if isinstance(data, dict) else {}

    # --- Mock data generation for demo mode ---

    def _generate_mock_rates(self, body: dict) -> dict:
        """Deterministic mock rates for demo/development."""
        location = body.get("placeId") or body.get("aiSearch") or ""
        seed_str = f"{location}{body.get('checkin')}{body.get('checkout')}"
        seed = int(hashlib.md5(seed_str.encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)

        nights_factor = 1 + len(json.dumps(body.get("occupancies", []))) % 3
        num_hotels = rng.randint(20, 60)
        data = []
        for i in range(num_hotels):
            hotel_id = f"lp{seed % 100000:05d}{i:03d}"
            # Draw everything up front so both rate calls see the same hotels
            refundable = rng.random() < 0.55
            amount = round(rng.uniform(45, 420) * nights_factor, 2)
            hotel: dict = {"id": hotel_id, "name": f"{rng.choice(MOCK_HOTEL_NAMES)} {i + 1}"}
            rating = round(rng.uniform(6.0, 9.6), 1)
            if rng.random() < 0.4:
                hotel["rating"] = rating
            if body.get("refundableRatesOnly") and not refundable:
                continue
            data.append({
                "hotelId": hotel_id,
                "hotel": hotel,
                "roomTypes": [{
                    "offerRetailRate": {"amount": amount, "currency": body.get("currency", "USD")},
                    "rates": [{
                        "retailRate": {
                            "total": [{"amount": amount, "currency": body.get("currency", "USD")}],
                            "taxesAndFees": [{"included": rng.random() < 0.5}],
                        },
                        "cancellationPolicies": {"refundableTag": "RFN" if refundable else "NRFN"},
                    }],
                }],
            })
        return {"data": data}

    @staticmethod
    def _generate_mock_details(hotel_id: str) -> dict:
        seed = int(hashlib.md5(hotel_id.encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)
        return {
            "id": hotel_id,
            "rating": round(rng.uniform(5.5, 9.8), 1),
            "reviewCount": rng.randint(3, 4200),
            "starRating": rng.choice([2, 3, 3, 4, 4, 5]),
        }

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
