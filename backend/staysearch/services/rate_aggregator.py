"""Rate aggregator — concurrent primary + refundable-only rates search fused into indices."""

import asyncio
import logging
import time
from dataclasses import dataclass, field, fields

from staysearch.config import settings
from staysearch.services.hotel_ordering import extract_hotels
from staysearch.services.liteapi_client import LiteApiClient
from staysearch.services.pricing import PricingInputs, api_key_for_channel
from staysearch.services.search_errors import (
    NoRatesError,
    SearchTimeoutError,
    classify_upstream_error,
)
from staysearch.services.search_query import LocationMode, SearchQuery

logger = logging.getLogger(__name__)

# Alternate spellings seen for the review count on hotel objects
REVIEW_COUNT_KEYS = ("reviewCount", "review_count", "reviewsCount", "numberOfReviews")
STAR_RATING_KEYS = ("starRating", "stars")


@dataclass
class PriceInfo:
    amount: float
    currency: str
    refundable_tag: str | None = None
    tax_included: bool | None = None

    def to_dict(self) -> dict:
        data: dict = {"amount": self.amount, "currency": self.currency}
        if self.refundable_tag is not None:
            data["refundableTag"] = self.refundable_tag
        if self.tax_included is not None:
            data["taxIncluded"] = self.tax_included
        return data


@dataclass
class HotelDetails:
    rating: float | None = None
    review_count: int | None = None
    star_rating: float | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def fill_missing(self, other: "HotelDetails") -> None:
        """Copy fields from `other` only where this record has none."""
        for f in fields(self):
            if getattr(self, f.name) is None and getattr(other, f.name) is not None:
                setattr(self, f.name, getattr(other, f.name))

    def copy(self) -> "HotelDetails":
        return HotelDetails(self.rating, self.review_count, self.star_rating)

    def to_dict(self) -> dict:
        data = {}
        if self.rating is not None:
            data["rating"] = self.rating
        if self.review_count is not None:
            data["reviewCount"] = self.review_count
        if self.star_rating is not None:
            data["starRating"] = self.star_rating
        return data

    @classmethod
    def from_hotel(cls, hotel: dict | None) -> "HotelDetails":
        """Read rating / review count / star rating off a provider hotel object."""
        if not isinstance(hotel, dict):
            return cls()
        return cls(
            rating=_to_float(hotel.get("rating")),
            review_count=_to_int(_first_present(hotel, REVIEW_COUNT_KEYS)),
            star_rating=_to_float(_first_present(hotel, STAR_RATING_KEYS)),
        )


@dataclass
class SearchResult:
    mode: str
    raw: dict
    prices: dict[str, PriceInfo] = field(default_factory=dict)
    refundable: dict[str, bool] = field(default_factory=dict)
    details: dict[str, HotelDetails] = field(default_factory=dict)
    hotels: list[dict] = field(default_factory=list)
    pricing: PricingInputs = field(default_factory=PricingInputs)

    @property
    def hotel_ids(self) -> list[str]:
        return [h["id"] for h in self.hotels]

    @property
    def promo_config(self) -> dict:
        config: dict = {"isCug": self.pricing.is_cug}
        if self.pricing.display_discount_percent is not None:
            config["displayDiscountPercent"] = self.pricing.display_discount_percent
        return config

    def to_payload(self, details: dict[str, HotelDetails] | None = None) -> dict:
        details = self.details if details is None else details
        return {
            "mode": self.mode,
            "raw": self.raw,
            "pricesByHotelId": {k: v.to_dict() for k, v in self.prices.items()},
            "hasRefundableRateByHotelId": dict(self.refundable),
            "hotelDetailsByHotelId": {
                k: v.to_dict() for k, v in details.items() if not v.is_empty()
            },
            "promoConfig": self.promo_config,
        }


def build_rates_body(query: SearchQuery, pricing: PricingInputs) -> dict:
    """Upstream request body for one rates search (without the refundable-only flag)."""
    body: dict = {
        "occupancies": [o.to_api() for o in query.occupancies],
        "currency": query.currency or settings.default_currency,
        "guestNationality": query.guest_nationality,
        "checkin": query.checkin,
        "checkout": query.checkout,
        "roomMapping": True,
        "includeHotelData": True,
        "limit": settings.rates_search_limit,
        "timeout": query.timeout,
        "maxRatesPerHotel": 1,
    }
    if query.mode == LocationMode.PLACE:
        body["placeId"] = query.location_id
    else:
        body["aiSearch"] = query.freeform_query
    if query.language:
        body["language"] = query.language
    if pricing.margin is not None:
        body["margin"] = pricing.margin
    if pricing.additional_markup is not None:
        body["additionalMarkup"] = pricing.additional_markup
    if query.star_rating:
        body["starRating"] = list(query.star_rating)
    if query.min_rating is not None:
        body["minRating"] = query.min_rating
    if query.min_reviews_count is not None:
        body["minReviewsCount"] = query.min_reviews_count
    if query.facilities:
        body["facilities"] = list(query.facilities)
    if query.strict_facility_filtering:
        body["strictFacilityFiltering"] = True
    return body


def extract_prices(raw: dict) -> dict[str, PriceInfo]:
    """Cheapest offer per hotel from the primary response's rate array."""
    prices: dict[str, PriceInfo] = {}
    for item in _data(raw):
        hotel_id = item.get("hotelId")
        if not hotel_id:
            continue
        offers = [o for o in (_offer_from_room_type(rt) for rt in item.get("roomTypes") or []) if o]
        if not offers:
            continue
        # min() keeps the first of equal amounts, i.e. upstream order
        prices[str(hotel_id)] = min(offers, key=lambda o: o.amount)
    return prices


def extract_refundable(raw: dict) -> dict[str, bool]:
    return {str(item["hotelId"]): True for item in _data(raw) if item.get("hotelId")}


def extract_inline_details(raw: dict) -> dict[str, HotelDetails]:
    """Wave 0: rating / review / star fields embedded in the rates response itself."""
    details: dict[str, HotelDetails] = {}

    def _add(hotel_id, hotel):
        if not hotel_id:
            return
        found = HotelDetails.from_hotel(hotel)
        if found.is_empty():
            return
        details.setdefault(str(hotel_id), HotelDetails()).fill_missing(found)

    for item in _data(raw):
        _add(item.get("hotelId"), item.get("hotel"))
    hotels = raw.get("hotels") if isinstance(raw, dict) else None
    for hotel in hotels if isinstance(hotels, list) else []:
        if isinstance(hotel, dict):
            _add(hotel.get("id") or hotel.get("hotelId"), hotel)
    return details


class RateAggregator:
    """Runs the primary and refundable-only searches and fuses them."""

    def __init__(self, client: LiteApiClient):
        self._client = client

    async def aggregate(self, query: SearchQuery, pricing: PricingInputs) -> SearchResult:
        start_time = time.monotonic()
        body = build_rates_body(query, pricing)
        api_key = api_key_for_channel(pricing.channel)

        primary_task = asyncio.create_task(self._client.search_hotel_rates(body, api_key))
        refundable_task = asyncio.create_task(
            self._client.search_hotel_rates({**body, "refundableRatesOnly": True}, api_key)
        )

        # Both calls share one deadline but only the primary can fail the search
        deadline = start_time + query.timeout + settings.rates_timeout_grace_seconds

        try:
            resp = await asyncio.wait_for(primary_task, timeout=deadline - time.monotonic())
        except asyncio.TimeoutError as e:
            refundable_task.cancel()
            logger.warning(f"Rates search timed out after {query.timeout}s")
            raise SearchTimeoutError() from e
        except Exception as e:
            refundable_task.cancel()
            logger.error(f"Primary rates search failed: {e}")
            raise classify_upstream_error(e) from e

        try:
            refundable_resp = await asyncio.wait_for(
                refundable_task, timeout=max(0.0, deadline - time.monotonic())
            )
        except asyncio.TimeoutError:
            logger.warning("Refundable-only rates search timed out, ignoring")
            refundable_resp = {}
        except Exception as e:
            logger.warning(f"Refundable-only rates search failed, ignoring: {e}")
            refundable_resp = {}

        prices = extract_prices(resp)
        if _data(resp) and not prices:
            raise NoRatesError()

        result = SearchResult(
            mode=query.mode.value,
            raw=resp,
            prices=prices,
            refundable=extract_refundable(refundable_resp),
            details=extract_inline_details(resp),
            hotels=extract_hotels(resp),
            pricing=pricing,
        )

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Rates search: {len(result.hotels)} hotels, {len(prices)} priced, "
            f"{len(result.refundable)} refundable in {elapsed_ms}ms"
        )
        return result


def _data(raw) -> list[dict]:
    data = raw.get("data") if isinstance(raw, dict) else None
    return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []


def _offer_from_room_type(room_type: dict) -> PriceInfo | None:
    if not isinstance(room_type, dict):
        return None
    rates = room_type.get("rates") or [{}]
    first_rate = rates[0] if isinstance(rates[0], dict) else {}
    retail = first_rate.get("retailRate") or {}
    rate_total = (retail.get("total") or [None])[0]

    total = room_type.get("offerRetailRate") or room_type.get("suggestedSellingPrice") or rate_total
    if not isinstance(total, dict):
        return None
    amount = _to_float(total.get("amount"))
    if amount is None:
        return None

    currency = total.get("currency") or (rate_total or {}).get("currency") or "USD"
    taxes = (retail.get("taxesAndFees") or [{}])[0] or {}
    return PriceInfo(
        amount=amount,
        currency=currency,
        refundable_tag=(first_rate.get("cancellationPolicies") or {}).get("refundableTag"),
        tax_included=bool(taxes.get("included", False)),
    )


def _first_present(data: dict, keys: tuple[str, ...]):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _to_float(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None
