"""Filter/sort engine — client-visible filters and stable sort orders over fetched indices."""

import math
import unicodedata
from dataclasses import dataclass
from enum import Enum

from staysearch.services.rate_aggregator import HotelDetails, PriceInfo


class SortOrder(str, Enum):
    RECOMMENDED = "recommended"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING_DESC = "rating_desc"


@dataclass(frozen=True)
class FilterCriteria:
    refundable_only: bool = False
    min_price: float | None = None
    max_price: float | None = None
    name: str | None = None
    sort: SortOrder = SortOrder.RECOMMENDED


def normalize_for_search(text) -> str:
    """Lowercase and strip diacritics, so "movenpick" matches "Mövenpick"."""
    if not isinstance(text, str):
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def apply(
    hotels: list[dict],
    prices: dict[str, PriceInfo],
    refundable: dict[str, bool],
    details: dict[str, HotelDetails],
    criteria: FilterCriteria,
) -> list[dict]:
    """
    Filter (all conditions must hold) then sort.

    Python's sort is stable, so hotels that compare equal keep their upstream
    order. A hotel without a price counts as 0 against a lower bound and as
    +inf against an upper bound.
    """
    needle = normalize_for_search(criteria.name.strip()) if criteria.name else ""

    def _price(hotel_id: str) -> float | None:
        info = prices.get(hotel_id)
        return info.amount if info is not None else None

    def _keep(hotel: dict) -> bool:
        hotel_id = hotel["id"]
        if criteria.refundable_only and refundable.get(hotel_id) is not True:
            return False
        price = _price(hotel_id)
        if criteria.min_price is not None and (price if price is not None else 0) < criteria.min_price:
            return False
        if criteria.max_price is not None and (price if price is not None else math.inf) > criteria.max_price:
            return False
        if needle and needle not in normalize_for_search(hotel.get("name")):
            return False
        return True

    result = [h for h in hotels if _keep(h)]

    if criteria.sort == SortOrder.PRICE_ASC:
        result.sort(key=lambda h: _or(_price(h["id"]), math.inf))
    elif criteria.sort == SortOrder.PRICE_DESC:
        result.sort(key=lambda h: _or(_price(h["id"]), 0), reverse=True)
    elif criteria.sort == SortOrder.RATING_DESC:
        result.sort(key=lambda h: _or(hotel_rating(h, details), 0), reverse=True)
    return result


def apply_secondary(
    primary_hotels: list[dict],
    secondary_hotels: list[dict],
    prices: dict[str, PriceInfo],
    refundable: dict[str, bool],
    details: dict[str, HotelDetails],
    criteria: FilterCriteria,
) -> list[dict]:
    """
    Trailing "show all properties" segment.

    Hotels already in the primary list are dropped (the primary entry wins);
    the remainder goes through the same filters and sort using the secondary
    search's indices.
    """
    seen = {h["id"] for h in primary_hotels}
    remainder = []
    for hotel in secondary_hotels:
        if hotel["id"] in seen:
            continue
        seen.add(hotel["id"])
        remainder.append(hotel)
    return apply(remainder, prices, refundable, details, criteria)


def hotel_rating(hotel: dict, details: dict[str, HotelDetails]) -> float | None:
    record = details.get(hotel["id"])
    if record is not None and record.rating is not None:
        return record.rating
    rating = hotel.get("rating")
    return float(rating) if isinstance(rating, (int, float)) and not isinstance(rating, bool) else None


def _or(value: float | None, default: float) -> float:
    return default if value is None else value
