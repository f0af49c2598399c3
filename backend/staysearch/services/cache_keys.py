"""Cache key builder for rates search responses."""

import json

from staysearch.services.pricing import PricingInputs
from staysearch.services.search_query import SearchQuery

KEY_PREFIX = "rates"


def build_cache_key(query: SearchQuery, pricing: PricingInputs) -> str:
    """
    Canonical key for every parameter that changes the upstream result.

    List filters are sorted so their input order never matters. Client-side view
    parameters (sort, price bounds, name, refundable toggle) are not part of
    SearchQuery and therefore never reach the key.
    """
    occupancies = json.dumps(
        [{"adults": o.adults, "children": list(o.children)} for o in query.occupancies],
        separators=(",", ":"),
    )
    stars = ",".join(_num(s) for s in sorted(query.star_rating))
    facilities = ",".join(_num(f) for f in sorted(query.facilities))

    segments = [
        KEY_PREFIX,
        query.mode.value,
        query.location_id or "",
        query.freeform_query or "",
        query.checkin,
        query.checkout,
        occupancies,
        query.currency or "",
        query.language or "",
        query.guest_nationality,
        str(query.timeout),
        _opt(pricing.margin),
        _opt(pricing.additional_markup),
        stars,
        _opt(query.min_rating),
        _opt(query.min_reviews_count),
        facilities,
        "true" if query.strict_facility_filtering else "false",
    ]
    return ":".join(segments)


def _num(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _opt(value: float | None) -> str:
    return "" if value is None else _num(value)
