"""Search query model — normalized, immutable search parameters."""

from dataclasses import dataclass, field, replace
from enum import Enum

from staysearch.config import settings

CHILD_AGE_MIN = 0
CHILD_AGE_MAX = 17


class LocationMode(str, Enum):
    PLACE = "place"
    FREEFORM = "freeform"


@dataclass(frozen=True)
class Occupancy:
    """One room: adult count plus child ages."""
    adults: int
    children: tuple[int, ...] = ()

    def to_api(self) -> dict:
        room: dict = {"adults": self.adults}
        if self.children:
            room["children"] = list(self.children)
        return room


@dataclass(frozen=True)
class SearchQuery:
    mode: LocationMode
    checkin: str
    checkout: str
    occupancies: tuple[Occupancy, ...]
    location_id: str | None = None
    freeform_query: str | None = None
    currency: str | None = None
    language: str | None = None
    guest_nationality: str = field(default_factory=lambda: settings.default_guest_nationality)
    timeout: int = field(default_factory=lambda: settings.rates_timeout_default)
    star_rating: tuple[float, ...] = ()
    min_rating: float | None = None
    min_reviews_count: int | None = None
    facilities: tuple[int, ...] = ()
    strict_facility_filtering: bool = False

    @property
    def has_quality_filters(self) -> bool:
        return bool(
            self.star_rating
            or self.min_rating is not None
            or self.min_reviews_count is not None
            or self.facilities
        )

    def without_quality_filters(self) -> "SearchQuery":
        """The same search with star/rating/review/facility filters dropped."""
        return replace(
            self,
            star_rating=(),
            min_rating=None,
            min_reviews_count=None,
            facilities=(),
            strict_facility_filtering=False,
        )


def clamp_timeout(value: float | None) -> int:
    """Round and clamp a requested upstream timeout; default when missing."""
    if value is None or value != value:  # NaN
        return settings.rates_timeout_default
    return min(settings.rates_timeout_max, max(settings.rates_timeout_min, round(value)))


def resolve_guest_nationality(value: str | None) -> str:
    if value and len(value.strip()) == 2 and value.strip().isalpha():
        return value.strip().upper()
    return settings.default_guest_nationality
