from datetime import date
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from staysearch.services.filter_sort import FilterCriteria, SortOrder
from staysearch.services.search_query import (
    CHILD_AGE_MAX,
    CHILD_AGE_MIN,
    LocationMode,
    Occupancy,
    SearchQuery,
    clamp_timeout,
    resolve_guest_nationality,
)

ChildAge = Annotated[int, Field(ge=CHILD_AGE_MIN, le=CHILD_AGE_MAX)]

# Older clients send "vibe" for free-text searches
MODE_ALIASES = {"place": LocationMode.PLACE, "freeform": LocationMode.FREEFORM, "vibe": LocationMode.FREEFORM}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OccupancyIn(CamelModel):
    adults: int = Field(ge=1, le=6)
    children: list[ChildAge] = []


class RatesSearchRequest(CamelModel):
    mode: str
    place_id: str | None = None
    ai_search: str | None = None
    checkin: date
    checkout: date
    occupancies: list[OccupancyIn] | None = Field(default=None, max_length=5)
    adults: int | None = None
    currency: str | None = None
    language: str | None = None
    guest_nationality: str | None = None
    timeout: float | None = None
    star_rating: list[float] | None = None
    min_rating: float | None = None
    min_reviews_count: int | None = Field(default=None, ge=0)
    facilities: list[int] | None = None
    strict_facility_filtering: bool = False

    @model_validator(mode="after")
    def _check_location_and_dates(self):
        mode = MODE_ALIASES.get(self.mode)
        if mode is None:
            raise ValueError("mode must be 'place' or 'freeform'")
        if mode == LocationMode.PLACE and not self.place_id:
            raise ValueError("placeId is required for place mode")
        if mode == LocationMode.FREEFORM and not (self.ai_search or "").strip():
            raise ValueError("aiSearch is required for freeform mode")
        if self.checkin >= self.checkout:
            raise ValueError("checkin must be before checkout")
        return self

    def to_query(self) -> SearchQuery:
        if self.occupancies:
            occupancies = tuple(Occupancy(o.adults, tuple(o.children)) for o in self.occupancies)
        else:
            adults = self.adults if self.adults and self.adults >= 1 else 2
            occupancies = (Occupancy(adults),)

        return SearchQuery(
            mode=MODE_ALIASES[self.mode],
            location_id=self.place_id,
            freeform_query=self.ai_search.strip() if self.ai_search else None,
            checkin=self.checkin.isoformat(),
            checkout=self.checkout.isoformat(),
            occupancies=occupancies,
            currency=self.currency,
            language=self.language,
            guest_nationality=resolve_guest_nationality(self.guest_nationality),
            timeout=clamp_timeout(self.timeout),
            star_rating=tuple(self.star_rating or ()),
            min_rating=self.min_rating,
            min_reviews_count=self.min_reviews_count,
            facilities=tuple(self.facilities or ()),
            strict_facility_filtering=self.strict_facility_filtering,
        )


class SessionSearchRequest(RatesSearchRequest):
    show_all_properties: bool = False


class ResultsViewRequest(CamelModel):
    sort: SortOrder = SortOrder.RECOMMENDED
    refundable_only: bool = False
    min_price: float | None = None
    max_price: float | None = None
    name: str | None = None

    def to_criteria(self) -> FilterCriteria:
        return FilterCriteria(
            refundable_only=self.refundable_only,
            min_price=self.min_price,
            max_price=self.max_price,
            name=self.name,
            sort=self.sort,
        )


class HotelDetailsBatchRequest(CamelModel):
    hotel_ids: list[Any] | None = None
    language: str | None = None
