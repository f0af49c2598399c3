"""Tests for result filtering and sort orders."""

from staysearch.services import filter_sort
from staysearch.services.filter_sort import FilterCriteria, SortOrder, normalize_for_search
from staysearch.services.rate_aggregator import HotelDetails, PriceInfo


def hotels(*specs) -> list[dict]:
    return [{"id": hotel_id, "name": name} for hotel_id, name in specs]


def prices(**amounts) -> dict[str, PriceInfo]:
    return {k: PriceInfo(amount=v, currency="USD") for k, v in amounts.items()}


def ids(result: list[dict]) -> list[str]:
    return [h["id"] for h in result]


ABC = hotels(("A", "Alpha"), ("B", "Bravo"), ("C", "Charlie"))


class TestSortOrders:
    """Stable sorts with missing-value placement."""

    def test_recommended_keeps_upstream_order(self):
        result = filter_sort.apply(ABC, prices(A=100, B=80), {}, {}, FilterCriteria())

        assert ids(result) == ["A", "B", "C"]

    def test_price_ascending_puts_unpriced_last(self):
        result = filter_sort.apply(ABC, prices(A=100, B=80), {}, {}, FilterCriteria(sort=SortOrder.PRICE_ASC))

        assert ids(result) == ["B", "A", "C"]

    def test_price_descending_puts_unpriced_last(self):
        result = filter_sort.apply(ABC, prices(A=100, B=80), {}, {}, FilterCriteria(sort=SortOrder.PRICE_DESC))

        assert ids(result) == ["A", "B", "C"]

    def test_ties_keep_upstream_order(self):
        hs = hotels(("X", "x"), ("Y", "y"), ("Z", "z"))
        p = prices(X=100, Y=100, Z=50)

        asc = filter_sort.apply(hs, p, {}, {}, FilterCriteria(sort=SortOrder.PRICE_ASC))
        desc = filter_sort.apply(hs, p, {}, {}, FilterCriteria(sort=SortOrder.PRICE_DESC))

        assert ids(asc) == ["Z", "X", "Y"]
        assert ids(desc) == ["X", "Y", "Z"]

    def test_rating_prefers_enriched_details(self):
        hs = [
            {"id": "A", "name": "Alpha", "rating": 9.5},
            {"id": "B", "name": "Bravo"},
            {"id": "C", "name": "Charlie", "rating": 6.0},
            {"id": "D", "name": "Delta"},
        ]
        details = {"A": HotelDetails(rating=7.0), "B": HotelDetails(rating=8.8)}

        result = filter_sort.apply(hs, {}, {}, details, FilterCriteria(sort=SortOrder.RATING_DESC))

        assert ids(result) == ["B", "A", "C", "D"]

    def test_input_list_is_not_mutated(self):
        hs = list(ABC)
        filter_sort.apply(hs, prices(A=100, B=80, C=10), {}, {}, FilterCriteria(sort=SortOrder.PRICE_ASC))

        assert ids(hs) == ["A", "B", "C"]


class TestFilters:
    """All active filters must hold at once."""

    def test_refundable_only(self):
        result = filter_sort.apply(ABC, {}, {"B": True}, {}, FilterCriteria(refundable_only=True))

        assert ids(result) == ["B"]

    def test_price_bounds_treat_missing_price_as_out_of_range(self):
        p = prices(A=100, B=80)

        assert ids(filter_sort.apply(ABC, p, {}, {}, FilterCriteria(min_price=90))) == ["A"]
        assert ids(filter_sort.apply(ABC, p, {}, {}, FilterCriteria(max_price=90))) == ["B"]

    def test_missing_price_passes_a_zero_lower_bound(self):
        result = filter_sort.apply(ABC, prices(A=100), {}, {}, FilterCriteria(min_price=0))

        assert ids(result) == ["A", "B", "C"]

    def test_name_match_ignores_case_and_accents(self):
        hs = hotels(("1", "Mövenpick Resort Aswan"), ("2", "Old Cataract"), ("3", "Café Riche Suites"))

        assert ids(filter_sort.apply(hs, {}, {}, {}, FilterCriteria(name="movenpick"))) == ["1"]
        assert ids(filter_sort.apply(hs, {}, {}, {}, FilterCriteria(name="  CAFE "))) == ["3"]

    def test_filters_combine(self):
        hs = hotels(("A", "Nile Palace"), ("B", "Nile View"), ("C", "Nile Inn"), ("D", "Desert Camp"))
        p = prices(A=300, B=120, C=90, D=60)
        refundable = {"A": True, "C": True, "D": True}

        result = filter_sort.apply(
            hs, p, refundable, {},
            FilterCriteria(refundable_only=True, max_price=200, name="nile", sort=SortOrder.PRICE_ASC),
        )

        assert ids(result) == ["C"]

    def test_normalize_for_search_handles_non_strings(self):
        assert normalize_for_search(None) == ""
        assert normalize_for_search("Ünïcödé") == "unicode"


class TestSecondarySegment:
    """The trailing "show all properties" list."""

    def test_primary_hotels_are_excluded(self):
        primary = hotels(("A", "Alpha"), ("B", "Bravo"))
        secondary = hotels(("B", "Bravo"), ("D", "Delta"), ("E", "Echo"), ("D", "Delta"))

        result = filter_sort.apply_secondary(
            primary, secondary, prices(D=50, E=40), {}, {}, FilterCriteria(sort=SortOrder.PRICE_ASC),
        )

        assert ids(result) == ["E", "D"]

    def test_secondary_uses_the_same_filters(self):
        result = filter_sort.apply_secondary(
            hotels(("A", "Alpha")),
            hotels(("D", "Delta"), ("E", "Echo")),
            prices(D=50, E=400),
            {},
            {},
            FilterCriteria(max_price=100),
        )

        assert ids(result) == ["D"]
