"""Tests for recommended hotel ordering."""

from staysearch.services.hotel_ordering import extract_hotels


def ordered_ids(raw) -> list[str]:
    return [h["id"] for h in extract_hotels(raw)]


class TestRecommendedOrder:
    def test_top_level_hotels_list_wins(self):
        raw = {
            "hotels": [{"id": "b", "name": "B"}, {"id": "a", "name": "A"}],
            "data": [{"hotelId": "a"}, {"hotelId": "b"}],
        }

        assert ordered_ids(raw) == ["b", "a"]

    def test_falls_back_to_rate_array(self):
        raw = {"data": [{"hotelId": "x", "hotel": {"name": "X"}}, {"hotelId": "y"}]}

        hotels = extract_hotels(raw)

        assert hotels == [{"name": "X", "id": "x"}, {"id": "y"}]

    def test_duplicates_and_missing_ids_are_dropped(self):
        raw = {"hotels": [{"id": "a"}, {"name": "no id"}, {"hotelId": 7}, {"id": "a"}]}

        assert ordered_ids(raw) == ["a", "7"]

    def test_empty_hotels_list_uses_data(self):
        assert ordered_ids({"hotels": [], "data": [{"hotelId": "z"}]}) == ["z"]

    def test_non_dict_payload(self):
        assert extract_hotels(None) == []
