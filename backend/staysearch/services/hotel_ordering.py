"""Recommended ordering of hotels in a raw rates response."""


def extract_hotels(raw: dict | None) -> list[dict]:
    """
    Hotel summaries in upstream ("recommended") order, de-duplicated by id.

    Uses the response's top-level `hotels` list when present, otherwise the
    `hotel` objects (or bare hotel ids) of the `data` rate array. Each summary
    carries an `id` key.
    """
    if not isinstance(raw, dict):
        return []

    source: list[dict] = []
    hotels = raw.get("hotels")
    if isinstance(hotels, list) and hotels:
        source = [h for h in hotels if isinstance(h, dict)]
    elif isinstance(raw.get("data"), list):
        for item in raw["data"]:
            if not isinstance(item, dict):
                continue
            hotel = item.get("hotel") if isinstance(item.get("hotel"), dict) else {}
            source.append({**hotel, "id": hotel.get("id") or item.get("hotelId")})

    seen = set()
    ordered = []
    for hotel in source:
        hotel_id = hotel.get("id") or hotel.get("hotelId")
        if not hotel_id:
            continue
        hotel_id = str(hotel_id)
        if hotel_id in seen:
            continue
        seen.add(hotel_id)
        ordered.append({**hotel, "id": hotel_id})
    return ordered
