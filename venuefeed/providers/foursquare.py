"""Foursquare Places restaurant adapter (primary restaurant source)."""
import math
from typing import Any, Dict, List, Optional

from loguru import logger

from venuefeed.clients import HttpClient
from venuefeed.config import FOURSQUARE_API_KEY, FOURSQUARE_SEARCH_URL
from venuefeed.models import RESTAURANT
from venuefeed.providers.base import BaseAdapter

FOOD_AND_BEVERAGE_CATEGORY = "13000"
MAX_PAGE_SIZE = 50
FIELDS = "fsq_id,name,location,categories,rating,price,photos,hours"

# Several searches give more variety than one long result list
SEARCH_STRATEGIES = [
    ("", "POPULARITY"),
    ("", "RATING"),
    ("pizza", "POPULARITY"),
    ("burger", "POPULARITY"),
    ("asian", "POPULARITY"),
    ("mexican", "POPULARITY"),
    ("italian", "POPULARITY"),
    ("breakfast", "POPULARITY"),
]


def extract_foursquare_place(place: Dict[str, Any]) -> Dict[str, Any]:
    """Pull the fields we use out of one Foursquare v3 search result."""
    location = place.get("location") or {}
    address = location.get("formatted_address") or ""
    if not address and location.get("address"):
        parts = [location.get("address"), location.get("locality"), location.get("region")]
        address = ", ".join(p for p in parts if p)

    photo_url = None
    photos = place.get("photos") or []
    if photos and isinstance(photos[0], dict):
        photo = photos[0]
        if photo.get("prefix") and photo.get("suffix"):
            photo_url = f"{photo['prefix']}300x300{photo['suffix']}"

    hours = place.get("hours") or {}
    return {
        "id": place.get("fsq_id"),
        "name": place.get("name"),
        "address": address,
        "rating": place.get("rating"),  # 0-10
        "price": place.get("price"),
        "photo_url": photo_url,
        "open_now": hours.get("open_now") if isinstance(hours, dict) else None,
    }


class FoursquareRestaurantAdapter(BaseAdapter):
    source_tag = "foursquare"
    category = RESTAURANT
    rating_scale = 10.0

    def __init__(self, api_key: Optional[str] = FOURSQUARE_API_KEY, http_client: Optional[HttpClient] = None):
        super().__init__(api_key=api_key, http_client=http_client)

    async def _search(self, location: str, query: str, sort: str, limit: int) -> List[Dict[str, Any]]:
        params = {
            "near": location,
            "query": f"{query} restaurant".strip(),
            "categories": FOOD_AND_BEVERAGE_CATEGORY,
            "sort": sort,
            "limit": str(limit),
            "fields": FIELDS,
        }
        headers = {"Authorization": self.api_key, "Accept": "application/json"}
        data = await self.http.get_json(FOURSQUARE_SEARCH_URL, params=params, headers=headers)
        results = data.get("results") or []
        return results if isinstance(results, list) else []

    async def _fetch_raw(self, location: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        per_strategy = min(MAX_PAGE_SIZE, max(1, math.ceil(limit / len(SEARCH_STRATEGIES))))
        # Foursquare has no offset; rotate the strategies so refills start somewhere new
        start = (offset // per_strategy) % len(SEARCH_STRATEGIES)
        strategies = SEARCH_STRATEGIES[start:] + SEARCH_STRATEGIES[:start]

        seen_ids = set()
        raw_records: List[Dict[str, Any]] = []
        errors = 0
        for query, sort in strategies:
            try:
                places = await self._search(location, query, sort, per_strategy)
            except Exception as e:
                errors += 1
                logger.debug(f"Foursquare strategy '{query or 'general'}' ({sort}) failed: {e}")
                continue
            for place in places:
                if not isinstance(place, dict):
                    continue
                fsq_id = place.get("fsq_id")
                if fsq_id in seen_ids:
                    continue
                seen_ids.add(fsq_id)
                raw_records.append(extract_foursquare_place(place))
            if len(raw_records) >= limit:
                break

        if errors == len(strategies):
            raise RuntimeError("all Foursquare search strategies failed")
        return raw_records
