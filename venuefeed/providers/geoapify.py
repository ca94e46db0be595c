"""
Geoapify adapters: secondary restaurant source and the activity source.

Two-step search: geocode the location to coordinates, then query places in a
circle around it. Geoapify supports `offset`, so refills page forward.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from venuefeed.clients import HttpClient
from venuefeed.config import GEOAPIFY_API_KEY, GEOAPIFY_GEOCODE_URL, GEOAPIFY_PLACES_URL
from venuefeed.models import ACTIVITY, RESTAURANT
from venuefeed.providers.base import BaseAdapter

SEARCH_RADIUS_METERS = 10000
MAX_PAGE_SIZE = 100

GEOAPIFY_CATEGORIES = {
    RESTAURANT: "catering.restaurant,catering.cafe,catering.fast_food,catering.bar,catering.pub",
    ACTIVITY: "entertainment,leisure,tourism.attraction,tourism.sights",
}

_DOLLARS = re.compile(r"\$+")


def extract_geoapify_place(props: Dict[str, Any]) -> Dict[str, Any]:
    """Pull the fields we use out of one Geoapify feature's `properties`."""
    address = props.get("formatted") or " ".join(
        p for p in (props.get("address_line1"), props.get("city"), props.get("state")) if p
    )
    price = None
    price_range = props.get("price_range")
    if isinstance(price_range, str):
        match = _DOLLARS.search(price_range)
        if match:
            price = match.group(0)
    hours = props.get("opening_hours")
    return {
        "id": props.get("place_id"),
        "name": props.get("name"),
        "address": address,
        "rating": props.get("rating") or props.get("stars"),
        "price": price,
        "photo_url": props.get("image"),
        "open_now": hours.get("open_now") if isinstance(hours, dict) else None,
    }


class GeoapifyAdapter(BaseAdapter):
    source_tag = "geoapify"

    def __init__(
        self,
        category: str,
        api_key: Optional[str] = GEOAPIFY_API_KEY,
        http_client: Optional[HttpClient] = None,
    ):
        if category not in GEOAPIFY_CATEGORIES:
            raise ValueError(f"Geoapify adapter does not support category '{category}'")
        super().__init__(api_key=api_key, http_client=http_client)
        self.category = category

    async def _geocode(self, location: str) -> Optional[Tuple[float, float]]:
        data = await self.http.get_json(
            GEOAPIFY_GEOCODE_URL,
            params={"text": location, "limit": "1", "apiKey": self.api_key},
        )
        features = data.get("features") or []
        if not features:
            return None
        props = features[0].get("properties") or {}
        lon, lat = props.get("lon"), props.get("lat")
        if lon is None or lat is None:
            return None
        return float(lon), float(lat)

    async def _fetch_raw(self, location: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        coords = await self._geocode(location)
        if coords is None:
            raise ValueError(f"could not geocode '{location}'")
        lon, lat = coords
        params = {
            "categories": GEOAPIFY_CATEGORIES[self.category],
            "filter": f"circle:{lon},{lat},{SEARCH_RADIUS_METERS}",
            "bias": f"proximity:{lon},{lat}",
            "limit": str(min(limit, MAX_PAGE_SIZE)),
            "offset": str(offset),
            "apiKey": self.api_key,
        }
        data = await self.http.get_json(GEOAPIFY_PLACES_URL, params=params)
        features = data.get("features") or []
        return [
            extract_geoapify_place(f.get("properties") or {})
            for f in features
            if isinstance(f, dict) and (f.get("properties") or {}).get("name")
        ]
