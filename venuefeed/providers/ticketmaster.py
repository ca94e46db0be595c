"""Ticketmaster Discovery event adapter (secondary event source, concerts/sports/theatre)."""
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from venuefeed.clients import HttpClient
from venuefeed.config import TICKETMASTER_API_KEY, TICKETMASTER_EVENTS_URL
from venuefeed.models import EVENT
from venuefeed.providers.base import BaseAdapter
from venuefeed.normalizer import identity_key

PAGE_SIZE = 50
SEARCH_RADIUS_MILES = 25
EVENT_KEYWORDS = ["music", "theater", "sports", "film", "family"]
DEFAULT_EVENT_RATING = 4.5


def _price_from_ranges(event: Dict[str, Any]) -> int:
    ranges = event.get("priceRanges") or []
    if not ranges or not isinstance(ranges[0], dict):
        return 3
    low, high = ranges[0].get("min"), ranges[0].get("max")
    if low is None or high is None:
        return 3
    avg = (float(low) + float(high)) / 2
    if avg < 30:
        return 2
    if avg < 75:
        return 3
    return 4


def _best_image(images: List[Dict[str, Any]]) -> Optional[str]:
    """Largest image of at least 400x300, preferring card-friendly (~16:9) ratios."""
    large = [
        img for img in images or []
        if isinstance(img, dict) and img.get("url")
        and (img.get("width") or 0) >= 400 and (img.get("height") or 0) >= 300
    ]
    ideal = [img for img in large if 1.3 <= img["width"] / img["height"] <= 1.8]
    candidates = ideal or large
    if not candidates:
        return None
    return max(candidates, key=lambda img: img["width"] * img["height"])["url"]


def extract_ticketmaster_event(event: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Pull the fields we use out of one Ticketmaster event."""
    address = "Venue TBD"
    venues = (event.get("_embedded") or {}).get("venues") or event.get("venues") or []
    if venues and isinstance(venues[0], dict):
        venue = venues[0]
        parts = [
            venue.get("name"),
            (venue.get("address") or {}).get("line1"),
            (venue.get("city") or {}).get("name"),
        ]
        address = ", ".join(p for p in parts if p) or address

    is_upcoming = None
    local_date = ((event.get("dates") or {}).get("start") or {}).get("localDate")
    if local_date:
        try:
            is_upcoming = date.fromisoformat(local_date) >= (today or datetime.now(timezone.utc).date())
        except ValueError:
            is_upcoming = None

    return {
        "id": event.get("id"),
        "name": event.get("name"),
        "address": address,
        "rating": DEFAULT_EVENT_RATING,
        "price": _price_from_ranges(event),
        "photo_url": _best_image(event.get("images") or []),
        "is_upcoming": is_upcoming,
    }


class TicketmasterAdapter(BaseAdapter):
    source_tag = "ticketmaster"
    category = EVENT

    def __init__(self, api_key: Optional[str] = TICKETMASTER_API_KEY, http_client: Optional[HttpClient] = None):
        super().__init__(api_key=api_key, http_client=http_client)

    async def _fetch_raw(self, location: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        per_keyword = max(1, math.ceil(limit / len(EVENT_KEYWORDS)))
        start_date_time = datetime.now(timezone.utc).strftime("%Y-%m-%dT00:00:00Z")
        raw_records: List[Dict[str, Any]] = []
        seen_ids = set()
        # Same show on several dates shows up as separate events; keep one per name
        seen_names = set()
        errors = 0
        for keyword in EVENT_KEYWORDS:
            params = {
                "apikey": self.api_key,
                "countryCode": "US",
                "city": location.split(",")[0].strip(),
                "radius": str(SEARCH_RADIUS_MILES),
                "unit": "miles",
                "size": str(PAGE_SIZE),
                "page": str(offset // PAGE_SIZE),
                "sort": "date,asc",
                "startDateTime": start_date_time,
                "keyword": keyword,
            }
            try:
                data = await self.http.get_json(TICKETMASTER_EVENTS_URL, params=params)
            except Exception as e:
                errors += 1
                logger.debug(f"Ticketmaster search '{keyword}' failed: {e}")
                continue
            events = (data.get("_embedded") or {}).get("events") or []
            added = 0
            for event in events:
                if not isinstance(event, dict):
                    continue
                extracted = extract_ticketmaster_event(event)
                if extracted["is_upcoming"] is False:
                    continue
                name_key = identity_key(extracted.get("name") or "")
                if event.get("id") in seen_ids or name_key in seen_names:
                    continue
                seen_ids.add(event.get("id"))
                seen_names.add(name_key)
                raw_records.append(extracted)
                added += 1
                if added >= per_keyword:
                    break
            if len(raw_records) >= limit:
                break

        if errors == len(EVENT_KEYWORDS):
            raise RuntimeError("all Ticketmaster searches failed")
        return raw_records
