"""Eventbrite event adapter (primary event source, local/community events)."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from venuefeed.clients import HttpClient
from venuefeed.config import EVENTBRITE_PRIVATE_TOKEN, EVENTBRITE_SEARCH_URL
from venuefeed.models import EVENT
from venuefeed.providers.base import BaseAdapter

PAGE_SIZE = 50
EVENT_CATEGORIES = ["", "music", "food-and-drink", "arts", "community"]
# Eventbrite has no ratings; events get a flat default
DEFAULT_EVENT_RATING = 4.3


def _price_from_ticket(event: Dict[str, Any]) -> int:
    if event.get("is_free"):
        return 1
    availability = event.get("ticket_availability") or {}
    minimum = (availability.get("minimum_ticket_price") or {}).get("value")
    if minimum is None:
        return 2
    minimum = float(minimum)
    if minimum < 20:
        return 1
    if minimum < 50:
        return 2
    if minimum < 100:
        return 3
    return 4


def _is_upcoming(start_utc: Optional[str], now: Optional[datetime] = None) -> Optional[bool]:
    if not start_utc:
        return None
    try:
        start = datetime.fromisoformat(start_utc.replace("Z", "+00:00"))
    except ValueError:
        return None
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    return start > (now or datetime.now(timezone.utc))


def extract_eventbrite_event(event: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Pull the fields we use out of one Eventbrite event."""
    venue = event.get("venue") or {}
    address = (venue.get("address") or {}).get("localized_address_display") or venue.get("name") or "Location TBD"
    return {
        "id": event.get("id"),
        "name": (event.get("name") or {}).get("text"),
        "address": address,
        "rating": DEFAULT_EVENT_RATING,
        "price": _price_from_ticket(event),
        "photo_url": (event.get("logo") or {}).get("url"),
        "is_upcoming": _is_upcoming((event.get("start") or {}).get("utc"), now),
    }


class EventbriteAdapter(BaseAdapter):
    source_tag = "eventbrite"
    category = EVENT

    def __init__(self, api_key: Optional[str] = EVENTBRITE_PRIVATE_TOKEN, http_client: Optional[HttpClient] = None):
        super().__init__(api_key=api_key, http_client=http_client)

    async def _fetch_raw(self, location: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        page = offset // PAGE_SIZE + 1
        raw_records: List[Dict[str, Any]] = []
        seen_ids = set()
        errors = 0
        for categories in EVENT_CATEGORIES:
            params = {
                "location.address": location,
                "location.within": "50mi",
                "expand": "venue",
                "sort_by": "date",
                "status": "live",
                "page": str(page),
            }
            if categories:
                params["categories"] = categories
            try:
                data = await self.http.get_json(EVENTBRITE_SEARCH_URL, params=params, headers=headers)
            except Exception as e:
                errors += 1
                logger.debug(f"Eventbrite search '{categories or 'all'}' failed: {e}")
                continue
            for event in data.get("events") or []:
                if not isinstance(event, dict) or event.get("id") in seen_ids:
                    continue
                seen_ids.add(event.get("id"))
                raw_records.append(extract_eventbrite_event(event))
            if len(raw_records) >= limit:
                break

        if errors == len(EVENT_CATEGORIES):
            raise RuntimeError("all Eventbrite searches failed")
        return raw_records
