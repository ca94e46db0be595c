"""Mock adapter used when MOCK_PROVIDERS is set: deterministic venues without network access."""
from typing import Any, Dict, List

from venuefeed.providers.base import BaseAdapter

MOCK_CAPACITY = 200


class MockAdapter(BaseAdapter):
    """
    Serves `capacity` numbered venues per location, paging with `offset`.
    Names are unique per source so mock sources never dedup against each other.
    """
    requires_api_key = False

    def __init__(self, source_tag: str, category: str, capacity: int = MOCK_CAPACITY):
        super().__init__()
        self.source_tag = source_tag
        self.category = category
        self.capacity = capacity

    async def _fetch_raw(self, location: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        stop = min(offset + limit, self.capacity)
        label = self.source_tag.capitalize()
        return [
            {
                "id": f"mock-{i}",
                "name": f"Mock {label} {self.category.capitalize()} {i + 1}",
                "address": f"{location} {self.category.capitalize()} Venue {i + 1}",
                "rating": 4.2,
                "price": 2,
                "open_now": True,
                "is_upcoming": True if self.category == "event" else None,
            }
            for i in range(offset, stop)
        ]
