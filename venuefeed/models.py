"""
Typed data models for the venue feed.
All data structures shared between providers, the aggregator and the pool store are defined here.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

RESTAURANT = "restaurant"
ACTIVITY = "activity"
EVENT = "event"
CATEGORIES = (RESTAURANT, ACTIVITY, EVENT)

FALLBACK_PREFIX = "fallback-"


@dataclass
class VenueRecord:
    """One discoverable place or event, normalized from a provider record."""
    id: str
    name: str
    normalized_identity: str
    category: str
    address: str = ""
    rating: Optional[float] = None  # 0-5
    price_level: int = 0  # 0 = free/unknown, up to 4
    photo_url: Optional[str] = None
    open_now: Optional[bool] = None  # places: open right now
    is_upcoming: Optional[bool] = None  # events: dated in the future
    source_tag: str = ""

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.normalized_identity, self.category)

    @property
    def is_fallback(self) -> bool:
        return self.id.startswith(FALLBACK_PREFIX)

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing representation. The source tag stays internal."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "address": self.address,
            "rating": self.rating,
            "price_level": self.price_level,
            "photo_url": self.photo_url,
            "open_now": self.open_now,
            "is_upcoming": self.is_upcoming,
        }


@dataclass
class VenueBatch:
    """One page of the feed returned by the pagination controller."""
    venues: List[VenueRecord] = field(default_factory=list)
    has_more: bool = False


@dataclass
class PoolStats:
    """Diagnostic snapshot of a venue pool."""
    size: int
    cursor_position: int
    has_more: bool
    exhausted: bool = False
    total_fetched: int = 0
    age_seconds: float = 0.0
