"""
Fallback venue synthesis.

Generates clearly synthetic placeholder venues for a category that came back
empty or near-empty. Synthetic venues carry the "fallback-" id prefix, are
never stored in a pool, and are only produced when a caller asks for them.
"""
from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from venuefeed.config import FALLBACK_NEAR_EMPTY_RATIO
from venuefeed.models import ACTIVITY, CATEGORIES, EVENT, FALLBACK_PREFIX, RESTAURANT, VenueRecord
from venuefeed.normalizer import identity_key

FALLBACK_SOURCE = "fallback"

NAME_PREFIXES = ["The", "A", ""]
NAME_FRAGMENTS = {
    RESTAURANT: (
        ["Italian", "Mexican", "Japanese", "Chinese", "American", "French", "Thai", "Indian", "Mediterranean"],
        ["Restaurant", "Bistro", "Cafe", "Kitchen", "Dining", "Eatery", "Grill", "Place"],
    ),
    ACTIVITY: (
        ["Adventure", "Entertainment", "Experience", "Fun", "Exciting", "Amazing", "Wonderful", "Fantastic"],
        ["Center", "Zone", "Place", "Hub", "Spot", "Area", "Destination", "Attraction"],
    ),
    EVENT: (
        ["Concert", "Show", "Theater", "Festival", "Performance", "Comedy", "Music", "Live"],
        ["Hall", "Center", "Theater", "Arena", "Venue", "Stage", "Auditorium", "House"],
    ),
}
STREET_NAMES = [
    "Main St", "Oak Ave", "Maple Dr", "Cedar Ln", "Pine St", "Elm St", "Washington Ave", "Park Rd",
    "Lake Dr", "River Rd", "Hill St", "Valley Rd", "Forest Ave", "Beach Dr", "Mountain View",
]

MIN_RATING = 3.5
MAX_RATING = 5.0
OPEN_NOW_PROBABILITY = 0.8


class FallbackSynthesizer:
    """
    Procedural placeholder venues.

    Args:
        seed (Optional[int]): Seed for the numpy generator; the same seed yields the same venues.
        near_empty_ratio (float): top_up() only fills a category holding less than this share of the request.
    """

    def __init__(self, seed: Optional[int] = None, near_empty_ratio: float = FALLBACK_NEAR_EMPTY_RATIO):
        self.rng = np.random.default_rng(seed)
        self.near_empty_ratio = near_empty_ratio

    def _pick(self, options: Sequence[str]) -> str:
        return options[int(self.rng.integers(len(options)))]

    def _name(self, category: str, location: str) -> str:
        types, suffixes = NAME_FRAGMENTS[category]
        name = f"{self._pick(NAME_PREFIXES)} {self._pick(types)} {self._pick(suffixes)}".strip()
        return f"{name} in {location}"

    def _address(self, location: str) -> str:
        number = int(self.rng.integers(1, 1000))
        return f"{number} {self._pick(STREET_NAMES)}, {location}"

    def _venue_id(self, category: str) -> str:
        token = int(self.rng.integers(0, 2 ** 48))
        return f"{FALLBACK_PREFIX}{category}-{token:012x}"

    def synthesize(self, location: str, category: str, count: int) -> List[VenueRecord]:
        """
        Generate `count` synthetic venues for a category.

        Args:
            location (str): Location used in names and addresses.
            category (str): restaurant / activity / event.
            count (int): Number of venues to generate.

        Returns:
            List[VenueRecord]: Venues with "fallback-<category>-" ids and source_tag "fallback".

        Raises:
            ValueError: If the category is unknown.
        """
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        if count <= 0:
            return []

        location = " ".join((location or "").split()) or "your area"
        venues: List[VenueRecord] = []
        seen_ids = set()
        while len(venues) < count:
            venue_id = self._venue_id(category)
            if venue_id in seen_ids:
                continue
            seen_ids.add(venue_id)
            name = self._name(category, location)
            venues.append(
                VenueRecord(
                    id=venue_id,
                    name=name,
                    normalized_identity=identity_key(name),
                    category=category,
                    address=self._address(location),
                    rating=round(float(self.rng.uniform(MIN_RATING, MAX_RATING)), 1),
                    price_level=int(self.rng.integers(1, 4)),
                    open_now=bool(self.rng.random() < OPEN_NOW_PROBABILITY),
                    is_upcoming=True if category == EVENT else None,
                    source_tag=FALLBACK_SOURCE,
                )
            )
        logger.info(f"🧪 Synthesized {count} fallback {category} venues for '{location}'")
        return venues

    def top_up(
        self,
        venues: List[VenueRecord],
        location: str,
        category: str,
        requested: int,
    ) -> List[VenueRecord]:
        """
        Pad a category's result with synthetic venues when it came back empty or near-empty.

        Returns:
            List[VenueRecord]: `venues` unchanged when it holds at least near_empty_ratio x requested
                               real venues of the category; otherwise `venues` plus enough synthetic
                               venues to reach `requested` for that category.
        """
        have = sum(1 for v in venues if v.category == category)
        if requested <= 0 or (have > 0 and have >= requested * self.near_empty_ratio):
            return list(venues)
        shortfall = requested - have
        logger.warning(f"⚠️ Only {have}/{requested} {category} venues for '{location}', padding with fallbacks")
        return list(venues) + self.synthesize(location, category, shortfall)
