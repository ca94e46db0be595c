"""
Normalization of provider records into VenueRecord, plus the identity key used for dedup.

Adapters pull the interesting fields out of their provider payload into a flat dict
(id, name, address, rating, price, photo_url, open_now, is_upcoming); normalize()
validates and cleans that dict into the shared VenueRecord shape.
"""
import hashlib
import re
from typing import Any, Dict, Optional

from rapidfuzz import utils as fuzz_utils

from venuefeed.models import CATEGORIES, VenueRecord

# Generic business words that don't help tell two venues apart
SUFFIX_WORDS = frozenset([
    "restaurant", "bar", "cafe", "grill", "kitchen", "diner", "bistro", "eatery",
    "dining", "lounge", "coffee", "shop", "store", "inc", "llc", "ltd", "co",
])
LEADING_ARTICLES = frozenset(["the", "a", "an"])

# Punctuation is removed, not spaced out, so "A&W" stays one word
_NON_ALPHANUMERIC = re.compile(r"[^\w\s]|_")


def identity_key(name: str) -> str:
    """
    Compute the canonical identity key for a venue name.

    Lower-cases, deletes punctuation (inside words too), drops leading articles
    and generic business suffix words, and joins what is left without spaces.

    Example: "The Blue Plate Diner" -> "blueplate"
    """
    if not name:
        return ""
    cleaned = fuzz_utils.default_process(_NON_ALPHANUMERIC.sub("", str(name)))
    words = cleaned.split()
    if not words:
        return ""

    stripped = list(words)
    while stripped and stripped[0] in LEADING_ARTICLES:
        stripped.pop(0)
    stripped = [w for w in stripped if w not in SUFFIX_WORDS]

    # A name made only of generic words ("The Bar") keeps its full form
    if not stripped:
        stripped = words
    return "".join(stripped)


def scale_rating(value: Any, scale: float = 5.0) -> Optional[float]:
    """
    Convert a provider-native rating onto 0-5.

    A present zero stays 0.0; missing, negative or non-numeric values return None.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if rating < 0:
        return None
    if scale and scale != 5.0:
        rating = rating * 5.0 / scale
    return round(max(0.0, min(rating, 5.0)), 2)


def parse_price_level(value: Any) -> int:
    """Parse 0-4 price levels from ints, floats or "$$"-style strings. Unknown -> 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        s = value.strip()
        if s and set(s) == {"$"}:
            return min(len(s), 4)
        try:
            value = float(s)
        except ValueError:
            return 0
    try:
        level = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(level, 4))


def _fallback_native_id(source_tag: str, name: str, address: str) -> str:
    raw = f"{source_tag}|{name}|{address}"
    return hashlib.sha256(raw.encode()).hexdigest()[:16]


def normalize(
    raw: Dict[str, Any],
    source_tag: str,
    category: str,
    rating_scale: float = 5.0,
) -> Optional[VenueRecord]:
    """
    Convert one extracted provider record into a VenueRecord.

    Args:
        raw: Flat dict of provider fields (id, name, address, rating, price, ...).
        source_tag: Adapter that produced the record; becomes the id prefix.
        category: One of restaurant / activity / event.
        rating_scale: Upper bound of the provider's rating scale (Foursquare uses 10).

    Returns:
        VenueRecord, or None if the record has no usable name.
    """
    if not isinstance(raw, dict):
        return None
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}")

    name = raw.get("name")
    name = " ".join(str(name).split()) if name is not None else ""
    key = identity_key(name)
    if not name or not key:
        return None

    address = " ".join(str(raw.get("address") or "").split())
    native_id = raw.get("id")
    native_id = str(native_id).strip() if native_id not in (None, "") else ""
    if not native_id:
        native_id = _fallback_native_id(source_tag, name, address)

    photo_url = raw.get("photo_url") or None
    open_now = raw.get("open_now")
    is_upcoming = raw.get("is_upcoming")

    return VenueRecord(
        id=f"{source_tag}-{native_id}",
        name=name,
        normalized_identity=key,
        category=category,
        address=address,
        rating=scale_rating(raw.get("rating"), rating_scale),
        price_level=parse_price_level(raw.get("price")),
        photo_url=str(photo_url) if photo_url else None,
        open_now=bool(open_now) if open_now is not None else None,
        is_upcoming=bool(is_upcoming) if is_upcoming is not None else None,
        source_tag=source_tag,
    )
