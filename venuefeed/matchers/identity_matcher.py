from typing import Dict, Iterable, List, Optional, Set, Tuple
from loguru import logger

from venuefeed.config import FUZZY_DEDUP_THRESHOLD
from venuefeed.matchers.fuzzy_matcher import has_near_duplicate
from venuefeed.models import VenueRecord


class IdentityIndex:
    """
    Set of (identity key, category) pairs seen so far, with optional fuzzy matching.

    Records of different categories never collide: a restaurant and an event
    sharing a name are kept apart.
    """

    def __init__(self, records: Iterable[VenueRecord] = (), fuzzy_threshold: int = FUZZY_DEDUP_THRESHOLD):
        self.fuzzy_threshold = fuzzy_threshold
        self._keys: Set[Tuple[str, str]] = set()
        self._keys_by_category: Dict[str, List[str]] = {}
        for record in records:
            self.add(record)

    def __len__(self) -> int:
        return len(self._keys)

    def contains(self, record: VenueRecord) -> bool:
        if record.dedup_key in self._keys:
            return True
        if self.fuzzy_threshold <= 0:
            return False
        return has_near_duplicate(
            record.normalized_identity,
            self._keys_by_category.get(record.category, []),
            self.fuzzy_threshold,
        )

    def add(self, record: VenueRecord) -> bool:
        """Register a record. Returns False (and registers nothing) if it is a duplicate."""
        if self.contains(record):
            return False
        self._keys.add(record.dedup_key)
        self._keys_by_category.setdefault(record.category, []).append(record.normalized_identity)
        return True


def dedupe(
    records: Iterable[VenueRecord],
    exclude_ids: Iterable[str] = (),
    index: Optional[IdentityIndex] = None,
) -> List[VenueRecord]:
    """
    Drop duplicate and excluded records, keeping the first-seen record of each venue.

    Args:
        records (Iterable[VenueRecord]): Records in priority order.
        exclude_ids (Iterable[str]): Ids the caller has already seen.
        index (IdentityIndex): Existing identities to check against; updated in place.
                               A fresh index is used when omitted.

    Returns:
        List[VenueRecord]: Unique, non-excluded records in their original order.
    """
    if index is None:
        index = IdentityIndex()
    excluded = set(exclude_ids)
    seen_ids: Set[str] = set()
    unique: List[VenueRecord] = []
    dropped = 0
    for record in records:
        if record.id in excluded or record.id in seen_ids:
            dropped += 1
            continue
        if not index.add(record):
            dropped += 1
            continue
        seen_ids.add(record.id)
        unique.append(record)
    if dropped:
        logger.debug(f"🧹 Dedup dropped {dropped} duplicate/excluded records, kept {len(unique)}")
    return unique
