"""
In-memory venue pools, one per (location, optional category filter).

A pool is an ever-growing, deduplicated list of venues plus a read cursor and
freshness/exhaustion metadata. The store is a plain object injected into the
pagination controller; nothing is module-global.
"""
import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

from loguru import logger

from venuefeed.config import (
    FUZZY_DEDUP_THRESHOLD,
    POOL_IDLE_EVICT_TTLS,
    POOL_MAX_ENTRIES,
    POOL_TTL_SECONDS,
)
from venuefeed.matchers import IdentityIndex
from venuefeed.models import VenueRecord

ALL_CATEGORIES = "*"


def location_key(location: str) -> str:
    """Case-insensitive, trimmed, whitespace-collapsed location."""
    return " ".join((location or "").split()).lower()


def pool_key(location: str, category: Optional[str] = None) -> str:
    return f"{location_key(location)}::{category or ALL_CATEGORIES}"


@dataclass
class VenuePool:
    """Cached venues for one location plus pagination state."""
    key: str
    location: str
    category: Optional[str] = None
    venues: List[VenueRecord] = field(default_factory=list)
    cursor: int = 0
    total_fetched: int = 0
    last_refreshed_at: float = 0.0
    last_accessed_at: float = 0.0
    exhausted: bool = False
    fuzzy_threshold: int = FUZZY_DEDUP_THRESHOLD
    _index: IdentityIndex = field(init=False, repr=False)
    _positions: Dict[str, int] = field(init=False, repr=False, default_factory=dict)

    def __post_init__(self):
        self._index = IdentityIndex(fuzzy_threshold=self.fuzzy_threshold)
        existing, self.venues = self.venues, []
        self.merge(existing)

    @property
    def has_more(self) -> bool:
        return self.cursor < len(self.venues) or not self.exhausted

    @property
    def ids(self) -> List[str]:
        return [v.id for v in self.venues]

    def merge(self, records: Iterable[VenueRecord]) -> List[VenueRecord]:
        """
        Append records whose identity is new to the whole pool. First-seen wins.

        Returns:
            List[VenueRecord]: The records actually appended.
        """
        added: List[VenueRecord] = []
        for record in records:
            if record.id in self._positions:
                continue
            if not self._index.add(record):
                continue
            self._positions[record.id] = len(self.venues)
            self.venues.append(record)
            added.append(record)
        return added

    def position_of(self, venue_id: str) -> int:
        """Index of a venue in the pool, or -1."""
        return self._positions.get(venue_id, -1)

    def unseen(self, exclude_ids: Optional[Set[str]] = None) -> List[VenueRecord]:
        """Venues at or after the cursor, minus excluded ids."""
        remaining = self.venues[self.cursor:]
        if not exclude_ids:
            return list(remaining)
        return [v for v in remaining if v.id not in exclude_ids]


class VenuePoolStore:
    """
    Keyed map of venue pools with TTL staleness, an LRU size cap and idle eviction.

    Pools untouched for `idle_evict_ttls` x TTL are swept on access, and the
    least recently used pool is dropped once `max_entries` is exceeded.
    """

    def __init__(
        self,
        ttl_seconds: float = POOL_TTL_SECONDS,
        max_entries: int = POOL_MAX_ENTRIES,
        idle_evict_ttls: int = POOL_IDLE_EVICT_TTLS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.idle_evict_ttls = idle_evict_ttls
        self.clock = clock
        self._pools: "OrderedDict[str, VenuePool]" = OrderedDict()
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._pools)

    def __contains__(self, key: str) -> bool:
        return key in self._pools

    def now(self) -> float:
        return self.clock()

    def is_stale(self, pool: VenuePool) -> bool:
        return self.now() - pool.last_refreshed_at >= self.ttl_seconds

    def peek(self, key: str) -> Optional[VenuePool]:
        """Look up a pool without touching its LRU position or access time."""
        return self._pools.get(key)

    def get(self, key: str) -> Optional[VenuePool]:
        self.sweep()
        pool = self._pools.get(key)
        if pool is not None:
            pool.last_accessed_at = self.now()
            self._pools.move_to_end(key)
        return pool

    def put(self, pool: VenuePool) -> None:
        pool.last_accessed_at = self.now()
        self._pools[pool.key] = pool
        self._pools.move_to_end(pool.key)
        while self.max_entries > 0 and len(self._pools) > self.max_entries:
            evicted_key, _ = self._pools.popitem(last=False)
            self._locks.pop(evicted_key, None)
            logger.info(f"🗑️ Evicted least recently used pool '{evicted_key}'")

    def delete_location(self, location: str) -> int:
        """Remove every pool (all category filters) for a location. Returns how many were removed."""
        prefix = f"{location_key(location)}::"
        keys = [k for k in self._pools if k.startswith(prefix)]
        for k in keys:
            del self._pools[k]
            self._locks.pop(k, None)
        return len(keys)

    def lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def sweep(self) -> int:
        """Evict pools idle for longer than idle_evict_ttls x TTL. Returns how many were evicted."""
        if self.idle_evict_ttls <= 0:
            return 0
        cutoff = self.now() - self.idle_evict_ttls * self.ttl_seconds
        idle = [k for k, p in self._pools.items() if p.last_accessed_at < cutoff]
        for k in idle:
            del self._pools[k]
            self._locks.pop(k, None)
        if idle:
            logger.info(f"🗑️ Swept {len(idle)} idle pools")
        return len(idle)
