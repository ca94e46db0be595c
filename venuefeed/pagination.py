"""
Pagination over per-location venue pools ("load more").

get_next_venues() serves the next N unseen venues for a location, filling the
pool from the SourceAggregator on first use or after the TTL, and refilling it
at most once per call when the unseen remainder runs short.
"""
import contextlib
import time
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, Optional

from aiolimiter import AsyncLimiter
from loguru import logger

from venuefeed.aggregator import SourceAggregator
from venuefeed.config import (
    DEFAULT_BATCH_SIZE,
    EXHAUSTION_RATIO,
    FUZZY_DEDUP_THRESHOLD,
    POOL_SINGLE_FLIGHT,
    POOL_TARGET_SIZE,
    RATE_LIMIT_MAX_CALLS,
    RATE_LIMIT_MAX_CLIENTS,
    RATE_LIMIT_PERIOD_SECONDS,
)
from venuefeed.errors import InvalidRequestError, RateLimitExceeded
from venuefeed.models import CATEGORIES, PoolStats, VenueBatch
from venuefeed.pool_store import VenuePool, VenuePoolStore, location_key, pool_key


class PaginationController:
    """
    Serves batches of unseen venues per location from an injected VenuePoolStore.

    Args:
        aggregator (SourceAggregator): Source of new venues for pool fills.
        store (VenuePoolStore): Pool cache; owns TTL, eviction and per-key locks.
        pool_target_size (int): Venues requested from the aggregator per fill.
        exhaustion_ratio (float): A fill adding fewer than this share of the request marks the pool exhausted.
        rate_limit_max_calls (int): get_next_venues calls allowed per client key per period.
        rate_limit_period (float): Rate limit window in seconds.
        rate_limit_max_clients (int): Client keys tracked at once; the least recently seen is forgotten first.
        single_flight (bool): Serialize pool creation and refill per key.
    """

    def __init__(
        self,
        aggregator: Optional[SourceAggregator] = None,
        store: Optional[VenuePoolStore] = None,
        pool_target_size: int = POOL_TARGET_SIZE,
        exhaustion_ratio: float = EXHAUSTION_RATIO,
        rate_limit_max_calls: int = RATE_LIMIT_MAX_CALLS,
        rate_limit_period: float = RATE_LIMIT_PERIOD_SECONDS,
        rate_limit_max_clients: int = RATE_LIMIT_MAX_CLIENTS,
        single_flight: bool = POOL_SINGLE_FLIGHT,
        fuzzy_threshold: int = FUZZY_DEDUP_THRESHOLD,
    ):
        self.aggregator = aggregator or SourceAggregator()
        self.store = store or VenuePoolStore()
        self.pool_target_size = pool_target_size
        self.exhaustion_ratio = exhaustion_ratio
        self.rate_limit_max_calls = rate_limit_max_calls
        self.rate_limit_period = rate_limit_period
        self.rate_limit_max_clients = rate_limit_max_clients
        self.single_flight = single_flight
        self.fuzzy_threshold = fuzzy_threshold
        self._limiters: "OrderedDict[str, AsyncLimiter]" = OrderedDict()

    async def _check_rate_limit(self, client_key: str) -> None:
        if self.rate_limit_max_calls <= 0:
            return
        limiter = self._limiters.get(client_key)
        if limiter is None:
            limiter = self._limiters[client_key] = AsyncLimiter(
                self.rate_limit_max_calls, self.rate_limit_period
            )
            while self.rate_limit_max_clients > 0 and len(self._limiters) > self.rate_limit_max_clients:
                self._limiters.popitem(last=False)
        else:
            self._limiters.move_to_end(client_key)
        if not limiter.has_capacity():
            logger.warning(f"🚫 Rate limit exceeded for '{client_key}'")
            raise RateLimitExceeded(client_key, self.rate_limit_max_calls, self.rate_limit_period)
        await limiter.acquire()

    def _lock(self, key: str):
        if self.single_flight:
            return self.store.lock_for(key)
        return contextlib.nullcontext()

    async def _fill(self, pool: VenuePool) -> int:
        """Fetch one batch from the aggregator and append it to the pool. Returns the number added."""
        requested = self.pool_target_size
        categories = [pool.category] if pool.category else None
        batch = await self.aggregator.aggregate(
            pool.location,
            requested,
            exclude_ids=pool.ids,
            categories=categories,
            offset=pool.total_fetched,
        )
        added = pool.merge(batch)
        pool.total_fetched += len(added)
        pool.last_refreshed_at = self.store.now()
        if len(added) < requested * self.exhaustion_ratio:
            pool.exhausted = True
            logger.info(f"🪫 Pool '{pool.key}' exhausted ({len(added)}/{requested} added)")
        return len(added)

    async def _ensure_pool(self, key: str, location: str, category: Optional[str]) -> VenuePool:
        pool = self.store.get(key)
        if pool is not None and (pool.exhausted or not self.store.is_stale(pool)):
            return pool

        async with self._lock(key):
            # Another task may have built the pool while we waited
            pool = self.store.get(key)
            if pool is not None and (pool.exhausted or not self.store.is_stale(pool)):
                return pool
            if pool is not None:
                logger.info(f"♻️ Pool '{key}' is stale, replacing it")

            start = time.perf_counter()
            fresh = VenuePool(
                key=key,
                location=location.strip(),
                category=category,
                fuzzy_threshold=self.fuzzy_threshold,
            )
            added = await self._fill(fresh)
            self.store.put(fresh)
            duration = time.perf_counter() - start
            logger.info(f"📦 Created pool '{key}' with {added} venues in {duration:.2f}s")
            return fresh

    async def _refill(self, pool: VenuePool) -> int:
        async with self._lock(pool.key):
            if pool.exhausted:
                return 0
            added = await self._fill(pool)
            logger.info(f"📦 Refilled pool '{pool.key}': +{added} (size {len(pool.venues)})")
            return added

    async def get_next_venues(
        self,
        location: str,
        count: int = DEFAULT_BATCH_SIZE,
        exclude_ids: Optional[Iterable[str]] = (),
        category: Optional[str] = None,
        client_key: str = "default",
    ) -> VenueBatch:
        """
        Return the next `count` unseen venues for a location.

        Args:
            location (str): Location string; matched case-insensitively with whitespace collapsed.
            count (int): Maximum number of venues to return.
            exclude_ids (Optional[Iterable[str]]): Ids the caller has already shown.
            category (Optional[str]): Restrict the pool to one category.
            client_key (str): Key the rate limit is counted against.

        Returns:
            VenueBatch: Up to `count` venues and whether more may follow.

        Raises:
            InvalidRequestError: For an empty location, a non-positive count or an unknown category.
            RateLimitExceeded: When `client_key` is over its request budget.
        """
        if not isinstance(location, str) or not location_key(location):
            raise InvalidRequestError("location must be a non-empty string")
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise InvalidRequestError(f"count must be a positive integer, got {count!r}")
        if category is not None and category not in CATEGORIES:
            raise InvalidRequestError(f"Unknown category: {category}")

        await self._check_rate_limit(client_key)

        key = pool_key(location, category)
        logger.debug(
            f"▶️ [{datetime.now().strftime('%H:%M:%S')}] get_next_venues '{key}' "
            f"(count={count}, client={client_key})"
        )
        pool = await self._ensure_pool(key, location, category)
        excluded = set(exclude_ids or ())

        available = pool.unseen(excluded)
        if len(available) < count and not pool.exhausted:
            await self._refill(pool)
            # Re-read even when nothing was added: a concurrent call may have moved the cursor
            available = pool.unseen(excluded)

        selected = available[:count]
        if selected:
            pool.cursor = max(pool.cursor, pool.position_of(selected[-1].id) + 1)

        batch = VenueBatch(venues=selected, has_more=pool.has_more)
        logger.debug(
            f"✅ [{datetime.now().strftime('%H:%M:%S')}] '{key}' served {len(selected)}/{count}, "
            f"cursor {pool.cursor}/{len(pool.venues)}, has_more={batch.has_more}"
        )
        return batch

    def reset_pool(self, location: str) -> None:
        """Drop every cached pool for a location, whatever its category filter."""
        removed = self.store.delete_location(location)
        logger.info(f"🗑️ Reset {removed} pools for '{location_key(location)}'")

    def get_pool_stats(self, location: str, category: Optional[str] = None) -> Optional[PoolStats]:
        pool = self.store.peek(pool_key(location, category))
        if pool is None:
            return None
        return PoolStats(
            size=len(pool.venues),
            cursor_position=pool.cursor,
            has_more=pool.has_more,
            exhausted=pool.exhausted,
            total_fetched=pool.total_fetched,
            age_seconds=self.store.now() - pool.last_refreshed_at,
        )
