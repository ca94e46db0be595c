"""
Source aggregation: balanced per-category fan-out to provider adapters.

A request for N venues is split into per-category quotas, each category's quota
is split across its adapters by weight, all adapters run concurrently, and the
combined output is deduplicated and shuffled so categories interleave.
"""
import asyncio
import random
import time
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from venuefeed.config import CATEGORY_PRIORITY, FUZZY_DEDUP_THRESHOLD
from venuefeed.matchers import IdentityIndex, dedupe
from venuefeed.models import CATEGORIES, VenueRecord
from venuefeed.providers import AdapterTable, ProviderAdapter, build_default_adapters


def order_categories(categories: Iterable[str], priority: Sequence[str] = CATEGORY_PRIORITY) -> List[str]:
    """
    Order categories by the configured priority; unknown-to-priority categories go last.

    Raises:
        ValueError: If a category is not one of restaurant / activity / event.
    """
    wanted = list(dict.fromkeys(categories))
    for category in wanted:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
    ranked = [c for c in priority if c in wanted]
    return ranked + [c for c in wanted if c not in ranked]


def compute_quotas(total: int, categories: Sequence[str]) -> Dict[str, int]:
    """
    Split `total` evenly across `categories`.

    The remainder goes one each to the first `total % k` categories, so the
    quotas always sum to `total`.

    Example: compute_quotas(10, ["restaurant", "activity", "event"])
             -> {"restaurant": 4, "activity": 3, "event": 3}
    """
    if not categories or total <= 0:
        return {c: 0 for c in categories}
    base, remainder = divmod(total, len(categories))
    return {c: base + (1 if i < remainder else 0) for i, c in enumerate(categories)}


def split_quota(quota: int, weights: Sequence[float]) -> List[int]:
    """
    Split one category's quota across its adapters by weight.

    Floors each share, then hands the leftover one at a time to adapters in
    order, so the split sums to `quota` and favors the first (primary) adapter.

    Example: split_quota(50, [0.7, 0.3]) -> [35, 15]; split_quota(1, [0.7, 0.3]) -> [1, 0]
    """
    if quota <= 0 or not weights:
        return [0] * len(weights)
    total_weight = sum(max(w, 0.0) for w in weights)
    if total_weight <= 0:
        weights = [1.0] * len(weights)
        total_weight = float(len(weights))
    shares = [int(quota * max(w, 0.0) / total_weight) for w in weights]
    leftover = quota - sum(shares)
    i = 0
    while leftover > 0:
        shares[i % len(shares)] += 1
        leftover -= 1
        i += 1
    return shares


class SourceAggregator:
    """
    Fans out to provider adapters and merges their output into one balanced list.
    Adapter failures only shorten the result; aggregate() never raises for them.
    """

    def __init__(
        self,
        adapters: Optional[AdapterTable] = None,
        category_priority: Sequence[str] = CATEGORY_PRIORITY,
        fuzzy_threshold: int = FUZZY_DEDUP_THRESHOLD,
        rng: Optional[random.Random] = None,
    ):
        self.adapters: AdapterTable = adapters if adapters is not None else build_default_adapters()
        self.category_priority = list(category_priority)
        self.fuzzy_threshold = fuzzy_threshold
        self.rng = rng or random.Random()

    async def _call_adapter(
        self,
        adapter: ProviderAdapter,
        location: str,
        category: str,
        limit: int,
        exclude_ids: List[str],
        offset: int,
    ) -> List[VenueRecord]:
        try:
            return await adapter.fetch(location, category, limit, exclude_ids, offset=offset)
        except Exception as e:
            # Adapters are supposed to absorb their own failures; this catches ones that don't
            logger.warning(f"⚠️ Adapter {adapter!r} raised past its boundary: {e}")
            return []

    async def aggregate(
        self,
        location: str,
        total_requested: int,
        exclude_ids: Iterable[str] = (),
        categories: Optional[Iterable[str]] = None,
        offset: int = 0,
    ) -> List[VenueRecord]:
        """
        Fetch a balanced, deduplicated, shuffled batch of venues.

        Args:
            location (str): Location to search, e.g. "Minneapolis, MN".
            total_requested (int): Number of venues wanted across all categories.
            exclude_ids (Iterable[str]): Ids that must not be returned.
            categories (Optional[Iterable[str]]): Restrict to these categories (default: all).
            offset (int): Records already fetched for this location, passed on to paging providers.

        Returns:
            List[VenueRecord]: At most `total_requested` unique venues. Shorter when providers
                               under-deliver; empty when every provider fails.
        """
        if total_requested <= 0:
            return []
        ordered = order_categories(
            categories if categories is not None else CATEGORIES,
            self.category_priority,
        )
        quotas = compute_quotas(total_requested, ordered)
        excluded = list(dict.fromkeys(exclude_ids))
        logger.info(
            f"🔀 Aggregating {total_requested} venues for '{location}': "
            + ", ".join(f"{c}={q}" for c, q in quotas.items())
        )

        start = time.perf_counter()
        calls: List[Tuple[str, ProviderAdapter, int, int]] = []
        for category in ordered:
            entries = self.adapters.get(category) or []
            if not entries:
                logger.debug(f"No adapters registered for '{category}'")
                continue
            limits = split_quota(quotas[category], [weight for _, weight in entries])
            for (adapter, weight), limit in zip(entries, limits):
                if limit <= 0:
                    continue
                adapter_offset = int(round(offset * weight / len(ordered)))
                calls.append((category, adapter, limit, adapter_offset))

        results = await asyncio.gather(
            *[
                self._call_adapter(adapter, location, category, limit, excluded, adapter_offset)
                for category, adapter, limit, adapter_offset in calls
            ],
            return_exceptions=True,
        )

        by_category: Dict[str, List[VenueRecord]] = {c: [] for c in ordered}
        for (category, adapter, limit, _), result in zip(calls, results):
            if isinstance(result, BaseException):
                logger.warning(f"⚠️ Adapter {adapter!r} failed: {result}")
                continue
            if len(result) < limit:
                logger.debug(f"{adapter!r} under-delivered: {len(result)}/{limit}")
            by_category[category].extend(r for r in result if r.category == category)

        index = IdentityIndex(fuzzy_threshold=self.fuzzy_threshold)
        combined: List[VenueRecord] = []
        for category in ordered:
            unique = dedupe(by_category[category], excluded, index)
            kept = unique[: quotas[category]]
            if not kept:
                logger.warning(f"⚠️ No {category} venues from any provider for '{location}'")
            combined.extend(kept)

        self.rng.shuffle(combined)
        duration = time.perf_counter() - start
        logger.info(
            f"🔀 Aggregated {len(combined)}/{total_requested} venues for '{location}' in {duration:.2f}s"
        )
        return combined
