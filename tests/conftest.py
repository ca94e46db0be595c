import asyncio
import random
from typing import Iterable, List, Optional

import pytest

from venuefeed.aggregator import SourceAggregator
from venuefeed.models import ACTIVITY, EVENT, RESTAURANT, VenueRecord
from venuefeed.normalizer import identity_key
from venuefeed.pagination import PaginationController
from venuefeed.pool_store import VenuePoolStore


def build_record(source_tag: str, native_id, name: str, category: str, **fields) -> VenueRecord:
    return VenueRecord(
        id=f"{source_tag}-{native_id}",
        name=name,
        normalized_identity=identity_key(name),
        category=category,
        source_tag=source_tag,
        **fields,
    )


class FakeAdapter:
    """
    In-memory provider adapter.

    Serves `capacity` numbered venues (or the given `names`), paging with `offset`,
    and records every call. With `fail=True` every fetch raises.
    """

    def __init__(
        self,
        source_tag: str,
        category: str,
        capacity: int = 1000,
        names: Optional[List[str]] = None,
        fail: bool = False,
    ):
        self.source_tag = source_tag
        self.category = category
        self.capacity = capacity
        self.names = names
        self.fail = fail
        self.calls: List[dict] = []

    def __repr__(self) -> str:
        return f"FakeAdapter({self.source_tag!r}, {self.category!r})"

    async def fetch(
        self,
        location: str,
        category: str,
        limit: int,
        exclude_ids: Iterable[str] = (),
        offset: int = 0,
    ) -> List[VenueRecord]:
        self.calls.append({"location": location, "category": category, "limit": limit, "offset": offset})
        # Yield like a real network call would
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError(f"{self.source_tag} is down")
        names = self.names
        if names is None:
            names = [f"{self.source_tag} {self.category} venue {i}" for i in range(self.capacity)]
        excluded = set(exclude_ids)
        records = [
            build_record(self.source_tag, i, names[i], self.category)
            for i in range(offset, min(offset + limit, len(names)))
        ]
        return [r for r in records if r.id not in excluded]


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def fake_adapter():
    return FakeAdapter


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def adapter_table():
    """Two restaurant sources, one activity source and two event sources, all healthy."""
    return {
        RESTAURANT: [(FakeAdapter("alpha", RESTAURANT), 0.7), (FakeAdapter("beta", RESTAURANT), 0.3)],
        ACTIVITY: [(FakeAdapter("gamma", ACTIVITY), 1.0)],
        EVENT: [(FakeAdapter("delta", EVENT), 0.7), (FakeAdapter("epsilon", EVENT), 0.3)],
    }


@pytest.fixture
def make_controller(clock):
    """Build a PaginationController over an adapter table with a fake clock."""

    def _make(adapters, store: Optional[VenuePoolStore] = None, **kwargs) -> PaginationController:
        aggregator = SourceAggregator(adapters=adapters, rng=random.Random(7))
        kwargs.setdefault("pool_target_size", 150)
        kwargs.setdefault("exhaustion_ratio", 0.5)
        kwargs.setdefault("rate_limit_max_calls", 1000)
        kwargs.setdefault("fuzzy_threshold", 0)
        return PaginationController(
            aggregator=aggregator,
            store=store or VenuePoolStore(ttl_seconds=1800, clock=clock),
            **kwargs,
        )

    return _make