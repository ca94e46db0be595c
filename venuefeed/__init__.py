"""
venuefeed: aggregated, deduplicated, paginated venue feeds per location.
"""
from venuefeed.aggregator import SourceAggregator
from venuefeed.errors import InvalidRequestError, RateLimitExceeded, VenueFeedError
from venuefeed.fallback import FallbackSynthesizer
from venuefeed.models import PoolStats, VenueBatch, VenueRecord
from venuefeed.pagination import PaginationController
from venuefeed.pool_store import VenuePool, VenuePoolStore

__all__ = [
    "FallbackSynthesizer",
    "InvalidRequestError",
    "PaginationController",
    "PoolStats",
    "RateLimitExceeded",
    "SourceAggregator",
    "VenueBatch",
    "VenueFeedError",
    "VenuePool",
    "VenuePoolStore",
    "VenueRecord",
]
