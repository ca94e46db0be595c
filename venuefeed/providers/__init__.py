"""
Provider adapters: Foursquare, Geoapify, Eventbrite, Ticketmaster.
Each provider fetches data in its own way but returns normalized VenueRecords,
so the aggregator and pool store stay provider-agnostic.
"""
from venuefeed.providers.base import BaseAdapter, ProviderAdapter
from venuefeed.providers.registry import AdapterTable, build_default_adapters

__all__ = [
    "AdapterTable",
    "BaseAdapter",
    "ProviderAdapter",
    "build_default_adapters",
]
