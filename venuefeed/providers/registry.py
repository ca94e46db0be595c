"""Default adapter registry: which sources serve each category, and their quota weights."""
from typing import Dict, List, Optional, Tuple

from loguru import logger

from venuefeed.clients import HttpClient
from venuefeed.config import MOCK_PROVIDERS, PRIMARY_SOURCE_SHARE
from venuefeed.models import ACTIVITY, EVENT, RESTAURANT
from venuefeed.providers.base import ProviderAdapter
from venuefeed.providers.eventbrite import EventbriteAdapter
from venuefeed.providers.foursquare import FoursquareRestaurantAdapter
from venuefeed.providers.geoapify import GeoapifyAdapter
from venuefeed.providers.mock import MockAdapter
from venuefeed.providers.ticketmaster import TicketmasterAdapter

# category -> [(adapter, weight)], higher-coverage source first
AdapterTable = Dict[str, List[Tuple[ProviderAdapter, float]]]

SECONDARY_SOURCE_SHARE = round(1.0 - PRIMARY_SOURCE_SHARE, 4)


def build_default_adapters(
    mock: bool = MOCK_PROVIDERS,
    http_client: Optional[HttpClient] = None,
) -> AdapterTable:
    """
    Build the adapter table used by the SourceAggregator.

    Args:
        mock (bool): Serve deterministic mock venues instead of calling providers.
        http_client (Optional[HttpClient]): Shared client; the singleton is used when omitted.

    Returns:
        AdapterTable: Adapters and quota weights per category.
    """
    if mock:
        logger.info("Using mock provider adapters")
        return {
            RESTAURANT: [
                (MockAdapter("foursquare", RESTAURANT), PRIMARY_SOURCE_SHARE),
                (MockAdapter("geoapify", RESTAURANT), SECONDARY_SOURCE_SHARE),
            ],
            ACTIVITY: [(MockAdapter("geoapify", ACTIVITY), 1.0)],
            EVENT: [
                (MockAdapter("eventbrite", EVENT), PRIMARY_SOURCE_SHARE),
                (MockAdapter("ticketmaster", EVENT), SECONDARY_SOURCE_SHARE),
            ],
        }

    return {
        RESTAURANT: [
            (FoursquareRestaurantAdapter(http_client=http_client), PRIMARY_SOURCE_SHARE),
            (GeoapifyAdapter(RESTAURANT, http_client=http_client), SECONDARY_SOURCE_SHARE),
        ],
        ACTIVITY: [(GeoapifyAdapter(ACTIVITY, http_client=http_client), 1.0)],
        EVENT: [
            (EventbriteAdapter(http_client=http_client), PRIMARY_SOURCE_SHARE),
            (TicketmasterAdapter(http_client=http_client), SECONDARY_SOURCE_SHARE),
        ],
    }
