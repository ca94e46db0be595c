import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from venuefeed.clients import ProviderHttpError
from venuefeed.models import ACTIVITY, EVENT, RESTAURANT
from venuefeed.providers import build_default_adapters
from venuefeed.providers.eventbrite import EventbriteAdapter, extract_eventbrite_event
from venuefeed.providers.foursquare import FoursquareRestaurantAdapter, extract_foursquare_place
from venuefeed.providers.geoapify import GeoapifyAdapter, extract_geoapify_place
from venuefeed.providers.mock import MockAdapter
from venuefeed.providers.ticketmaster import TicketmasterAdapter, extract_ticketmaster_event

FOURSQUARE_PLACE = {
    "fsq_id": "4b5f",
    "name": "The Blue Plate Diner",
    "location": {"formatted_address": "3006 Hennepin Ave, Minneapolis, MN"},
    "rating": 8.6,
    "price": 2,
    "photos": [{"prefix": "https://fastly.4sqi.net/img/general/", "suffix": "/abc.jpg"}],
    "hours": {"open_now": True},
}


def mock_http(**kwargs) -> MagicMock:
    http = MagicMock()
    http.get_json = AsyncMock(**kwargs)
    return http


def test_extract_foursquare_place():
    raw = extract_foursquare_place(FOURSQUARE_PLACE)
    assert raw["id"] == "4b5f"
    assert raw["address"] == "3006 Hennepin Ave, Minneapolis, MN"
    assert raw["photo_url"] == "https://fastly.4sqi.net/img/general/300x300/abc.jpg"
    assert raw["open_now"] is True


def test_extract_foursquare_place_builds_address_from_parts():
    raw = extract_foursquare_place({"fsq_id": "1", "name": "Hi-Lo", "location": {"address": "4020 E Lake St", "locality": "Minneapolis"}})
    assert raw["address"] == "4020 E Lake St, Minneapolis"
    assert raw["photo_url"] is None


def test_extract_geoapify_place():
    raw = extract_geoapify_place({
        "place_id": "51abc",
        "name": "Hi-Lo Diner",
        "formatted": "4020 E Lake St, Minneapolis, MN",
        "price_range": "$$ - $$$",
        "opening_hours": {"open_now": False},
    })
    assert raw["id"] == "51abc"
    assert raw["price"] == "$$"
    assert raw["open_now"] is False


def test_extract_eventbrite_event():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    raw = extract_eventbrite_event(
        {
            "id": "777",
            "name": {"text": "Jazz Night"},
            "start": {"utc": "2026-03-01T19:00:00Z"},
            "is_free": True,
            "venue": {"address": {"localized_address_display": "Dakota, Minneapolis"}},
            "logo": {"url": "https://img.evbuc.com/1.jpg"},
        },
        now=now,
    )
    assert raw["name"] == "Jazz Night"
    assert raw["address"] == "Dakota, Minneapolis"
    assert raw["price"] == 1
    assert raw["is_upcoming"] is True


def test_extract_ticketmaster_event():
    raw = extract_ticketmaster_event(
        {
            "id": "tm1",
            "name": "Twins vs Guardians",
            "dates": {"start": {"localDate": "2026-04-01"}},
            "priceRanges": [{"min": 20, "max": 40}],
            "images": [
                {"url": "small.jpg", "width": 100, "height": 56},
                {"url": "wide.jpg", "width": 1024, "height": 576},
                {"url": "square.jpg", "width": 2048, "height": 2048},
            ],
            "_embedded": {"venues": [{"name": "Target Field", "city": {"name": "Minneapolis"}}]},
        },
        today=date(2026, 5, 1),
    )
    assert raw["address"] == "Target Field, Minneapolis"
    assert raw["price"] == 3
    assert raw["photo_url"] == "wide.jpg"
    assert raw["is_upcoming"] is False


@pytest.mark.asyncio
async def test_foursquare_adapter_normalizes_results():
    http = mock_http(return_value={"results": [FOURSQUARE_PLACE]})
    adapter = FoursquareRestaurantAdapter(api_key="test-key", http_client=http)

    records = await adapter.fetch("Minneapolis, MN", RESTAURANT, 5)

    assert len(records) == 1
    assert records[0].id == "foursquare-4b5f"
    assert records[0].rating == 4.3
    assert records[0].normalized_identity == "blueplate"
    headers = http.get_json.call_args.kwargs["headers"]
    assert headers["Authorization"] == "test-key"


@pytest.mark.asyncio
async def test_adapter_skips_excluded_ids():
    http = mock_http(return_value={"results": [FOURSQUARE_PLACE]})
    adapter = FoursquareRestaurantAdapter(api_key="test-key", http_client=http)

    assert await adapter.fetch("Minneapolis, MN", RESTAURANT, 5, exclude_ids=["foursquare-4b5f"]) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [ProviderHttpError("https://api.example", 500, "boom"), asyncio.TimeoutError(), ValueError("bad json")],
)
async def test_adapter_failures_become_empty_lists(error):
    http = mock_http(side_effect=error)

    assert await FoursquareRestaurantAdapter(api_key="k", http_client=http).fetch("Minneapolis, MN", RESTAURANT, 5) == []
    assert await GeoapifyAdapter(ACTIVITY, api_key="k", http_client=http).fetch("Minneapolis, MN", ACTIVITY, 5) == []
    assert await EventbriteAdapter(api_key="k", http_client=http).fetch("Minneapolis, MN", EVENT, 5) == []
    assert await TicketmasterAdapter(api_key="k", http_client=http).fetch("Minneapolis, MN", EVENT, 5) == []


@pytest.mark.asyncio
async def test_adapter_without_api_key_makes_no_calls():
    http = mock_http(return_value={})
    adapter = TicketmasterAdapter(api_key=None, http_client=http)

    assert await adapter.fetch("Minneapolis, MN", EVENT, 5) == []
    assert not http.get_json.called


@pytest.mark.asyncio
async def test_adapter_ignores_other_categories():
    http = mock_http(return_value={})
    adapter = EventbriteAdapter(api_key="k", http_client=http)

    assert await adapter.fetch("Minneapolis, MN", RESTAURANT, 5) == []
    assert not http.get_json.called


@pytest.mark.asyncio
async def test_geoapify_adapter_geocodes_then_pages():
    http = mock_http(side_effect=[
        {"features": [{"properties": {"lon": -93.26, "lat": 44.97}}]},
        {"features": [
            {"properties": {"place_id": "g1", "name": "Walker Art Center", "formatted": "725 Vineland Pl"}},
            {"properties": {"place_id": "g2"}},
        ]},
    ])
    adapter = GeoapifyAdapter(ACTIVITY, api_key="k", http_client=http)

    records = await adapter.fetch("Minneapolis, MN", ACTIVITY, 10, offset=40)

    assert [r.id for r in records] == ["geoapify-g1"]
    params = http.get_json.call_args_list[1].kwargs["params"]
    assert params["offset"] == "40"
    assert params["filter"] == "circle:-93.26,44.97,10000"


def test_geoapify_rejects_event_category():
    with pytest.raises(ValueError):
        GeoapifyAdapter(EVENT, api_key="k", http_client=MagicMock())


@pytest.mark.asyncio
async def test_ticketmaster_adapter_drops_past_and_repeated_shows():
    events = [
        {"id": "1", "name": "Hamilton", "dates": {"start": {"localDate": "2000-01-01"}}},
        {"id": "2", "name": "Wicked", "dates": {"start": {"localDate": "2099-01-01"}}},
        {"id": "3", "name": "Wicked", "dates": {"start": {"localDate": "2099-01-02"}}},
    ]
    http = mock_http(return_value={"_embedded": {"events": events}})
    adapter = TicketmasterAdapter(api_key="k", http_client=http)

    records = await adapter.fetch("Minneapolis, MN", EVENT, 10)

    assert [r.id for r in records] == ["ticketmaster-2"]
    assert records[0].is_upcoming is True


@pytest.mark.asyncio
async def test_mock_adapter_pages_with_offset():
    adapter = MockAdapter("foursquare", RESTAURANT, capacity=200)

    records = await adapter.fetch("Duluth", RESTAURANT, 5, offset=198)

    assert [r.id for r in records] == ["foursquare-mock-198", "foursquare-mock-199"]


def test_default_adapter_table():
    table = build_default_adapters(mock=False, http_client=MagicMock())

    assert set(table) == {RESTAURANT, ACTIVITY, EVENT}
    assert [type(a).__name__ for a, _ in table[RESTAURANT]] == ["FoursquareRestaurantAdapter", "GeoapifyAdapter"]
    assert [w for _, w in table[RESTAURANT]] == [0.7, 0.3]
    assert [type(a).__name__ for a, _ in table[EVENT]] == ["EventbriteAdapter", "TicketmasterAdapter"]
    assert all(isinstance(a, MockAdapter) for entries in build_default_adapters(mock=True).values() for a, _ in entries)
