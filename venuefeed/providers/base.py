"""
Provider adapter contract and the shared failure boundary.

Every adapter fetches raw records its own way, but fetch() always returns
normalized VenueRecords and never raises: network errors, malformed payloads
and missing credentials all end up as an empty list plus a log line.
"""
import asyncio
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from loguru import logger

from venuefeed.clients import HttpClient
from venuefeed.models import VenueRecord
from venuefeed.normalizer import normalize


class ProviderAdapter(Protocol):
    """Interface for Foursquare, Geoapify, Eventbrite, etc. Same contract; only the fetch differs."""

    source_tag: str
    category: str

    async def fetch(
        self,
        location: str,
        category: str,
        limit: int,
        exclude_ids: Iterable[str] = (),
        offset: int = 0,
    ) -> List[VenueRecord]:
        ...


class BaseAdapter:
    """
    Shared fetch() for HTTP-backed adapters.

    Subclasses set `source_tag`, `category`, and implement `_fetch_raw`, which
    returns flat dicts ready for normalize().
    """
    source_tag: str = ""
    category: str = ""
    rating_scale: float = 5.0
    requires_api_key: bool = True

    def __init__(self, api_key: Optional[str] = None, http_client: Optional[HttpClient] = None):
        self.api_key = api_key
        self._http_client = http_client

    @property
    def http(self) -> HttpClient:
        if self._http_client is None:
            self._http_client = HttpClient()
        return self._http_client

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source_tag={self.source_tag!r}, category={self.category!r})"

    async def fetch(
        self,
        location: str,
        category: str,
        limit: int,
        exclude_ids: Iterable[str] = (),
        offset: int = 0,
    ) -> List[VenueRecord]:
        """
        Fetch up to `limit` normalized venues for a location.

        Args:
            location (str): City / location string, e.g. "Minneapolis, MN".
            category (str): Requested category; adapters only serve their own.
            limit (int): Maximum number of records to return.
            exclude_ids (Iterable[str]): Prefixed ids the caller already has.
            offset (int): Records already fetched for this location, for providers that page.

        Returns:
            List[VenueRecord]: Normalized records. Empty on any failure.
        """
        if limit <= 0:
            return []
        if category != self.category:
            logger.debug(f"{self!r} does not serve category '{category}'")
            return []
        if self.requires_api_key and not self.api_key:
            logger.warning(f"{self.source_tag} API key not configured, skipping {self.category} fetch")
            return []

        start = time.perf_counter()
        logger.debug(
            f"▶️ [{datetime.now().strftime('%H:%M:%S')}] START {self.source_tag} {self.category} "
            f"fetch for '{location}' (limit={limit}, offset={offset})"
        )
        try:
            raw_records = await self._fetch_raw(location, limit, offset)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ TIMEOUT {self.source_tag} {self.category} fetch for '{location}'")
            return []
        except Exception as e:
            logger.warning(f"⚠️ {self.source_tag} {self.category} fetch failed for '{location}': {e}")
            return []

        excluded = set(exclude_ids)
        records: List[VenueRecord] = []
        for raw in raw_records or []:
            try:
                record = normalize(raw, self.source_tag, self.category, self.rating_scale)
            except Exception as e:
                logger.debug(f"{self.source_tag} skip malformed record: {e}")
                continue
            if record is None or record.id in excluded:
                continue
            records.append(record)
            if len(records) >= limit:
                break

        duration = time.perf_counter() - start
        logger.debug(
            f"✅ [{datetime.now().strftime('%H:%M:%S')}] {self.source_tag} {self.category} returned "
            f"{len(records)}/{limit} for '{location}' in {duration:.2f}s"
        )
        return records

    async def _fetch_raw(self, location: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        raise NotImplementedError
