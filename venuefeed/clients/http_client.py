"""
Singleton HTTP client for provider APIs, with rate limiting using aiolimiter.
"""
from aiohttp import ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from typing import Dict, Any, Optional
from loguru import logger

from venuefeed.config import CONCURRENCY, HTTP_TIMEOUT_SECONDS


class ProviderHttpError(Exception):
    """Non-2xx response from a provider API."""

    def __init__(self, url: str, status: int, detail: str = ""):
        self.url = url
        self.status = status
        super().__init__(f"HTTP {status} from {url}: {detail[:200]}")


class HttpClient:
    """
    Singleton HTTP client shared by all provider adapters.
    One aiohttp session per process; AsyncLimiter caps outbound requests per second.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not HttpClient._initialized:
            self.timeout = ClientTimeout(total=HTTP_TIMEOUT_SECONDS)
            # Token bucket: CONCURRENCY requests per second across all providers
            self.rate_limiter = AsyncLimiter(max_rate=CONCURRENCY, time_period=1.0)
            self._session: Optional[ClientSession] = None
            HttpClient._initialized = True

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=self.timeout)
        return self._session

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Send a GET request and return the parsed JSON body.

        Args:
            url: Target URL to request.
            params: Optional query string parameters.
            headers: Optional HTTP headers.

        Returns:
            Parsed JSON response as a dictionary.

        Raises:
            ProviderHttpError: On a non-2xx response.
        """
        async with self.rate_limiter:
            session = await self._get_session()
            try:
                async with session.get(url, params=params, headers=headers) as resp:
                    if resp.status >= 400:
                        detail = await resp.text()
                        raise ProviderHttpError(url, resp.status, detail)
                    data = await resp.json(content_type=None)
                    return data if isinstance(data, dict) else {}
            except Exception as e:
                logger.debug(f"⚠️ GET {url} failed: {e}")
                raise

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
