"""Client singletons for external API interactions."""
from venuefeed.clients.http_client import HttpClient, ProviderHttpError

__all__ = ["HttpClient", "ProviderHttpError"]
