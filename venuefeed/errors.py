"""Errors that are allowed to reach callers of the venue feed."""


class VenueFeedError(Exception):
    """Base class for venue feed errors."""


class InvalidRequestError(VenueFeedError, ValueError):
    """Raised for local misuse, e.g. a missing location or a non-positive count."""


class RateLimitExceeded(VenueFeedError):
    """Raised when a caller exceeds the request budget for the feed entry point."""

    def __init__(self, key: str, max_calls: int, period: float):
        self.key = key
        self.max_calls = max_calls
        self.period = period
        super().__init__(
            f"Rate limit exceeded for '{key}': max {max_calls} requests per {period:g}s. "
            f"Please try again later."
        )
