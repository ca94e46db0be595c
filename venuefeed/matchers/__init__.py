"""Venue identity matching used for deduplication."""
from venuefeed.matchers.identity_matcher import IdentityIndex, dedupe
from venuefeed.matchers.fuzzy_matcher import is_near_duplicate

__all__ = ["IdentityIndex", "dedupe", "is_near_duplicate"]
