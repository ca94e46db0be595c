from typing import Iterable
from rapidfuzz import fuzz

# Short keys ("odo", "gem") only ever match exactly
MIN_FUZZY_KEY_LENGTH = 8


def is_near_duplicate(key: str, other: str, threshold: int) -> bool:
    """
    Decide whether two identity keys of the same category name the same venue.

    Args:
        key (str): Identity key of the candidate record.
        other (str): Identity key already seen.
        threshold (int): Minimum fuzz.ratio score (0-100). 0 disables fuzzy matching.

    Returns:
        bool: True for an exact match, or a close match between two long keys.
    """
    if key == other:
        return True
    if threshold <= 0:
        return False
    if len(key) <= MIN_FUZZY_KEY_LENGTH or len(other) <= MIN_FUZZY_KEY_LENGTH:
        return False
    return fuzz.ratio(key, other) >= threshold


def has_near_duplicate(key: str, seen_keys: Iterable[str], threshold: int) -> bool:
    """Return True if any of `seen_keys` is a near duplicate of `key`."""
    for other in seen_keys:
        # Early exit once we find one
        if is_near_duplicate(key, other, threshold):
            return True
    return False
