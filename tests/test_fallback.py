import pytest

from venuefeed.fallback import FallbackSynthesizer
from venuefeed.models import ACTIVITY, CATEGORIES, EVENT, RESTAURANT


@pytest.mark.parametrize("category", CATEGORIES)
def test_synthesized_venues_are_marked_as_fallback(category):
    venues = FallbackSynthesizer(seed=3).synthesize("Minneapolis, MN", category, 12)

    assert len(venues) == 12
    assert len({v.id for v in venues}) == 12
    for venue in venues:
        assert venue.id.startswith(f"fallback-{category}-")
        assert venue.is_fallback
        assert venue.source_tag == "fallback"
        assert venue.category == category
        assert venue.name.endswith(" in Minneapolis, MN")
        assert venue.address.endswith(", Minneapolis, MN")
        assert 3.5 <= venue.rating <= 5.0
        assert 1 <= venue.price_level <= 3
        assert venue.open_now in (True, False)


def test_only_events_are_upcoming():
    synthesizer = FallbackSynthesizer(seed=3)
    assert all(v.is_upcoming for v in synthesizer.synthesize("Duluth", EVENT, 5))
    assert all(v.is_upcoming is None for v in synthesizer.synthesize("Duluth", ACTIVITY, 5))


def test_same_seed_same_venues():
    first = FallbackSynthesizer(seed=42).synthesize("Duluth", RESTAURANT, 5)
    second = FallbackSynthesizer(seed=42).synthesize("Duluth", RESTAURANT, 5)
    assert [v.to_dict() for v in first] == [v.to_dict() for v in second]


def test_synthesize_edge_cases():
    synthesizer = FallbackSynthesizer(seed=1)
    assert synthesizer.synthesize("Duluth", RESTAURANT, 0) == []
    with pytest.raises(ValueError):
        synthesizer.synthesize("Duluth", "spa", 3)


def test_top_up_fills_an_empty_category(make_record):
    synthesizer = FallbackSynthesizer(seed=1)
    venues = [make_record("alpha", i, f"Venue {i}", RESTAURANT) for i in range(5)]

    padded = synthesizer.top_up(venues, "Duluth", EVENT, 5)

    assert padded[:5] == venues
    assert [v.category for v in padded[5:]] == [EVENT] * 5
    assert all(v.is_fallback for v in padded[5:])


def test_top_up_fills_a_near_empty_category(make_record):
    synthesizer = FallbackSynthesizer(seed=1, near_empty_ratio=0.3)
    venues = [make_record("delta", i, f"Show {i}", EVENT) for i in range(2)]

    padded = synthesizer.top_up(venues, "Duluth", EVENT, 10)

    assert len(padded) == 10
    assert sum(v.is_fallback for v in padded) == 8


def test_top_up_leaves_healthy_category_alone(make_record):
    synthesizer = FallbackSynthesizer(seed=1, near_empty_ratio=0.3)
    venues = [make_record("delta", i, f"Show {i}", EVENT) for i in range(4)]

    assert synthesizer.top_up(venues, "Duluth", EVENT, 10) == venues
