from venuefeed.matchers import IdentityIndex, dedupe, is_near_duplicate
from venuefeed.models import EVENT, RESTAURANT


def test_dedupe_keeps_first_seen_record(make_record):
    records = [
        make_record("foursquare", "1", "The Blue Plate Diner", RESTAURANT),
        make_record("geoapify", "9", "Blue Plate", RESTAURANT),
        make_record("geoapify", "10", "Red Stag Supperclub", RESTAURANT),
    ]

    unique = dedupe(records)

    assert [r.id for r in unique] == ["foursquare-1", "geoapify-10"]


def test_same_name_in_different_categories_is_kept(make_record):
    records = [
        make_record("geoapify", "1", "First Avenue", RESTAURANT),
        make_record("ticketmaster", "1", "First Avenue", EVENT),
    ]
    assert len(dedupe(records)) == 2


def test_dedupe_drops_excluded_and_repeated_ids(make_record):
    records = [
        make_record("geoapify", "1", "Hi-Lo Diner", RESTAURANT),
        make_record("geoapify", "2", "Young Joni", RESTAURANT),
        make_record("geoapify", "2", "Young Joni Pizza", RESTAURANT),
    ]

    unique = dedupe(records, exclude_ids=["geoapify-1"])

    assert [r.id for r in unique] == ["geoapify-2"]


def test_dedupe_updates_shared_index(make_record):
    index = IdentityIndex([make_record("foursquare", "1", "Young Joni", RESTAURANT)])

    unique = dedupe([make_record("geoapify", "5", "Young Joni Restaurant", RESTAURANT)], index=index)

    assert unique == []
    assert len(index) == 1


def test_fuzzy_matching_is_off_by_default():
    assert is_near_duplicate("spoonandstable", "spoonandstable", 0)
    assert not is_near_duplicate("spoonandstable", "spoonnstable", 0)


def test_fuzzy_matching_only_applies_to_long_keys():
    assert is_near_duplicate("spoonandstable", "spoonnstable", 85)
    assert not is_near_duplicate("bartmann", "bartman", 85)


def test_index_with_fuzzy_threshold(make_record):
    index = IdentityIndex(fuzzy_threshold=85)
    assert index.add(make_record("foursquare", "1", "Spoon and Stable", RESTAURANT))
    assert not index.add(make_record("geoapify", "2", "Spoon n Stable", RESTAURANT))
    assert index.add(make_record("ticketmaster", "3", "Spoon n Stable", EVENT))


def test_punctuated_names_stay_distinct(make_record):
    records = [
        make_record("foursquare", "1", "A&W Restaurant", RESTAURANT),
        make_record("geoapify", "2", "W Cafe", RESTAURANT),
    ]

    unique = dedupe(records)

    assert [r.normalized_identity for r in unique] == ["aw", "w"]
