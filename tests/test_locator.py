"""Tests for duplicate lookup."""

import pytest

from conftest import make_candidate, make_source
from database.models import Listing
from ingestion.locator import DuplicateLocator, build_identity_key


@pytest.fixture
def locator():
    return DuplicateLocator(radius_meters=50)


@pytest.fixture
def seeded(coordinator, clock):
    """Three distinct listings sharing one street."""
    with_unit = coordinator.ingest(make_candidate())
    clock.advance(minutes=1)
    without_unit = coordinator.ingest(make_candidate(unit=None, source=make_source('Zillow', '10')))
    clock.advance(minutes=1)
    far_away = coordinator.ingest(make_candidate(
        coordinates=[-73.95, 40.65], source=make_source('Craigslist', '20')
    ))
    return with_unit, without_unit, far_away


class TestDuplicateLocator:
    def test_matches_normalized_street_and_unit(self, store, locator, seeded):
        with store.session_scope() as session:
            found = locator.find_duplicates(session, '123 MAIN STREET', 'Apt 4B', (-74.0061, 40.71281))
        assert [listing.id for listing in found] == [seeded[0].id]

    def test_no_unit_does_not_match_unit(self, store, locator, seeded):
        with store.session_scope() as session:
            found = locator.find_duplicates(session, '123 Main St', None, (-74.006, 40.7128))
        assert [listing.id for listing in found] == [seeded[1].id]

    def test_outside_radius(self, store, locator, seeded):
        with store.session_scope() as session:
            # About 111 m north of the seeded listings
            found = locator.find_duplicates(session, '123 Main St', '4B', (-74.006, 40.7138))
        assert found == []

    def test_radius_override(self, store, locator, seeded):
        with store.session_scope() as session:
            found = locator.find_duplicates(session, '123 Main St', '4B', (-74.006, 40.7138), radius_meters=200)
        assert [listing.id for listing in found] == [seeded[0].id]

    def test_different_street(self, store, locator, seeded):
        with store.session_scope() as session:
            assert locator.find_duplicates(session, '124 Main St', '4B', (-74.006, 40.7128)) == []

    @pytest.mark.parametrize('street, unit, coordinates', [
        ('123 Main Street', '4B', (-74.006, 40.7128)),
        ('123 main st', None, (-74.006, 40.7128)),
        ('123 Main St', '4B', (-73.95, 40.65)),
        ('123 Main St', '5C', (-74.006, 40.7128)),
        ('99 Other Ave', None, (0, 0)),
    ])
    def test_scan_matches_indexed_lookup(self, store, locator, seeded, street, unit, coordinates):
        with store.session_scope() as session:
            indexed = locator.find_duplicates(session, street, unit, coordinates)
            scanned = locator.find_duplicates(session, street, unit, coordinates, scan=True)
        assert [listing.id for listing in indexed] == [listing.id for listing in scanned]

    def test_multiple_matches_ordered_by_created_at(self, store, locator, coordinator, clock):
        first = coordinator.ingest(make_candidate())
        # A second record for the same unit, as left behind by bad data
        with store.session_scope() as session:
            listing = session.get(Listing, first.id)
            listing.identity_key = 'legacy-import'
        clock.advance(hours=1)
        with store.session_scope() as session:
            second = coordinator._create(session, coordinator.validate(
                make_candidate(source=make_source('Zillow', '2'))
            ), clock())

        with store.session_scope() as session:
            found = locator.find_duplicates(session, '123 Main St', '4B', (-74.006, 40.7128))
        assert [listing.id for listing in found] == [first.id, second.id]

    def test_read_only(self, store, locator, seeded):
        before = [(listing.id, listing.version) for listing in store.all_listings()]
        with store.session_scope() as session:
            locator.find_duplicates(session, '123 Main St', '4B', (-74.006, 40.7128))
        after = [(listing.id, listing.version) for listing in store.all_listings()]
        assert before == after


class TestStandaloneLookup:
    def test_coordinator_find_duplicates(self, coordinator, seeded):
        found = coordinator.find_duplicates('123 Main Street', '#4B', (-74.006, 40.7128))
        assert [listing.id for listing in found] == [seeded[0].id]
        # Returned rows stay readable after their session is closed
        assert found[0].sources[0].source_name == 'StreetEasy'


def test_identity_key_separates_missing_unit():
    with_unit = build_identity_key('123 main st', '-', (-74.006, 40.7128), 50)
    without_unit = build_identity_key('123 main st', None, (-74.006, 40.7128), 50)
    assert with_unit != without_unit
