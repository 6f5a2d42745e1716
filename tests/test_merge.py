"""Tests for the merge conflict policy."""

from datetime import date, datetime

import pytest

from conftest import make_candidate, make_source
from database.models import Listing
from ingestion.errors import NotFound
from ingestion.merge import ListingMerger, union
from ingestion.schemas import ListingUpdate


@pytest.fixture
def merger():
    return ListingMerger()


@pytest.fixture
def listing(coordinator):
    return coordinator.ingest(make_candidate(
        pet_policy={'dogs_allowed': True, 'cats_allowed': False, 'pet_deposit': 300},
        broker_fee={'required': True, 'amount': 1500},
        utilities={'water': True},
    ))


def update(**fields):
    fields.setdefault('source', make_source('Zillow', '1'))
    return ListingUpdate.model_validate(fields)


def merge(store, merger, listing_id, incoming, now):
    with store.session_scope() as session:
        return merger.merge(session, listing_id, incoming, now)


class TestIdentityFields:
    def test_created_at_preserved_and_updated_at_advances(self, store, merger, listing, clock):
        t0 = listing.created_at
        t1 = clock.advance(days=2)

        merged = merge(store, merger, listing.id, update(price=2100), t1)

        assert merged.created_at == t0
        assert merged.updated_at >= t1
        assert store.get(listing.id).created_at == t0

    def test_updated_at_never_before_created_at(self, store, merger, listing):
        earlier = datetime(2000, 1, 1)
        merged = merge(store, merger, listing.id, update(price=2100), earlier)
        assert merged.updated_at >= merged.created_at

    def test_missing_target(self, store, merger):
        with pytest.raises(NotFound):
            merge(store, merger, 'does-not-exist', update(price=1), datetime.now())


class TestSources:
    def test_new_source_appended(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(), clock.advance(hours=1))
        assert [(s.source_name, s.source_id) for s in merged.sources] == [('StreetEasy', '1'), ('Zillow', '1')]

    def test_known_source_updated_in_place(self, store, merger, listing, clock):
        merge(store, merger, listing.id, update(), clock.advance(hours=1))
        rescraped_at = clock.advance(hours=5)
        merged = merge(store, merger, listing.id, update(source=make_source('StreetEasy', '1', rescraped_at)), rescraped_at)

        assert len(merged.sources) == 2
        street_easy = merged.find_source('StreetEasy', '1')
        assert street_easy.last_seen_at == rescraped_at
        assert street_easy.first_seen_at == listing.created_at
        assert street_easy.source_url == 'https://streeteasy.com/rental/1'

    def test_same_name_different_id_is_new_source(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(source=make_source('StreetEasy', '2')), clock())
        assert len(merged.sources) == 2


class TestScalars:
    def test_last_write_wins(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(
            price=2300, bedrooms=2, bathrooms=1.5, square_footage=800,
            available_date=date(2024, 4, 1), description='Renovated',
        ), clock())

        assert merged.price == 2300
        assert merged.bedrooms == 2
        assert merged.bathrooms == 1.5
        assert merged.square_footage == 800
        assert merged.available_date == date(2024, 4, 1)
        assert merged.description == 'Renovated'

    def test_absent_values_keep_existing(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(description=''), clock())
        assert merged.price == 2000
        assert merged.bedrooms == 1
        assert merged.description == 'Sunny one bedroom'

    def test_zero_bedrooms_overwrites(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(bedrooms=0), clock())
        assert merged.bedrooms == 0

    def test_price_change_recorded(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(price=2100), clock())
        assert [(h.price, h.change_type) for h in merged.history] == [(2000, 'price_change')]

    def test_same_price_not_recorded(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(price=2000), clock())
        assert merged.history == []

    def test_is_active_only_when_provided(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(), clock())
        assert merged.is_active is True
        merged = merge(store, merger, listing.id, update(is_active=False), clock())
        assert merged.is_active is False


class TestCollections:
    def test_union_without_duplicates(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(
            images=['https://img.example.com/2.jpg', 'https://img.example.com/1.jpg'],
            amenities=['gym', 'parking', 'gym'],
        ), clock())

        assert merged.images == ['https://img.example.com/1.jpg', 'https://img.example.com/2.jpg']
        assert merged.amenities == ['parking', 'gym']

    def test_empty_incoming_never_shrinks(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(images=[], amenities=[]), clock())
        assert merged.images == ['https://img.example.com/1.jpg']
        assert merged.amenities == ['parking']

    def test_union_helper(self):
        assert union(['a', 'a', 'b'], ['c', 'b']) == ['a', 'b', 'c']
        assert union(None, ['x']) == ['x']


class TestPolicies:
    def test_pet_policy_shallow_merge(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(pet_policy={'cats_allowed': True}), clock())
        assert merged.dogs_allowed is True
        assert merged.cats_allowed is True
        assert merged.pet_deposit == 300

    def test_broker_fee_shallow_merge(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(broker_fee={'required': False}), clock())
        assert merged.broker_fee_required is False
        assert merged.broker_fee_amount == 1500

    def test_utilities_shallow_merge(self, store, merger, listing, clock):
        merged = merge(store, merger, listing.id, update(utilities={'gas': True, 'water': False}), clock())
        assert merged.utilities == {'water': False, 'gas': True}


def test_merge_persists_single_version_bump(store, merger, listing, clock):
    merge(store, merger, listing.id, update(price=2500, amenities=['gym']), clock())
    stored = store.get(listing.id)
    assert stored.version == listing.version + 1
    assert stored.price == 2500
    assert isinstance(stored, Listing)
