from datetime import datetime, timedelta

import pytest

from database import Base, build_engine, build_session_factory
from database.store import ListingStore
from ingestion.coordinator import IngestionCoordinator


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_candidate(**overrides):
    candidate = {
        'street': '123 Main St',
        'unit': '4B',
        'city': 'New York',
        'state': 'NY',
        'zip_code': '10001',
        'coordinates': [-74.006, 40.7128],
        'price': 2000,
        'bedrooms': 1,
        'bathrooms': 1,
        'description': 'Sunny one bedroom',
        'images': ['https://img.example.com/1.jpg'],
        'amenities': ['parking'],
        'source': {
            'source_name': 'StreetEasy',
            'source_id': '1',
            'source_url': 'https://streeteasy.com/rental/1',
        },
    }
    candidate.update(overrides)
    return candidate


def make_source(name: str, source_id: str, scraped_at=None):
    source = {
        'source_name': name,
        'source_id': source_id,
        'source_url': f"https://{name.lower()}.example.com/{source_id}",
    }
    if scraped_at is not None:
        source['scraped_at'] = scraped_at
    return source


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'listings.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return ListingStore(session_factory)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 12, 0, 0))


@pytest.fixture
def coordinator(store, clock):
    return IngestionCoordinator(store=store, clock=clock, retry_wait=0)
