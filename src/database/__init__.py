from .models import Base, Listing, ListingSource, ListingHistory, SavedSearch, AlertHistory
from .session import SessionFactory, build_engine, build_session_factory, get_db_session, initialize_database

__all__ = [
    'Base',
    'Listing',
    'ListingSource',
    'ListingHistory',
    'SavedSearch',
    'AlertHistory',
    'SessionFactory',
    'build_engine',
    'build_session_factory',
    'get_db_session',
    'initialize_database'
]
