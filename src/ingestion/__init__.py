# database.store imports .errors; import coordinator, locator and merge modules directly
from .errors import ListingEngineError, ValidationError, NotFound, ConflictRetryable, StoreUnavailable
from .schemas import SourceRecord, PetPolicy, BrokerFee, ListingUpdate, NewListingData

__all__ = [
    'ListingEngineError',
    'ValidationError',
    'NotFound',
    'ConflictRetryable',
    'StoreUnavailable',
    'SourceRecord',
    'PetPolicy',
    'BrokerFee',
    'ListingUpdate',
    'NewListingData'
]
