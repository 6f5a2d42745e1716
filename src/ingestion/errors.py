from typing import Any, Dict, List, Optional


class ListingEngineError(Exception):
    """Base class for all ingestion and merge failures"""


class ValidationError(ListingEngineError):
    """Candidate is malformed; raised before any store access, never retried."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class NotFound(ListingEngineError):
    """Merge target disappeared between lookup and merge."""

    def __init__(self, listing_id: str):
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id


class ConflictRetryable(ListingEngineError):
    """A concurrent writer changed the canonical record first."""


class StoreUnavailable(ListingEngineError):
    """The underlying record store failed."""
