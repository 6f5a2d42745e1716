import logging
from datetime import datetime
from typing import List, Optional, Union

from database.models import Listing, ListingHistory, ListingSource
from .errors import NotFound
from .schemas import ListingUpdate

logger = logging.getLogger(__name__)

# Last write wins for these whenever the incoming value is present
SCALAR_FIELDS = (
    'price',
    'currency',
    'period',
    'available_date',
    'bedrooms',
    'bathrooms',
    'square_footage',
    'city',
    'state',
    'zip_code',
)

# Set union, insertion order kept
COLLECTION_FIELDS = ('images', 'amenities', 'floor_plan_images')


def union(existing: Optional[List[str]], incoming: List[str]) -> List[str]:
    merged = list(dict.fromkeys(existing or []))
    seen = set(merged)
    for value in incoming:
        if value not in seen:
            seen.add(value)
            merged.append(value)
    return merged


class ListingMerger:
    """
    Folds one source's report into an existing canonical listing.

    Mutable facts take the incoming value, accumulative facts are unioned
    and identity (id, created_at) always stays with the existing record.
    """

    def merge(self,
              session,
              existing: Union[Listing, str],
              incoming: ListingUpdate,
              now: Optional[datetime] = None) -> Listing:
        now = now or datetime.now()
        listing_id = existing if isinstance(existing, str) else existing.id

        listing = session.get(Listing, listing_id)
        if listing is None:
            logger.warning(f"Merge target {listing_id} vanished before merge")
            raise NotFound(listing_id)

        original_created_at = listing.created_at
        scraped_at = incoming.source.scraped_at or now

        self._merge_source(listing, incoming, scraped_at)
        self._record_price_change(listing, incoming, now)

        for field in SCALAR_FIELDS:
            value = getattr(incoming, field)
            if value is not None:
                setattr(listing, field, value)

        if incoming.description:
            listing.description = incoming.description

        for field in COLLECTION_FIELDS:
            values = getattr(incoming, field)
            if values:
                setattr(listing, field, union(getattr(listing, field), values))

        self._merge_policies(listing, incoming)

        if incoming.is_active is not None:
            listing.is_active = incoming.is_active

        listing.last_seen_at = max(listing.last_seen_at or scraped_at, scraped_at)
        listing.updated_at = max(now, original_created_at)

        # Single UPDATE guarded by the version column
        session.flush()

        if listing.created_at != original_created_at:
            logger.warning(f"created_at of listing {listing.id} moved during merge, restoring")
            listing.created_at = original_created_at
            session.flush()

        logger.info(f"Merged {incoming.source.source_name}#{incoming.source.source_id} into listing {listing.id}")
        return listing

    def _merge_source(self, listing: Listing, incoming: ListingUpdate, scraped_at: datetime):
        source = incoming.source
        known = listing.find_source(source.source_name, source.source_id)
        if known is None:
            listing.sources.append(ListingSource(
                source_name=source.source_name,
                source_id=source.source_id,
                source_url=source.source_url,
                first_seen_at=scraped_at,
                last_seen_at=scraped_at,
            ))
            return

        # A re-seen source only refreshes last_seen_at
        known.last_seen_at = max(known.last_seen_at, scraped_at)

    def _record_price_change(self, listing: Listing, incoming: ListingUpdate, now: datetime):
        if incoming.price is None or listing.price is None:
            return
        if float(incoming.price) == float(listing.price):
            return
        listing.history.append(ListingHistory(
            price=listing.price,
            changed_date=now,
            change_type='price_change',
        ))

    def _merge_policies(self, listing: Listing, incoming: ListingUpdate):
        if incoming.pet_policy is not None:
            pets = incoming.pet_policy
            if pets.dogs_allowed is not None:
                listing.dogs_allowed = pets.dogs_allowed
            if pets.cats_allowed is not None:
                listing.cats_allowed = pets.cats_allowed
            if pets.pet_deposit is not None:
                listing.pet_deposit = pets.pet_deposit

        if incoming.broker_fee is not None:
            fee = incoming.broker_fee
            if fee.required is not None:
                listing.broker_fee_required = fee.required
            if fee.amount is not None:
                listing.broker_fee_amount = fee.amount

        if incoming.utilities:
            utilities = dict(listing.utilities or {})
            utilities.update(incoming.utilities)
            listing.utilities = utilities
