import logging
from datetime import datetime, timedelta
from typing import Optional

from config import INACTIVE_AFTER_DAYS
from database.models import Listing
from database.store import ListingStore

logger = logging.getLogger(__name__)


def mark_inactive_listings(store: ListingStore,
                           days_threshold: int = INACTIVE_AFTER_DAYS,
                           now: Optional[datetime] = None) -> int:
    """
    Mark listings no source has reported for days_threshold days as inactive.

    Listings are only flagged, never deleted.
    """
    now = now or datetime.now()
    threshold_date = now - timedelta(days=days_threshold)
    logger.info(f"Marking listings not seen since {threshold_date} as inactive")

    count = 0
    with store.session_scope() as session:
        stale = session.query(Listing).filter(
            Listing.is_active.is_(True),
            Listing.last_seen_at < threshold_date
        ).all()

        for listing in stale:
            listing.is_active = False
            listing.updated_at = max(now, listing.created_at)
            logger.info(f"Marked inactive: {listing.id} (last seen {listing.last_seen_at})")
            count += 1

    logger.info(f"Marked {count} listings as inactive")
    return count
