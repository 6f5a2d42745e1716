import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from config import ALERT_MAX_LISTINGS
from database.models import AlertHistory, Listing, SavedSearch
from database.store import ListingStore
from ingestion.errors import ListingEngineError
from ingestion.metrics import ALERTS_SENT
from .compiler import CriteriaCompiler

logger = logging.getLogger(__name__)


class AlertProcessor:
    """
    Matches saved searches against listings created since their last alert.

    Delivery is delegated to notify(saved_search, listings); a notify call
    that raises is recorded as a failed alert and leaves last_alert_sent_at
    untouched so the same listings are offered again next pass.
    """

    def __init__(self,
                 store: ListingStore,
                 notify: Callable[[SavedSearch, List[Listing]], None],
                 compiler: Optional[CriteriaCompiler] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 max_listings: int = ALERT_MAX_LISTINGS):
        self.store = store
        self.notify = notify
        self.compiler = compiler or CriteriaCompiler(clock=clock)
        self.clock = clock
        self.max_listings = max_listings

    def find_new_matches(self, saved_search: SavedSearch, session=None, since_last_alert=True) -> List[Listing]:
        predicate = self.compiler.compile(saved_search.criteria)
        return self.store.find_matching(
            predicate,
            created_after=saved_search.last_alert_sent_at if since_last_alert else None,
            limit=self.max_listings,
            session=session,
        )

    def process_alerts(self) -> Dict[str, int]:
        processed = 0
        sent = 0
        errors = 0

        with self.store.session_scope() as session:
            search_ids = [s.id for s in session.query(SavedSearch).filter(
                SavedSearch.is_active.is_(True),
                SavedSearch.alerts_enabled.is_(True)
            ).order_by(SavedSearch.id)]

        for search_id in search_ids:
            processed += 1
            try:
                status = self._process_search(search_id)
            except ListingEngineError as e:
                errors += 1
                logger.error(f"Error processing saved search {search_id}: {e}")
                continue

            if status == 'sent':
                sent += 1
            elif status == 'failed':
                errors += 1

        logger.info(f"Alert pass complete: processed={processed} sent={sent} errors={errors}")
        return {'processed': processed, 'sent': sent, 'errors': errors}

    def send_immediate_alert(self, search_id: int) -> Optional[str]:
        """
        Deliver the newest matches of one saved search now.

        Ignores last_alert_sent_at and the enabled flags; returns 'sent',
        'failed' or None when nothing matches.
        """
        status = self._process_search(search_id, since_last_alert=False)
        if status is None:
            logger.info(f"No matching listings for saved search {search_id}")
        return status

    def _process_search(self, search_id: int, since_last_alert: bool = True) -> Optional[str]:
        with self.store.session_scope() as session:
            search = session.get(SavedSearch, search_id)
            if search is None:
                if since_last_alert:
                    return None
                raise LookupError(f"Saved search {search_id} not found")

            listings = self.find_new_matches(search, session=session, since_last_alert=since_last_alert)
            if not listings:
                logger.debug(f"No new listings for saved search {search.id}")
                return None

            sent_at = self.clock()
            history = AlertHistory(
                saved_search_id=search.id,
                user_id=search.user_id,
                sent_at=sent_at,
                alert_method='email' if search.alert_method == 'both' else search.alert_method,
                listing_ids=[listing.id for listing in listings],
                listing_count=len(listings),
            )

            try:
                self.notify(search, listings)
            except Exception as e:
                logger.error(f"Failed to deliver alert for saved search {search.id}: {e}")
                history.delivery_status = 'failed'
                history.error_message = str(e)
                session.add(history)
                return 'failed'

            history.delivery_status = 'sent'
            session.add(history)
            search.last_alert_sent_at = sent_at
            ALERTS_SENT.inc()
            logger.info(f"Alert sent for saved search {search.name!r} ({len(listings)} listings)")
            return 'sent'
