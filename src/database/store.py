import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ingestion.errors import ConflictRetryable, ListingEngineError, StoreUnavailable
from .models import Listing
from .session import SessionFactory, get_db_session

logger = logging.getLogger(__name__)


class ListingStore:
    """
    Record store for canonical listings.

    Wraps a SQLAlchemy session factory and translates persistence failures
    into the engine's error types: lost optimistic-concurrency races and
    unique-key collisions become ConflictRetryable, everything else
    becomes StoreUnavailable.
    """

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionFactory

    @contextmanager
    def session_scope(self):
        try:
            session = get_db_session(self.session_factory)
        except SQLAlchemyError as e:
            logger.error(f"Database unavailable: {e}")
            raise StoreUnavailable(str(e)) from e

        try:
            yield session
            session.commit()
        except ListingEngineError:
            session.rollback()
            raise
        except (StaleDataError, IntegrityError) as e:
            session.rollback()
            logger.warning(f"Concurrent write detected: {e}")
            raise ConflictRetryable(str(e)) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise StoreUnavailable(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, listing_id: str) -> Optional[Listing]:
        with self.session_scope() as session:
            return session.get(Listing, listing_id)

    def count(self) -> int:
        with self.session_scope() as session:
            return session.query(Listing).count()

    def all_listings(self) -> List[Listing]:
        with self.session_scope() as session:
            return session.query(Listing).order_by(Listing.created_at, Listing.id).all()

    def find_matching(self,
                      predicate,
                      created_after: Optional[datetime] = None,
                      limit: Optional[int] = None,
                      session=None) -> List[Listing]:
        """
        Listings satisfying a compiled predicate, newest first.

        Clauses that render to SQL narrow the query; the full predicate is
        then evaluated on every candidate row so results never depend on
        which clauses could be pushed down.
        """
        if session is None:
            with self.session_scope() as scoped:
                return self.find_matching(predicate, created_after, limit, session=scoped)

        query = select(Listing)
        for condition in predicate.sql_conditions(Listing):
            query = query.where(condition)
        if created_after is not None:
            query = query.where(Listing.created_at > created_after)
        query = query.order_by(Listing.created_at.desc(), Listing.id)

        matches = []
        for listing in session.scalars(query):
            if not predicate.matches(listing):
                continue
            if created_after is not None and not listing.created_at > created_after:
                continue
            matches.append(listing)
            if limit is not None and len(matches) >= limit:
                break
        return matches
