import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential
)

from config import MERGE_MAX_ATTEMPTS, MERGE_RETRY_WAIT
from database.models import Listing, ListingSource
from database.store import ListingStore
from utils.address import normalize_address, normalize_unit
from .errors import ConflictRetryable, ListingEngineError, StoreUnavailable, ValidationError
from .locator import DuplicateLocator, build_identity_key
from .merge import ListingMerger
from .metrics import (
    LISTINGS_CREATED, LISTINGS_MERGED, MERGE_CONFLICTS, MULTIPLE_DUPLICATES,
    STORE_ERRORS, VALIDATION_ERRORS
)
from .schemas import NewListingData

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    index: int
    listing: Optional[Listing] = None
    error: Optional[ListingEngineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IngestionCoordinator:
    """
    Entry point for scraped candidates.

    Each candidate is validated, matched against existing canonical
    listings and either merged into the first match or stored as a new
    listing. Lost concurrency races are retried from a fresh lookup.
    """

    def __init__(self,
                 store: Optional[ListingStore] = None,
                 locator: Optional[DuplicateLocator] = None,
                 merger: Optional[ListingMerger] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 max_attempts: int = MERGE_MAX_ATTEMPTS,
                 retry_wait: float = MERGE_RETRY_WAIT):
        self.store = store or ListingStore()
        self.locator = locator or DuplicateLocator()
        self.merger = merger or ListingMerger()
        self.clock = clock
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait

    def validate(self, candidate: Any) -> NewListingData:
        if isinstance(candidate, BaseModel):
            candidate = candidate.model_dump()
        try:
            return NewListingData.model_validate(candidate)
        except PydanticValidationError as e:
            VALIDATION_ERRORS.inc()
            logger.warning(f"Rejected candidate: {e.error_count()} validation errors")
            raise ValidationError(str(e), errors=e.errors()) from e

    def ingest(self, candidate: Any) -> Listing:
        """
        Create or merge one candidate.

        Raises:
            ValidationError: Candidate is malformed; nothing was read or written
            NotFound: Merge target vanished mid-merge
            ConflictRetryable: Still conflicting after max_attempts
            StoreUnavailable: Record store failure
        """
        data = self.validate(candidate)

        retryer = Retrying(
            retry=retry_if_exception_type(ConflictRetryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_wait, max=2),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retryer(self._ingest_once, data)
        except StoreUnavailable:
            STORE_ERRORS.inc()
            raise

    def ingest_many(self, candidates: Iterable[Any]) -> List[IngestResult]:
        """Ingest a batch; one bad candidate does not stop the rest."""
        results = []
        for index, candidate in enumerate(candidates):
            try:
                results.append(IngestResult(index=index, listing=self.ingest(candidate)))
            except ListingEngineError as e:
                logger.error(f"Candidate {index} failed: {type(e).__name__}: {e}")
                results.append(IngestResult(index=index, error=e))

        failed = len([r for r in results if not r.ok])
        logger.info(f"Ingested {len(results) - failed} of {len(results)} candidates")
        return results

    def find_duplicates(self,
                        street: str,
                        unit: Optional[str],
                        coordinates: Sequence[float],
                        radius_meters: Optional[float] = None) -> List[Listing]:
        with self.store.session_scope() as session:
            return self.locator.find_duplicates(session, street, unit, coordinates, radius_meters)

    def _ingest_once(self, data: NewListingData) -> Listing:
        now = self.clock()
        merged = False
        try:
            with self.store.session_scope() as session:
                duplicates = self.locator.find_duplicates(
                    session, data.street, data.unit, data.coordinates
                )
                if duplicates:
                    if len(duplicates) > 1:
                        MULTIPLE_DUPLICATES.inc()
                        logger.warning(
                            f"{len(duplicates)} listings match {data.street!r} unit={data.unit!r}: "
                            f"{[d.id for d in duplicates]}; merging into {duplicates[0].id}"
                        )
                    listing = self.merger.merge(session, duplicates[0], data, now)
                    merged = True
                else:
                    listing = self._create(session, data, now)
        except ConflictRetryable:
            MERGE_CONFLICTS.inc()
            raise

        if merged:
            LISTINGS_MERGED.inc()
        else:
            LISTINGS_CREATED.inc()
        return listing

    def _create(self, session, data: NewListingData, now: datetime) -> Listing:
        normalized_street = normalize_address(data.street)
        normalized_unit = normalize_unit(data.unit)
        scraped_at = data.source.scraped_at or now
        pets = data.pet_policy
        fee = data.broker_fee

        listing = Listing(
            street=data.street.strip(),
            unit=data.unit,
            city=data.city,
            state=data.state,
            zip_code=data.zip_code,
            longitude=data.coordinates[0],
            latitude=data.coordinates[1],
            normalized_street=normalized_street,
            normalized_unit=normalized_unit,
            identity_key=build_identity_key(
                normalized_street, normalized_unit, data.coordinates, self.locator.radius_meters
            ),
            price=data.price,
            currency=data.currency or 'USD',
            period=data.period or 'monthly',
            available_date=data.available_date,
            bedrooms=data.bedrooms,
            bathrooms=data.bathrooms,
            square_footage=data.square_footage,
            description=data.description or '',
            images=list(data.images),
            amenities=list(data.amenities),
            floor_plan_images=list(data.floor_plan_images),
            dogs_allowed=bool(pets and pets.dogs_allowed),
            cats_allowed=bool(pets and pets.cats_allowed),
            pet_deposit=pets.pet_deposit if pets else None,
            broker_fee_required=bool(fee and fee.required),
            broker_fee_amount=fee.amount if fee else None,
            utilities=dict(data.utilities or {}),
            is_active=True if data.is_active is None else data.is_active,
            created_at=now,
            updated_at=now,
            last_seen_at=scraped_at,
        )
        listing.sources.append(ListingSource(
            source_name=data.source.source_name,
            source_id=data.source.source_id,
            source_url=data.source.source_url,
            first_seen_at=scraped_at,
            last_seen_at=scraped_at,
        ))
        session.add(listing)
        session.flush()

        logger.info(f"Created listing {listing.id} from {data.source.source_name}#{data.source.source_id}")
        return listing
