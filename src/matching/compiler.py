import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from ingestion.errors import ValidationError
from .criteria import SearchCriteria
from .predicate import AnyOf, Compare, ContainsAll, ContainsText, MemberOf, Predicate

logger = logging.getLogger(__name__)

# (criteria attribute, listing field, operator); bounds are inclusive
RANGE_BOUNDS = (
    ('min_price', 'price', '>='),
    ('max_price', 'price', '<='),
    ('min_bedrooms', 'bedrooms', '>='),
    ('max_bedrooms', 'bedrooms', '<='),
    ('min_bathrooms', 'bathrooms', '>='),
    ('max_bathrooms', 'bathrooms', '<='),
    ('min_square_footage', 'square_footage', '>='),
    ('max_square_footage', 'square_footage', '<='),
    ('earliest_move_in', 'available_date', '>='),
    ('latest_move_in', 'available_date', '<='),
)


def coerce_criteria(criteria: Any) -> SearchCriteria:
    if isinstance(criteria, SearchCriteria):
        return criteria
    if criteria is None:
        return SearchCriteria()
    try:
        return SearchCriteria.model_validate(criteria)
    except PydanticValidationError as e:
        raise ValidationError(str(e), errors=e.errors()) from e


class CriteriaCompiler:
    """
    Turns search criteria into a Predicate over canonical listings.

    Every populated criterion adds one AND clause. The listing-age cutoff is
    fixed when compile() runs, so a predicate gives the same answer for the
    whole evaluation pass that uses it.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock

    def compile(self, criteria: Any) -> Predicate:
        criteria = coerce_criteria(criteria)
        clauses = []

        for attribute, field, op in RANGE_BOUNDS:
            value = getattr(criteria, attribute)
            if value is not None:
                clauses.append(Compare(field, op, value))

        neighborhoods = tuple(n for n in criteria.neighborhoods if n and n.strip())
        if neighborhoods:
            # Neighborhood is not stored on its own; check city and street
            clauses.append(AnyOf((
                MemberOf('city', neighborhoods),
                ContainsText('street', tuple(n.strip() for n in neighborhoods)),
            )))

        if criteria.required_amenities:
            clauses.append(ContainsAll('amenities', tuple(criteria.required_amenities)))

        if criteria.requires_dogs_allowed:
            clauses.append(Compare('dogs_allowed', '==', True))
        if criteria.requires_cats_allowed:
            clauses.append(Compare('cats_allowed', '==', True))

        if criteria.no_fee_only:
            clauses.append(Compare('broker_fee_required', '==', False))

        if criteria.max_listing_age_days is not None:
            cutoff = self.clock() - timedelta(days=criteria.max_listing_age_days)
            clauses.append(Compare('created_at', '>=', cutoff))

        logger.debug(f"Compiled criteria into {len(clauses)} clauses")
        return Predicate(tuple(clauses))


def compile_criteria(criteria: Any, now: Optional[datetime] = None) -> Predicate:
    clock = (lambda: now) if now is not None else datetime.now
    return CriteriaCompiler(clock=clock).compile(criteria)
