from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SearchCriteria(BaseModel):
    """
    Saved-search or preference criteria.

    Bounds are optional-with-null: None means "no constraint", never zero.
    Accepts both snake_case and the camelCase keys stored on saved-search
    documents.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )

    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_bathrooms: Optional[float] = None
    max_bathrooms: Optional[float] = None
    min_square_footage: Optional[int] = None
    max_square_footage: Optional[int] = None
    earliest_move_in: Optional[date] = None
    latest_move_in: Optional[date] = None

    neighborhoods: List[str] = Field(default_factory=list)
    required_amenities: List[str] = Field(default_factory=list)

    requires_dogs_allowed: bool = False
    requires_cats_allowed: bool = False
    no_fee_only: bool = False

    max_listing_age_days: Optional[int] = Field(default=None, ge=0)

    @field_validator('earliest_move_in', 'latest_move_in', mode='before')
    @classmethod
    def truncate_to_date(cls, v):
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator('neighborhoods', 'required_amenities', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return [] if v is None else v

    @field_validator('requires_dogs_allowed', 'requires_cats_allowed', 'no_fee_only', mode='before')
    @classmethod
    def none_as_false(cls, v):
        return False if v is None else v
