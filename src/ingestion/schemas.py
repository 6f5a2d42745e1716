import math
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class SourceRecord(BaseModel):
    """Provenance of one scraped record"""
    source_name: str = Field(min_length=1, max_length=50)
    source_id: str = Field(min_length=1, max_length=100)
    source_url: str = Field(min_length=1)
    scraped_at: Optional[datetime] = None

    @field_validator('scraped_at')
    @classmethod
    def as_local_naive(cls, v):
        # Stored timestamps are naive local time
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v


class PetPolicy(BaseModel):
    dogs_allowed: Optional[bool] = None
    cats_allowed: Optional[bool] = None
    pet_deposit: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class BrokerFee(BaseModel):
    required: Optional[bool] = None
    amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class ListingUpdate(BaseModel):
    """
    Listing data reported by exactly one source.

    Every listing field is optional; a field left as None carries no
    information and never overwrites the canonical value during a merge.
    """
    model_config = ConfigDict(extra='ignore')

    street: Optional[str] = None
    unit: Optional[str] = Field(default=None, max_length=50)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=50)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    coordinates: Optional[Tuple[float, float]] = None  # (longitude, latitude)

    price: Optional[float] = None
    currency: Optional[str] = Field(default=None, max_length=5)
    period: Optional[str] = Field(default=None, max_length=20)
    available_date: Optional[date] = None

    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_footage: Optional[int] = None

    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    floor_plan_images: List[str] = Field(default_factory=list)

    pet_policy: Optional[PetPolicy] = None
    broker_fee: Optional[BrokerFee] = None
    utilities: Optional[Dict[str, bool]] = None

    is_active: Optional[bool] = None

    source: SourceRecord

    @field_validator('street')
    @classmethod
    def street_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Street address cannot be empty or whitespace')
        return v

    @field_validator('coordinates')
    @classmethod
    def coordinates_in_range(cls, v):
        if v is None:
            return v
        longitude, latitude = v
        # NaN fails both comparisons
        if not -180 <= longitude <= 180:
            raise ValueError('Longitude must be between -180 and 180')
        if not -90 <= latitude <= 90:
            raise ValueError('Latitude must be between -90 and 90')
        return v

    @field_validator('price', 'bathrooms')
    @classmethod
    def must_be_positive(cls, v):
        if v is not None and (not math.isfinite(v) or v <= 0):
            raise ValueError('must be a positive number')
        return v

    @field_validator('bedrooms')
    @classmethod
    def bedrooms_non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('Bedrooms must be a non-negative integer')
        return v

    @field_validator('square_footage')
    @classmethod
    def square_footage_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Square footage must be a positive integer')
        return v

    @field_validator('images', 'amenities', 'floor_plan_images', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return [] if v is None else v

    @field_validator('images', 'amenities', 'floor_plan_images')
    @classmethod
    def dedupe(cls, v):
        return _unique(v)


class NewListingData(ListingUpdate):
    """Candidate complete enough to become a canonical listing on its own"""
    street: str
    coordinates: Tuple[float, float]
    price: float
    bedrooms: int
    bathrooms: float
