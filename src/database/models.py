import uuid

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Numeric, Float, Text,
    Boolean, JSON, Index, UniqueConstraint, func
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def generate_listing_id():
    return uuid.uuid4().hex


class Listing(Base):
    """Canonical record for one physical rental unit."""
    __tablename__ = 'listings'

    id = Column(String(32), primary_key=True, default=generate_listing_id)

    # Address as reported by the most recent source
    street = Column(Text, nullable=False)
    unit = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)

    # Normalized address used for duplicate lookups
    normalized_street = Column(Text, nullable=False)
    normalized_unit = Column(String(50), nullable=True)
    identity_key = Column(Text, nullable=False, unique=True)

    price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    currency = Column(String(5), nullable=False, default='USD')
    period = Column(String(20), nullable=False, default='monthly')
    available_date = Column(Date, nullable=True)

    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Float, nullable=False)
    square_footage = Column(Integer, nullable=True)

    description = Column(Text, nullable=False, default='')
    images = Column(JSON, nullable=False, default=list)
    amenities = Column(JSON, nullable=False, default=list)
    floor_plan_images = Column(JSON, nullable=False, default=list)

    dogs_allowed = Column(Boolean, nullable=False, default=False)
    cats_allowed = Column(Boolean, nullable=False, default=False)
    pet_deposit = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    broker_fee_required = Column(Boolean, nullable=False, default=False)
    broker_fee_amount = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    utilities = Column(JSON, nullable=False, default=dict)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now())
    last_seen_at = Column(DateTime, nullable=False, default=func.now())
    version = Column(Integer, nullable=False)

    __table_args__ = (
        Index('ix_listings_normalized_address', 'normalized_street', 'normalized_unit'),
        Index('ix_listings_coordinates', 'longitude', 'latitude'),
        Index('ix_listings_price_bedrooms_created', 'price', 'bedrooms', 'created_at'),
        Index('ix_listings_active_updated', 'is_active', 'updated_at'),
    )
    __mapper_args__ = {'version_id_col': version}

    sources = relationship(
        "ListingSource",
        back_populates="listing",
        order_by="ListingSource.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    history = relationship(
        "ListingHistory",
        back_populates="listing",
        order_by="ListingHistory.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def coordinates(self):
        return (self.longitude, self.latitude)

    def find_source(self, source_name: str, source_id: str):
        for source in self.sources:
            if source.source_name == source_name and source.source_id == source_id:
                return source
        return None

    def __repr__(self):
        return f"<Listing {self.id} {self.street!r} unit={self.unit!r} price={self.price}>"


class ListingSource(Base):
    """One external origin that has reported data about a listing."""
    __tablename__ = 'listing_sources'

    id = Column(Integer, primary_key=True)
    listing_id = Column(String(32), ForeignKey('listings.id', ondelete='CASCADE'), nullable=False)
    source_name = Column(String(50), nullable=False)
    source_id = Column(String(100), nullable=False)
    source_url = Column(Text, nullable=False)
    first_seen_at = Column(DateTime, nullable=False)
    last_seen_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint('listing_id', 'source_name', 'source_id', name='uix_listing_source'),
        Index('ix_listing_sources_lookup', 'source_name', 'source_id'),
    )

    listing = relationship("Listing", back_populates="sources")


class ListingHistory(Base):
    __tablename__ = 'listing_history'

    id = Column(Integer, primary_key=True)
    listing_id = Column(String(32), ForeignKey('listings.id', ondelete='CASCADE'), nullable=False)
    price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    changed_date = Column(DateTime, nullable=False)
    change_type = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=func.now())

    listing = relationship("Listing", back_populates="history")


class SavedSearch(Base):
    __tablename__ = 'saved_searches'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(100), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    criteria = Column(JSON, nullable=False, default=dict)
    alerts_enabled = Column(Boolean, nullable=False, default=True)
    alert_method = Column(String(10), nullable=False, default='email')  # 'email', 'in-app' or 'both'
    last_alert_sent_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    alerts = relationship("AlertHistory", back_populates="saved_search")


class AlertHistory(Base):
    __tablename__ = 'alert_history'

    id = Column(Integer, primary_key=True)
    saved_search_id = Column(Integer, ForeignKey('saved_searches.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(String(100), nullable=False)
    sent_at = Column(DateTime, nullable=False)
    alert_method = Column(String(10), nullable=False)
    listing_ids = Column(JSON, nullable=False, default=list)
    listing_count = Column(Integer, nullable=False, default=0)
    delivery_status = Column(String(10), nullable=False, default='sent')
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

    saved_search = relationship("SavedSearch", back_populates="alerts")
