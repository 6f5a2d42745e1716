import logging
from typing import List, Optional, Sequence

from sqlalchemy import select

from config import DUPLICATE_RADIUS_METERS
from database.models import Listing
from utils.address import normalize_address, normalize_unit
from utils.geo import distance_meters, proximity_bucket

logger = logging.getLogger(__name__)


class DuplicateLocator:
    """Finds canonical listings that describe the same unit as a candidate."""

    def __init__(self, radius_meters: float = DUPLICATE_RADIUS_METERS):
        self.radius_meters = radius_meters

    def find_duplicates(self,
                        session,
                        street: str,
                        unit: Optional[str],
                        coordinates: Sequence[float],
                        radius_meters: Optional[float] = None,
                        scan: bool = False) -> List[Listing]:
        """
        Listings whose normalized street and unit equal the query's and
        whose coordinates lie within the radius.

        Args:
            session: Open SQLAlchemy session
            street (str): Street as reported by the candidate
            unit (str): Unit or None; None never matches a listing with a unit
            coordinates: (longitude, latitude)
            radius_meters (float): Proximity radius, defaults to the configured one
            scan (bool): Evaluate every stored listing instead of using the
                normalized-address index

        Returns:
            list: Matches ordered by earliest created_at, then id
        """
        radius = self.radius_meters if radius_meters is None else radius_meters
        normalized_street = normalize_address(street)
        normalized_unit = normalize_unit(unit)

        query = select(Listing)
        if not scan:
            query = query.where(Listing.normalized_street == normalized_street)
            if normalized_unit is None:
                query = query.where(Listing.normalized_unit.is_(None))
            else:
                query = query.where(Listing.normalized_unit == normalized_unit)

        duplicates = []
        for listing in session.scalars(query):
            # Compare on freshly normalized raw values, not the stored columns
            if normalize_address(listing.street) != normalized_street:
                continue
            if normalize_unit(listing.unit) != normalized_unit:
                continue
            if distance_meters(coordinates, listing.coordinates) <= radius:
                duplicates.append(listing)

        duplicates.sort(key=lambda listing: (listing.created_at, listing.id))
        logger.debug(f"Found {len(duplicates)} duplicates for {normalized_street!r} unit={normalized_unit!r}")
        return duplicates


def build_identity_key(normalized_street: str,
                       normalized_unit: Optional[str],
                       coordinates: Sequence[float],
                       radius_meters: float) -> str:
    """Unique store key for a normalized address inside one proximity cell."""
    unit_part = f"u:{normalized_unit}" if normalized_unit is not None else '-'
    return f"{normalized_street}|{unit_part}|{proximity_bucket(coordinates, radius_meters)}"
