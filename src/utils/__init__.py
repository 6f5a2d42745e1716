from .address import normalize_address, normalize_unit
from .geo import distance_meters, proximity_bucket

__all__ = ['normalize_address', 'normalize_unit', 'distance_meters', 'proximity_bucket']
