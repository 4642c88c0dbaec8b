# medroute/core/geo/__init__.py
"""
Геоданные: координаты, кодек polyline, расстояния.
"""

from medroute.core.geo.distance import distance_km, path_length_km
from medroute.core.geo.models import Coordinate, validate_coordinate

__all__ = ["Coordinate", "validate_coordinate", "distance_km", "path_length_km"]
