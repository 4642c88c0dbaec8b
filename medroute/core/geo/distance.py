# medroute/core/geo/distance.py
"""
Геодезические расчёты по формуле гаверсинусов.
"""

from __future__ import annotations

import math
from typing import Sequence

from medroute.core.geo.models import Coordinate


EARTH_RADIUS_KM = 6371.0


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """
    Вычисляет расстояние между двумя точками (в км) по формуле Haversine.
    """
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)

    h = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) *
         math.sin(dlng / 2) ** 2)

    # h может чуть превысить 1 из-за округления
    c = 2 * math.asin(math.sqrt(min(1.0, h)))

    return EARTH_RADIUS_KM * c


def path_length_km(points: Sequence[Coordinate]) -> float:
    """Длина ломаной: сумма расстояний между соседними точками."""
    return sum(distance_km(points[i], points[i + 1]) for i in range(len(points) - 1))
