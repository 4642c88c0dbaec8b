# medroute/core/geo/models.py
"""
Геоданные: координата с проверкой диапазона.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from medroute.common.errors import InvalidCoordinate


@dataclass(frozen=True)
class Coordinate:
    """Точка WGS-84. |lat| <= 90, |lng| <= 180."""
    lat: float
    lng: float

    def __post_init__(self) -> None:
        validate_coordinate(self.lat, self.lng)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Coordinate":
        """
        Создаёт координату из словаря провайдера.

        Поддерживаются ключи lat/lng, latitude/longitude
        и y/x (Kakao Local отдаёт их строками).
        """
        lat = _first_present(data, "lat", "latitude", "y")
        lng = _first_present(data, "lng", "longitude", "x")
        try:
            return cls(float(lat), float(lng))
        except (TypeError, ValueError):
            raise InvalidCoordinate(lat, lng) from None

    def as_lng_lat(self) -> str:
        """Формат "lng,lat" для query-параметров Kakao и OSRM."""
        return f"{self.lng},{self.lat}"

    def to_lat_lng(self) -> dict[str, float]:
        """Формат latLng для Google Routes."""
        return {"latitude": self.lat, "longitude": self.lng}


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def validate_coordinate(lat: Any, lng: Any) -> None:
    """
    Проверяет диапазон координат.

    Raises:
        InvalidCoordinate: не число, NaN/inf или вне диапазона
    """
    if isinstance(lat, bool) or isinstance(lng, bool):
        raise InvalidCoordinate(lat, lng)
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        raise InvalidCoordinate(lat, lng)
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidCoordinate(lat, lng)
    if abs(lat) > 90 or abs(lng) > 180:
        raise InvalidCoordinate(lat, lng)
