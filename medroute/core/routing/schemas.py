# medroute/core/routing/schemas.py
"""
Схемы ответов провайдеров маршрутов.

Валидируют только поля, которые использует нормализатор;
остальное игнорируется. Ошибка валидации (pydantic.ValidationError)
является ValueError и трактуется сервисами как некорректный ответ.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class ProviderModel(BaseModel):
    """База для схем провайдеров: camelCase алиасы, лишние поля игнорируются."""

    class Config:
        populate_by_name = True
        extra = "ignore"
        frozen = True


def parse_duration_seconds(value: Any) -> Optional[float]:
    """Google отдаёт длительность строкой "123s"; принимаем и числа."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip().rstrip("s"))
    raise ValueError(f"Некорректная длительность: {value!r}")


# =============================================================================
# KAKAO MOBILITY DIRECTIONS
# =============================================================================

class KakaoRoad(ProviderModel):
    """Участок дороги: vertexes: плоский список [lng, lat, lng, lat, ...]."""
    name: str = ""
    distance: float = 0
    duration: float = 0
    vertexes: list[float] = Field(default_factory=list)


class KakaoSection(ProviderModel):
    """Секция маршрута между точками."""
    distance: float = 0
    duration: float = 0
    roads: list[KakaoRoad] = Field(default_factory=list)


class KakaoRoute(ProviderModel):
    """Маршрут Kakao: result_code 0 означает успех."""
    result_code: int = 0
    result_msg: str = ""
    sections: list[KakaoSection] = Field(default_factory=list)


class KakaoDirectionsResponse(ProviderModel):
    """Ответ /v1/directions."""
    trans_id: str = ""
    routes: list[KakaoRoute] = Field(default_factory=list)


# =============================================================================
# GOOGLE ROUTES API V2
# =============================================================================

class LatLng(ProviderModel):
    latitude: float
    longitude: float


class Location(ProviderModel):
    lat_lng: Optional[LatLng] = Field(None, alias="latLng")


class EncodedPolyline(ProviderModel):
    encoded_polyline: str = Field("", alias="encodedPolyline")


class LocalizedText(ProviderModel):
    text: str = ""


class LocalizedTime(ProviderModel):
    time: Optional[LocalizedText] = None


class TransitLocalizedValues(ProviderModel):
    departure_time: Optional[LocalizedTime] = Field(None, alias="departureTime")
    arrival_time: Optional[LocalizedTime] = Field(None, alias="arrivalTime")


class TransitStopSchema(ProviderModel):
    name: str = ""
    location: Optional[Location] = None


class TransitStopDetails(ProviderModel):
    departure_stop: Optional[TransitStopSchema] = Field(None, alias="departureStop")
    arrival_stop: Optional[TransitStopSchema] = Field(None, alias="arrivalStop")


class TransitVehicle(ProviderModel):
    type: str = ""


class TransitLine(ProviderModel):
    name: str = ""
    name_short: str = Field("", alias="nameShort")
    color: str = ""
    vehicle: Optional[TransitVehicle] = None


class TransitDetails(ProviderModel):
    """Детали поездки на транспорте внутри шага."""
    stop_details: Optional[TransitStopDetails] = Field(None, alias="stopDetails")
    localized_values: Optional[TransitLocalizedValues] = Field(None, alias="localizedValues")
    headsign: str = ""
    transit_line: Optional[TransitLine] = Field(None, alias="transitLine")
    stop_count: int = Field(0, alias="stopCount")


class RouteStep(ProviderModel):
    """Шаг маршрута: пеший (WALK) или на транспорте (TRANSIT)."""
    travel_mode: str = Field("", alias="travelMode")
    polyline: Optional[EncodedPolyline] = None
    start_location: Optional[Location] = Field(None, alias="startLocation")
    end_location: Optional[Location] = Field(None, alias="endLocation")
    distance_meters: Optional[float] = Field(None, alias="distanceMeters")
    static_duration: Optional[float] = Field(None, alias="staticDuration")
    duration: Optional[float] = None
    transit_details: Optional[TransitDetails] = Field(None, alias="transitDetails")

    @field_validator("static_duration", "duration", mode="before")
    @classmethod
    def parse_duration(cls, v: Any) -> Optional[float]:
        """Преобразует "123s" в секунды."""
        return parse_duration_seconds(v)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Длительность шага: staticDuration, иначе duration."""
        if self.static_duration is not None:
            return self.static_duration
        return self.duration

    @property
    def is_walking(self) -> bool:
        return self.travel_mode.upper() == "WALK"


class RouteLeg(ProviderModel):
    """Участок маршрута между двумя точками запроса."""
    distance_meters: Optional[float] = Field(None, alias="distanceMeters")
    duration: Optional[float] = None
    static_duration: Optional[float] = Field(None, alias="staticDuration")
    steps: list[RouteStep] = Field(default_factory=list)

    @field_validator("static_duration", "duration", mode="before")
    @classmethod
    def parse_duration(cls, v: Any) -> Optional[float]:
        """Преобразует "123s" в секунды."""
        return parse_duration_seconds(v)


class ComputedRoute(ProviderModel):
    distance_meters: Optional[float] = Field(None, alias="distanceMeters")
    duration: Optional[float] = None
    legs: list[RouteLeg] = Field(default_factory=list)

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration(cls, v: Any) -> Optional[float]:
        """Преобразует "123s" в секунды."""
        return parse_duration_seconds(v)


class ComputeRoutesResponse(ProviderModel):
    """Ответ directions/v2:computeRoutes."""
    routes: list[ComputedRoute] = Field(default_factory=list)


# =============================================================================
# OSRM
# =============================================================================

class OsrmRoute(ProviderModel):
    geometry: str = ""
    distance: float = 0
    duration: float = 0


class OsrmRouteResponse(ProviderModel):
    """Ответ OSRM /route/v1 с geometries=polyline."""
    code: str = ""
    routes: list[OsrmRoute] = Field(default_factory=list)
