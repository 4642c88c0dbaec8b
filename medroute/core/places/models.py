# medroute/core/places/models.py
"""
Модели медучреждений и ответов Kakao Local.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from medroute.core.geo.models import Coordinate


_NAME_KEYS = ("place_name", "placeName", "name")
_LAT_KEYS = ("y", "lat", "latitude")
_LNG_KEYS = ("x", "lng", "longitude")
_ADDRESS_KEYS = ("road_address_name", "address_name", "addressName", "address")

# Номер короче 9 цифр не является телефонным
_MIN_PHONE_DIGITS = 9


def _first(record: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


class Facility(BaseModel):
    """
    Медучреждение.

    Принимает записи разной формы: Kakao Local (place_name, x, y как строки),
    рекомендованные больницы (placeName, lat, lng) и уже нормализованные.
    """

    id: str = Field("", description="ID места у провайдера")
    name: str = Field(..., description="Название")
    location: Coordinate = Field(..., description="Координаты")
    address: str = Field("", description="Адрес (дорожный, если есть)")
    phone: str = Field("", description="Телефон")
    category: str = Field("", description="Категория провайдера")
    place_url: str = Field("", description="Страница места")
    distance_km: Optional[float] = Field(None, ge=0.0, description="Расстояние от пользователя")

    class Config:
        from_attributes = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def normalize_record(cls, data: Any) -> Any:
        """Приводит запись провайдера к полям модели."""
        if not isinstance(data, dict) or "location" in data:
            return data

        lat = _first(data, _LAT_KEYS)
        lng = _first(data, _LNG_KEYS)
        try:
            lat_f = float(lat)
            lng_f = float(lng)
        except (TypeError, ValueError):
            raise ValueError(f"У медучреждения нет координат: lat={lat!r}, lng={lng!r}") from None
        # 0 означает отсутствующую координату, а не точку на экваторе
        if lat_f == 0 or lng_f == 0:
            raise ValueError("У медучреждения нулевые координаты")

        distance_km = data.get("distance_km")
        if distance_km is None and data.get("distance") not in (None, ""):
            # Kakao отдаёт расстояние в метрах строкой
            distance_km = float(data["distance"]) / 1000

        return {
            "id": str(data.get("id") or ""),
            "name": _first(data, _NAME_KEYS) or "",
            "location": Coordinate(lat=lat_f, lng=lng_f),
            "address": _first(data, _ADDRESS_KEYS) or "",
            "phone": data.get("phone") or "",
            "category": data.get("category_name") or data.get("category") or "",
            "place_url": data.get("place_url") or "",
            "distance_km": distance_km,
        }

    @property
    def dial_number(self) -> Optional[str]:
        """Телефон только цифрами для tel: ссылки; None, если номер некорректен."""
        digits = re.sub(r"[^0-9]", "", self.phone)
        if len(digits) < _MIN_PHONE_DIGITS:
            return None
        return digits


class KakaoLocalMeta(BaseModel):
    total_count: int = 0
    pageable_count: int = 0
    is_end: bool = True

    class Config:
        extra = "ignore"


class KakaoLocalResponse(BaseModel):
    """Ответ search/keyword.json и search/category.json."""
    meta: KakaoLocalMeta = Field(default_factory=KakaoLocalMeta)
    documents: list[dict[str, Any]] = Field(default_factory=list)

    class Config:
        extra = "ignore"
