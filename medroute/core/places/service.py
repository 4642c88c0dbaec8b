# medroute/core/places/service.py
"""
Поиск медучреждений вокруг пользователя.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from medroute.common.logger import log_info, log_warning
from medroute.core.geo.distance import distance_km
from medroute.core.geo.models import Coordinate
from medroute.core.places.client import KakaoLocalClient
from medroute.core.places.models import Facility


class FacilitySearchService:
    """
    Поиск больниц по ключевому слову в выбранном радиусе.

    Реализует:
    - Поиск по радиусу из допустимого набора
    - Нормализацию записей разной формы
    - Сортировку по расстоянию и ограничение выдачи
    """

    def __init__(
        self,
        client: KakaoLocalClient | None = None,
        keyword: str | None = None,
        radius_options: list[int] | None = None,
        result_limit: int | None = None,
    ) -> None:
        if keyword is None or radius_options is None or result_limit is None:
            from medroute.config import settings
            keyword = keyword or settings.facilities.FACILITY_KEYWORD
            radius_options = radius_options or settings.facilities.FACILITY_RADIUS_OPTIONS
            result_limit = result_limit or settings.facilities.FACILITY_RESULT_LIMIT

        self._client = client or KakaoLocalClient()
        self._keyword = keyword
        self._radius_options = list(radius_options)
        self._result_limit = result_limit

    @property
    def radius_options(self) -> list[int]:
        return list(self._radius_options)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.close()

    async def search_nearby(self, center: Coordinate, radius_m: int) -> list[Facility]:
        """
        Ищет медучреждения вокруг точки.

        Args:
            center: Местоположение пользователя
            radius_m: Радиус поиска, одно из radius_options

        Returns:
            Не более result_limit учреждений, ближайшие первыми

        Raises:
            ValueError: радиус не входит в допустимый набор
            RouteUnavailable: ошибка провайдера мест
        """
        if radius_m not in self._radius_options:
            raise ValueError(f"Недопустимый радиус {radius_m}, доступны {self._radius_options}")

        documents = await self._client.search_keyword(self._keyword, center, radius_m)
        facilities = await normalize_facilities(documents, center)

        await log_info(
            f"Найдено медучреждений: {len(facilities)} в радиусе {radius_m} м",
            extra={"center": center.as_lng_lat()},
        )
        return facilities[: self._result_limit]


async def normalize_facilities(
    records: Iterable[Mapping[str, Any]],
    center: Coordinate | None = None,
) -> list[Facility]:
    """
    Нормализует записи, отбрасывая учреждения без координат.
    Если задан center, пересчитывает расстояние и сортирует по нему.
    """
    facilities: list[Facility] = []
    for record in records:
        try:
            facility = Facility.model_validate(dict(record))
        except ValidationError as e:
            name = record.get("place_name") or record.get("placeName") or record.get("name")
            await log_warning(
                f"Медучреждение пропущено: {name!r}",
                extra={"errors": e.errors(include_url=False)},
            )
            continue
        if center is not None:
            facility = facility.model_copy(update={"distance_km": distance_km(center, facility.location)})
        facilities.append(facility)

    if center is not None:
        facilities.sort(key=lambda f: f.distance_km or 0.0)
    return facilities
