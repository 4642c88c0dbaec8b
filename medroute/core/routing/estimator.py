# medroute/core/routing/estimator.py
"""
Оценочный маршрут на общественном транспорте.

Когда транзитный провайдер недоступен, проверяем, что рядом с пользователем
вообще есть остановки, и строим грубую оценку по расстоянию.
"""

from __future__ import annotations

from dataclasses import dataclass

from medroute.common.constants import RouteKind, TravelMode
from medroute.common.localization import get_text
from medroute.common.logger import log_debug
from medroute.core.geo.distance import distance_km
from medroute.core.geo.models import Coordinate
from medroute.core.places.client import KakaoLocalClient
from medroute.core.routing import styles
from medroute.core.routing.models import PathSegment, Route
from medroute.core.routing.normalizer import round_half_up


SUBWAY_STATION_CATEGORY = "SW8"


@dataclass(frozen=True)
class EstimateParams:
    """Коэффициенты эвристики (секция transit конфига)."""
    minutes_per_km: float = 2.5
    walking_minutes_per_km: float = 0.3
    transfer_threshold_km: float = 3.0


def estimate_transit_route(
    origin: Coordinate,
    destination: Coordinate,
    lang: str,
    params: EstimateParams | None = None,
) -> Route:
    """
    Оценка маршрута по прямому расстоянию.

    duration = round(d * 2.5), минимум 1; пешком = max(1, round(d * 0.3));
    одна пересадка, если d > 3 км.
    """
    params = params or EstimateParams()
    distance = distance_km(origin, destination)

    return Route(
        kind=RouteKind.TRANSIT,
        distance_km=distance,
        duration_min=max(1, round_half_up(distance * params.minutes_per_km)),
        segments=(
            PathSegment(
                mode=TravelMode.TRANSIT,
                points=(origin, destination),
                style=styles.APPROXIMATE_STYLE,
                z_order=styles.Z_VEHICLE,
                approximate=True,
            ),
        ),
        legs=(),
        transfer_count=1 if distance > params.transfer_threshold_km else 0,
        walking_minutes=max(1, round_half_up(distance * params.walking_minutes_per_km)),
        summary_label=get_text("ESTIMATED_TRANSIT_LABEL", lang),
        is_estimated=True,
    )


class TransitPlausibilityProbe:
    """
    Проверка наличия общественного транспорта рядом с точкой:
    сначала станции метро (категория SW8), затем автобусные остановки
    (поиск по ключевому слову).
    """

    def __init__(
        self,
        client: KakaoLocalClient | None = None,
        radius_m: int | None = None,
        bus_stop_keyword: str | None = None,
    ) -> None:
        if radius_m is None or bus_stop_keyword is None:
            from medroute.config import settings
            radius_m = radius_m or settings.transit.PROBE_RADIUS_M
            bus_stop_keyword = bus_stop_keyword or settings.transit.PROBE_BUS_STOP_KEYWORD

        self._client = client or KakaoLocalClient()
        self._radius_m = radius_m
        self._bus_stop_keyword = bus_stop_keyword

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.close()

    async def confirm(self, origin: Coordinate) -> bool:
        """
        True, если рядом есть станция метро или автобусная остановка.

        Raises:
            RouteUnavailable: провайдер мест недоступен
        """
        stations = await self._client.search_category(
            SUBWAY_STATION_CATEGORY, origin, self._radius_m, size=1
        )
        if stations:
            await log_debug(f"Рядом станция метро: {stations[0].get('place_name', '')}")
            return True

        stops = await self._client.search_keyword(
            self._bus_stop_keyword, origin, self._radius_m, size=1
        )
        if stops:
            await log_debug(f"Рядом остановка: {stops[0].get('place_name', '')}")
            return True

        return False
