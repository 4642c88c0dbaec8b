# medroute/core/routing/pedestrian.py
"""
Клиент пешеходных маршрутов OSRM (профиль foot).
Используется для дорисовки пеших участков, у которых транзитный
провайдер не отдал подробной геометрии.
"""

from __future__ import annotations

import httpx

from medroute.common.constants import TypeMsg
from medroute.common.errors import DecodeError, ProviderUnavailable, RouteNotFound
from medroute.common.http import parse_schema, request_json
from medroute.common.logger import log_info
from medroute.core.geo import polyline
from medroute.core.geo.models import Coordinate
from medroute.core.routing.schemas import OsrmRouteResponse


class PedestrianRouteClient:
    """
    OSRM адаптер: формирует URL (lng,lat), запрашивает /route
    и возвращает геометрию пешего маршрута.
    """

    PROVIDER = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        profile: str = "foot",
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            base_url: Адрес OSRM (берётся из конфига если None)
            profile: Профиль маршрутизации
            timeout: Таймаут HTTP запроса в секундах
        """
        if base_url is None or timeout is None:
            from medroute.config import settings
            base_url = base_url or settings.providers.OSRM_BASE_URL
            timeout = timeout if timeout is not None else settings.providers.HTTP_TIMEOUT

        self._base_url = base_url.rstrip("/")
        self._profile = profile
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def fetch_path(self, start: Coordinate, end: Coordinate) -> list[Coordinate]:
        """
        Пешеходная геометрия между двумя точками.

        Raises:
            ProviderUnavailable: сетевая ошибка, не 2xx, некорректный ответ
            RouteNotFound: OSRM не нашёл маршрут
        """
        url = f"{self._base_url}/route/v1/{self._profile}/{start.as_lng_lat()};{end.as_lng_lat()}"
        data = await request_json(
            self._client,
            "GET",
            url,
            provider=self.PROVIDER,
            params={"overview": "full", "geometries": "polyline"},
        )
        response = await parse_schema(OsrmRouteResponse, data, provider=self.PROVIDER)

        if response.code != "Ok" or not response.routes:
            await log_info(
                f"OSRM не нашёл пеший маршрут: code={response.code}",
                type_msg=TypeMsg.WARNING,
            )
            raise RouteNotFound("Пеший маршрут не найден", provider=self.PROVIDER)

        try:
            points = polyline.decode(response.routes[0].geometry)
        except DecodeError as e:
            raise ProviderUnavailable("Некорректная геометрия OSRM", provider=self.PROVIDER) from e

        if len(points) < 2:
            raise RouteNotFound("Пустая геометрия пешего маршрута", provider=self.PROVIDER)

        return points
