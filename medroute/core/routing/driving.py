# medroute/core/routing/driving.py
"""
Сервис автомобильных маршрутов через Kakao Mobility Directions API.
"""

from __future__ import annotations

import httpx

from medroute.common.constants import TypeMsg
from medroute.common.errors import CredentialMissing, ProviderUnavailable
from medroute.common.http import parse_schema, request_json
from medroute.common.logger import log_error, log_info
from medroute.core.geo.models import Coordinate, validate_coordinate
from medroute.core.routing.models import Route
from medroute.core.routing.normalizer import normalize_driving
from medroute.core.routing.schemas import KakaoDirectionsResponse


class DrivingRouteService:
    """
    Автомобильный маршрут от точки до точки.

    Ошибки не повторяются автоматически: повтор делает пользователь
    кнопкой обновления или следующее обновление позиции.
    """

    PROVIDER = "kakao"
    DIRECTIONS_PATH = "/v1/directions"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            api_key: REST ключ Kakao (берётся из конфига если None)
            base_url: Базовый адрес Kakao Mobility
            language: Язык подписи маршрута
            timeout: Таймаут HTTP запроса в секундах
        """
        if api_key is None:
            from medroute.config import settings
            api_key = settings.providers.KAKAO_REST_API_KEY
            base_url = base_url or settings.providers.KAKAO_NAVI_BASE_URL
            language = language or settings.domain.DEFAULT_LANGUAGE
            timeout = timeout if timeout is not None else settings.providers.HTTP_TIMEOUT

        self._api_key = api_key
        self._base_url = (base_url or "https://apis-navi.kakaomobility.com").rstrip("/")
        self._language = language or "ko"
        self._client = httpx.AsyncClient(timeout=timeout if timeout is not None else 10.0)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """
        Запрашивает автомобильный маршрут.

        Raises:
            InvalidCoordinate: координаты вне диапазона (до запроса в сеть)
            CredentialMissing: не настроен REST ключ
            ProviderUnavailable: сеть, не 2xx, некорректный ответ
            RouteNotFound: провайдер не нашёл маршрут
        """
        validate_coordinate(origin.lat, origin.lng)
        validate_coordinate(destination.lat, destination.lng)

        if not self._api_key:
            await log_error("Kakao REST API key не настроен")
            raise CredentialMissing("Kakao REST API key не настроен", provider=self.PROVIDER)

        data = await request_json(
            self._client,
            "GET",
            f"{self._base_url}{self.DIRECTIONS_PATH}",
            provider=self.PROVIDER,
            params={
                "origin": origin.as_lng_lat(),
                "destination": destination.as_lng_lat(),
            },
            headers={"Authorization": f"KakaoAK {self._api_key}"},
        )
        response = await parse_schema(KakaoDirectionsResponse, data, provider=self.PROVIDER)

        try:
            route = normalize_driving(response, self._language)
        except ValueError as e:
            await log_error(f"Некорректные вершины маршрута Kakao: {e}")
            raise ProviderUnavailable("Некорректное тело ответа", provider=self.PROVIDER) from e

        await log_info(
            f"Автомобильный маршрут: {route.distance_km:.1f} км, {route.duration_min} мин",
            type_msg=TypeMsg.DEBUG,
            extra={"origin": origin.as_lng_lat(), "destination": destination.as_lng_lat()},
        )
        return route
