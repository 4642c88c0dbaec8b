# medroute/core/routing/transit.py
"""
Сервис маршрутов на общественном транспорте через Google Routes API v2.

Цепочка деградации: провайдер -> проверка остановок рядом -> оценка
по расстоянию. Если и проверка не удалась, маршрут недоступен.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import httpx

from medroute.common.constants import TypeMsg
from medroute.common.errors import CredentialMissing, ProviderUnavailable, RouteNotFound, RouteUnavailable
from medroute.common.http import parse_schema, request_json
from medroute.common.logger import log_error, log_info, log_warning
from medroute.config.loader import TransitSettings
from medroute.core.geo.models import Coordinate, validate_coordinate
from medroute.core.routing.estimator import EstimateParams, TransitPlausibilityProbe, estimate_transit_route
from medroute.core.routing.models import Route
from medroute.core.routing.normalizer import first_leg, needs_walking_path, normalize_transit, step_endpoints
from medroute.core.routing.pedestrian import PedestrianRouteClient
from medroute.core.routing.schemas import ComputeRoutesResponse, RouteLeg


FIELD_MASK = ",".join((
    "routes.distanceMeters",
    "routes.duration",
    "routes.legs.distanceMeters",
    "routes.legs.duration",
    "routes.legs.steps.travelMode",
    "routes.legs.steps.polyline",
    "routes.legs.steps.startLocation",
    "routes.legs.steps.endLocation",
    "routes.legs.steps.distanceMeters",
    "routes.legs.steps.staticDuration",
    "routes.legs.steps.transitDetails",
))


class TransitRouteService:
    """
    Маршрут на общественном транспорте.

    Реализует:
    - Запрос computeRoutes с предпочтением меньшей ходьбы
    - Дорисовку пеших участков без подробной геометрии через OSRM
    - Оценочный маршрут, если провайдер недоступен, но рядом есть остановки
    """

    PROVIDER = "google"

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        language: str | None = None,
        units: str | None = None,
        timeout: float | None = None,
        pedestrian: PedestrianRouteClient | None = None,
        probe: TransitPlausibilityProbe | None = None,
        options: TransitSettings | None = None,
    ) -> None:
        """
        Args:
            api_key: Ключ Google Routes (берётся из конфига если None)
            url: Адрес computeRoutes
            language: Язык ответа и подписей
            units: Система единиц
            timeout: Таймаут HTTP запроса в секундах
            pedestrian: Клиент пешеходных маршрутов
            probe: Проверка остановок для оценочного маршрута
            options: Параметры секции transit
        """
        if api_key is None or options is None:
            from medroute.config import settings
            if api_key is None:
                api_key = settings.providers.GOOGLE_ROUTES_API_KEY
                url = url or settings.providers.GOOGLE_ROUTES_URL
                language = language or settings.domain.DEFAULT_LANGUAGE
                units = units or settings.domain.UNITS
                timeout = timeout if timeout is not None else settings.providers.HTTP_TIMEOUT
            options = options or settings.transit

        self._api_key = api_key
        self._url = url or "https://routes.googleapis.com/directions/v2:computeRoutes"
        self._language = language or "ko"
        self._units = units or "METRIC"
        self._options = options
        self._estimate_params = EstimateParams(
            minutes_per_km=options.ESTIMATE_MINUTES_PER_KM,
            walking_minutes_per_km=options.ESTIMATE_WALKING_MINUTES_PER_KM,
            transfer_threshold_km=options.ESTIMATE_TRANSFER_THRESHOLD_KM,
        )
        self._client = httpx.AsyncClient(timeout=timeout if timeout is not None else 10.0)
        self._pedestrian = pedestrian or PedestrianRouteClient()
        self._probe = probe or TransitPlausibilityProbe()

    async def close(self) -> None:
        """Закрывает HTTP клиенты."""
        await self._client.aclose()
        await self._pedestrian.close()
        await self._probe.close()

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """
        Маршрут на транспорте с цепочкой деградации.

        Raises:
            InvalidCoordinate: координаты вне диапазона (до запроса в сеть)
            RouteUnavailable: провайдер недоступен и оценку построить нельзя
        """
        validate_coordinate(origin.lat, origin.lng)
        validate_coordinate(destination.lat, destination.lng)

        try:
            return await self._fetch_from_provider(origin, destination)
        except RouteUnavailable as e:
            await log_warning(
                f"Транзитный маршрут недоступен ({type(e).__name__}: {e}), переходим к оценке",
                extra={"origin": origin.as_lng_lat(), "destination": destination.as_lng_lat()},
            )
            return await self._estimate(origin, destination)

    # =========================================================================
    # ПРОВАЙДЕР
    # =========================================================================

    def _request_body(self, origin: Coordinate, destination: Coordinate) -> dict[str, Any]:
        return {
            "origin": {"location": {"latLng": origin.to_lat_lng()}},
            "destination": {"location": {"latLng": destination.to_lat_lng()}},
            "travelMode": "TRANSIT",
            "transitPreferences": {
                "routingPreference": self._options.ROUTING_PREFERENCE,
                "allowedTravelModes": list(self._options.ALLOWED_TRANSIT_MODES),
            },
            "departureTime": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "languageCode": self._language,
            "units": self._units,
        }

    async def _fetch_from_provider(self, origin: Coordinate, destination: Coordinate) -> Route:
        if not self._api_key:
            await log_error("Google Routes API key не настроен")
            raise CredentialMissing("Google Routes API key не настроен", provider=self.PROVIDER)

        data = await request_json(
            self._client,
            "POST",
            self._url,
            provider=self.PROVIDER,
            json=self._request_body(origin, destination),
            headers={
                "Content-Type": "application/json",
                "X-Goog-Api-Key": self._api_key,
                "X-Goog-FieldMask": FIELD_MASK,
            },
        )
        response = await parse_schema(ComputeRoutesResponse, data, provider=self.PROVIDER)

        walking_paths = await self._walking_paths(first_leg(response))

        try:
            route = normalize_transit(
                response,
                self._language,
                walking_paths=walking_paths,
                pedestrian_speed_mps=self._options.PEDESTRIAN_SPEED_MPS,
                min_walking_points=self._options.MIN_WALKING_POINTS,
            )
        except ValueError as e:
            await log_error(f"Некорректный транзитный маршрут: {e}")
            raise ProviderUnavailable("Некорректное тело ответа", provider=self.PROVIDER) from e

        await log_info(
            f"Транзитный маршрут: {route.summary_label}, {route.duration_min} мин, "
            f"пересадок {route.transfer_count}",
            type_msg=TypeMsg.DEBUG,
        )
        return route

    async def _walking_paths(self, leg: RouteLeg) -> dict[int, list[Coordinate]]:
        """Дорисовывает пешие шаги с недостаточной геометрией, параллельно."""
        pending: list[tuple[int, Coordinate, Coordinate]] = []
        for index, step in enumerate(leg.steps):
            if not needs_walking_path(step, self._options.MIN_WALKING_POINTS):
                continue
            endpoints = step_endpoints(step)
            if endpoints is not None:
                pending.append((index, *endpoints))

        if not pending:
            return {}

        paths = await asyncio.gather(*(self._walking_path(start, end) for _, start, end in pending))
        return {index: path for (index, _, _), path in zip(pending, paths) if path}

    async def _walking_path(self, start: Coordinate, end: Coordinate) -> list[Coordinate] | None:
        try:
            return await self._pedestrian.fetch_path(start, end)
        except RouteUnavailable as e:
            await log_warning(f"Пеший участок будет прямой линией: {e}")
            return None

    # =========================================================================
    # ОЦЕНКА
    # =========================================================================

    async def _estimate(self, origin: Coordinate, destination: Coordinate) -> Route:
        try:
            confirmed = await self._probe.confirm(origin)
        except RouteUnavailable as e:
            await log_error(f"Проверка остановок не удалась: {e}")
            raise RouteUnavailable(
                "Маршрут на общественном транспорте недоступен", provider=self.PROVIDER
            ) from e

        if not confirmed:
            await log_info(
                "Рядом нет остановок общественного транспорта",
                type_msg=TypeMsg.WARNING,
                extra={"origin": origin.as_lng_lat()},
            )
            raise RouteNotFound("Рядом нет остановок общественного транспорта", provider=self.PROVIDER)

        route = estimate_transit_route(origin, destination, self._language, self._estimate_params)
        await log_info(
            f"Оценочный транзитный маршрут: {route.distance_km:.1f} км, {route.duration_min} мин",
            extra={"origin": origin.as_lng_lat(), "destination": destination.as_lng_lat()},
        )
        return route
