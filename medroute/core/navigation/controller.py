# medroute/core/navigation/controller.py
"""
Контроллер экрана навигации.

Владеет рендерером, нумератором запросов и трекером; запрашивает
автомобильный и транзитный маршруты параллельно и переключает режим.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from medroute.common.constants import RouteKind, TrackingState
from medroute.common.errors import MedRouteError, RouteUnavailable
from medroute.common.logger import log_debug, log_info
from medroute.core.geo.models import Coordinate, validate_coordinate
from medroute.core.navigation.sequencer import RequestSequencer
from medroute.core.rendering.renderer import RouteRenderer
from medroute.core.rendering.surface import MapSurface
from medroute.core.routing.driving import DrivingRouteService
from medroute.core.routing.models import NavigationUpdate, RouteOptions, RouteResult
from medroute.core.routing.transit import TransitRouteService
from medroute.core.tracking.location import LocationProvider
from medroute.core.tracking.tracker import LiveTracker


UpdateCallback = Callable[[NavigationUpdate], Awaitable[None]]
ErrorCallback = Callable[[MedRouteError], Awaitable[None]]


class NavigationController:
    """
    Один объект на экран навигации.

    Ответ на запрос маршрута применяется, только если запрос последний;
    ошибки провайдеров возвращаются в RouteResult, а не исключениями.
    """

    def __init__(
        self,
        surface: MapSurface,
        location_provider: LocationProvider,
        driving: DrivingRouteService | None = None,
        transit: TransitRouteService | None = None,
        on_update: UpdateCallback | None = None,
        on_error: ErrorCallback | None = None,
        lang: str | None = None,
        recompute_min_interval_sec: float | None = None,
    ) -> None:
        self._driving = driving or DrivingRouteService()
        self._transit = transit or TransitRouteService()
        self._location_provider = location_provider
        self._renderer = RouteRenderer(surface, lang=lang)
        self._sequencer = RequestSequencer()
        self._on_update = on_update
        self._tracker = LiveTracker(
            provider=location_provider,
            driving=self._driving,
            renderer=self._renderer,
            sequencer=self._sequencer,
            on_update=self._handle_update,
            on_error=on_error,
            recompute_min_interval_sec=recompute_min_interval_sec,
        )

        self._mode = RouteKind.DRIVING
        self._options: RouteOptions | None = None
        self._origin: Coordinate | None = None
        self._destination: Coordinate | None = None

    @property
    def mode(self) -> RouteKind:
        return self._mode

    @property
    def options(self) -> RouteOptions | None:
        return self._options

    @property
    def renderer(self) -> RouteRenderer:
        return self._renderer

    @property
    def tracker(self) -> LiveTracker:
        return self._tracker

    @property
    def is_tracking(self) -> bool:
        return self._tracker.state == TrackingState.TRACKING

    async def locate(self) -> Coordinate:
        """
        Текущее положение пользователя.

        Raises:
            LocationError: геолокация недоступна
        """
        fix = await self._location_provider.get_current_position()
        self._renderer.mark_position(fix.coordinate)
        return fix.coordinate

    # =========================================================================
    # ПОИСК МАРШРУТОВ
    # =========================================================================

    async def find_routes(self, origin: Coordinate, destination: Coordinate) -> RouteOptions:
        """
        Запрашивает автомобильный и транзитный маршруты параллельно
        и рисует маршрут выбранного режима.

        Raises:
            InvalidCoordinate: координаты вне диапазона
        """
        validate_coordinate(origin.lat, origin.lng)
        validate_coordinate(destination.lat, destination.lng)

        token = self._sequencer.issue()
        driving, transit = await asyncio.gather(
            self._fetch(self._driving, origin, destination),
            self._fetch(self._transit, origin, destination),
        )
        options = RouteOptions(driving=driving, transit=transit, sequence=token)

        if not self._sequencer.is_latest(token):
            await log_debug(f"Устаревшие варианты маршрута #{token} отброшены")
            return options

        self._origin = origin
        self._destination = destination
        self._options = options
        await self._show_selected()

        await log_info(
            f"Варианты маршрута #{token}: авто={'ok' if driving.ok else 'нет'}, "
            f"транспорт={'ok' if transit.ok else 'нет'}"
            f"{' (оценка)' if transit.route is not None and transit.route.is_estimated else ''}",
        )
        return options

    @staticmethod
    async def _fetch(
        service: DrivingRouteService | TransitRouteService,
        origin: Coordinate,
        destination: Coordinate,
    ) -> RouteResult:
        try:
            return RouteResult.success(await service.fetch_route(origin, destination))
        except RouteUnavailable as e:
            return RouteResult.failure(e)

    async def select_mode(self, kind: RouteKind) -> RouteResult | None:
        """Переключает отображаемый режим маршрута."""
        self._mode = kind
        self._tracker.draw_routes = kind == RouteKind.DRIVING
        if self._options is None:
            return None
        await self._show_selected()
        return self._options.get(kind)

    async def _show_selected(self) -> None:
        result = self._options.get(self._mode)
        if result.route is None:
            if self._renderer.active is not None:
                self._renderer.dispose(self._renderer.active)
            return

        await self._renderer.draw(result.route)
        self._renderer.fit_view(result.route.path)

    # =========================================================================
    # ЖИВАЯ НАВИГАЦИЯ
    # =========================================================================

    async def start_tracking(self) -> None:
        """
        Запускает живую навигацию в автомобильном режиме.

        Raises:
            RuntimeError: маршрут ещё не запрашивался
        """
        if self._origin is None or self._destination is None:
            raise RuntimeError("Сначала нужно запросить маршрут")
        self._mode = RouteKind.DRIVING
        self._tracker.draw_routes = True
        await self._tracker.start(self._origin, self._destination)

    async def stop_tracking(self) -> None:
        await self._tracker.stop()

    async def _handle_update(self, update: NavigationUpdate) -> None:
        self._origin = update.origin
        if self._options is not None:
            self._options = RouteOptions(
                driving=RouteResult.success(update.route),
                transit=self._options.transit,
                sequence=update.sequence,
            )
        if self._on_update is not None:
            await self._on_update(update)

    async def refresh(self) -> RouteResult | None:
        """Кнопка "обновить маршрут"."""
        if self.is_tracking:
            return await self._tracker.refresh()
        if self._origin is None or self._destination is None:
            return None
        options = await self.find_routes(self._origin, self._destination)
        return options.get(self._mode)

    def center(self) -> None:
        """Кнопка "центрировать"."""
        if self.is_tracking:
            self._tracker.center()
        elif self._origin is not None and self._destination is not None:
            self._renderer.fit_view([self._origin, self._destination])

    async def close(self) -> None:
        """Останавливает навигацию, очищает карту и закрывает клиенты."""
        await self._tracker.stop()
        self._renderer.clear()
        await self._driving.close()
        await self._transit.close()
