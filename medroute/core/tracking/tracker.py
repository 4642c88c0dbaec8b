# medroute/core/tracking/tracker.py
"""
Живое отслеживание: каждое обновление положения пересчитывает
и перерисовывает автомобильный маршрут до медучреждения.

Состояния: IDLE -> TRACKING -> IDLE.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from medroute.common.constants import TrackingState, TypeMsg
from medroute.common.errors import LocationError, MedRouteError, RouteUnavailable
from medroute.common.logger import log_debug, log_info, log_warning
from medroute.core.geo.models import Coordinate, validate_coordinate
from medroute.core.navigation.sequencer import RequestSequencer
from medroute.core.rendering.renderer import RouteRenderer
from medroute.core.routing.driving import DrivingRouteService
from medroute.core.routing.models import NavigationUpdate, Route, RouteResult
from medroute.core.tracking.location import LocationProvider, LocationSubscription, PositionFix


UpdateCallback = Callable[[NavigationUpdate], Awaitable[None]]
ErrorCallback = Callable[[MedRouteError], Awaitable[None]]


@dataclass
class TrackingSession:
    """Активная сессия навигации."""
    origin: Coordinate
    destination: Coordinate
    active: bool = True
    last_route: Optional[Route] = None
    last_recompute_at: Optional[float] = None


class LiveTracker:
    """
    Трекер положения пользователя.

    Держит не больше одной подписки на геолокацию и одной сессии.
    Ошибки маршрута уходят в on_error и не прерывают отслеживание;
    запрет доступа к геолокации завершает сессию.
    """

    def __init__(
        self,
        provider: LocationProvider,
        driving: DrivingRouteService,
        renderer: RouteRenderer,
        sequencer: RequestSequencer | None = None,
        on_update: UpdateCallback | None = None,
        on_error: ErrorCallback | None = None,
        recompute_min_interval_sec: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if recompute_min_interval_sec is None:
            from medroute.config import settings
            recompute_min_interval_sec = settings.tracking.RECOMPUTE_MIN_INTERVAL_SEC

        self._provider = provider
        self._driving = driving
        self._renderer = renderer
        self._sequencer = sequencer or RequestSequencer()
        self._on_update = on_update
        self._on_error = on_error
        self._min_interval = recompute_min_interval_sec
        self._clock = clock

        self._session: TrackingSession | None = None
        self._subscription: LocationSubscription | None = None
        # Когда на карте другой режим, маршрут только публикуется
        self.draw_routes = True

    @property
    def state(self) -> TrackingState:
        if self._session is not None and self._session.active:
            return TrackingState.TRACKING
        return TrackingState.IDLE

    @property
    def session(self) -> TrackingSession | None:
        return self._session

    # =========================================================================
    # ЖИЗНЕННЫЙ ЦИКЛ
    # =========================================================================

    async def start(self, origin: Coordinate, destination: Coordinate) -> TrackingSession:
        """
        Начинает отслеживание.
        Повторный вызов завершает предыдущую сессию.

        Raises:
            InvalidCoordinate: координаты вне диапазона
        """
        validate_coordinate(origin.lat, origin.lng)
        validate_coordinate(destination.lat, destination.lng)

        if self.state == TrackingState.TRACKING:
            await self.stop()

        session = TrackingSession(origin=origin, destination=destination)
        self._session = session
        self._subscription = self._provider.subscribe(self._handle_fix, self._handle_error)

        await log_info(
            "Отслеживание запущено",
            extra={"origin": origin.as_lng_lat(), "destination": destination.as_lng_lat()},
        )
        return session

    async def stop(self) -> None:
        """Останавливает отслеживание. Повторный вызов ничего не делает."""
        session = self._session
        if session is None or not session.active:
            return

        self._release_subscription()
        self._sequencer.invalidate()
        session.active = False

        await log_info("Отслеживание остановлено")

    def _release_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    # =========================================================================
    # ОБНОВЛЕНИЯ ПОЛОЖЕНИЯ
    # =========================================================================

    async def _handle_fix(self, fix: PositionFix) -> None:
        session = self._session
        if session is None or not session.active:
            return

        session.origin = fix.coordinate
        self._renderer.mark_position(fix.coordinate)

        now = self._clock()
        if (
            self._min_interval > 0
            and session.last_recompute_at is not None
            and now - session.last_recompute_at < self._min_interval
        ):
            return

        session.last_recompute_at = now
        await self._recompute(session)

    async def _handle_error(self, error: LocationError) -> None:
        session = self._session
        if session is None or not session.active:
            return

        if error.terminal:
            await log_warning(f"Геолокация запрещена, сессия завершена: {error}")
            self._release_subscription()
            self._sequencer.invalidate()
            session.active = False
        else:
            await log_info(
                f"Временная ошибка геолокации ({error.code.name}): {error}",
                type_msg=TypeMsg.WARNING,
            )

        await self._publish_error(error)

    # =========================================================================
    # ПЕРЕСЧЁТ МАРШРУТА
    # =========================================================================

    async def refresh(self) -> RouteResult | None:
        """Пересчитывает маршрут от текущей точки по запросу пользователя."""
        session = self._session
        if session is None or not session.active:
            return None
        return await self._recompute(session)

    def center(self) -> None:
        """Возвращает вид карты к отрезку от пользователя до медучреждения."""
        session = self._session
        if session is None:
            return
        self._renderer.fit_view([session.origin, session.destination])

    async def _recompute(self, session: TrackingSession) -> RouteResult:
        token = self._sequencer.issue()
        origin = session.origin

        try:
            route = await self._driving.fetch_route(origin, session.destination)
        except RouteUnavailable as e:
            if self._is_current(session, token):
                await self._publish_error(e)
            return RouteResult.failure(e)

        if not self._is_current(session, token):
            await log_debug(f"Устаревший ответ #{token} отброшен (последний #{self._sequencer.latest})")
            return RouteResult.success(route)

        if self.draw_routes:
            await self._renderer.draw(route)
            self._renderer.fit_view([origin, session.destination])
        session.last_route = route

        if self._on_update is not None:
            await self._on_update(NavigationUpdate(
                origin=origin,
                destination=session.destination,
                route=route,
                sequence=token,
            ))
        return RouteResult.success(route)

    def _is_current(self, session: TrackingSession, token: int) -> bool:
        return session is self._session and session.active and self._sequencer.is_latest(token)

    async def _publish_error(self, error: MedRouteError) -> None:
        if self._on_error is not None:
            await self._on_error(error)
