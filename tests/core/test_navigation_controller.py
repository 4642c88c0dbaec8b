# tests/core/test_navigation_controller.py
"""
Тесты контроллера экрана навигации.
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import FakeLocationProvider, RecordingSurface
from medroute.common.constants import RouteKind, TrackingState
from medroute.common.errors import InvalidCoordinate, LocationUnavailable, ProviderUnavailable, RouteNotFound
from medroute.core.geo.models import Coordinate
from medroute.core.navigation.controller import NavigationController
from medroute.core.routing.models import NavigationUpdate, Route
from medroute.core.routing.normalizer import normalize_driving, normalize_transit
from medroute.core.routing.schemas import ComputeRoutesResponse, KakaoDirectionsResponse
from medroute.core.tracking.location import PositionFix


@pytest.fixture
def driving_route(kakao_directions_payload: dict[str, Any]) -> Route:
    return normalize_driving(KakaoDirectionsResponse(**kakao_directions_payload), "ko")


@pytest.fixture
def transit_route(google_transit_payload: dict[str, Any]) -> Route:
    return normalize_transit(ComputeRoutesResponse(**google_transit_payload), "ko")


def make_service(route: Route) -> MagicMock:
    service = MagicMock()
    service.fetch_route = AsyncMock(return_value=route)
    service.close = AsyncMock()
    return service


@pytest.fixture
def driving(driving_route: Route) -> MagicMock:
    return make_service(driving_route)


@pytest.fixture
def transit(transit_route: Route) -> MagicMock:
    return make_service(transit_route)


@pytest.fixture
def updates() -> list[NavigationUpdate]:
    return []


@pytest.fixture
def controller(
    surface: RecordingSurface,
    location_provider: FakeLocationProvider,
    driving: MagicMock,
    transit: MagicMock,
    updates: list[NavigationUpdate],
) -> NavigationController:
    async def on_update(update: NavigationUpdate) -> None:
        updates.append(update)

    return NavigationController(
        surface,
        location_provider,
        driving=driving,
        transit=transit,
        on_update=on_update,
        lang="ko",
        recompute_min_interval_sec=0,
    )


class TestLocate:
    """Тесты для locate."""

    @pytest.mark.asyncio
    async def test_locate(
        self,
        controller: NavigationController,
        location_provider: FakeLocationProvider,
        surface: RecordingSurface,
        seoul_city_hall: Coordinate,
    ) -> None:
        location_provider.current = PositionFix(coordinate=seoul_city_hall, accuracy_m=12.0)

        assert await controller.locate() == seoul_city_hall
        assert [m.position for m in surface.markers.values()] == [seoul_city_hall]

    @pytest.mark.asyncio
    async def test_locate_unavailable(self, controller: NavigationController) -> None:
        with pytest.raises(LocationUnavailable):
            await controller.locate()


class TestFindRoutes:
    """Тесты для find_routes."""

    @pytest.mark.asyncio
    async def test_both_routes(
        self,
        controller: NavigationController,
        surface: RecordingSurface,
        driving_route: Route,
        transit_route: Route,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """По умолчанию рисуется автомобильный маршрут."""
        options = await controller.find_routes(seoul_city_hall, hospital_location)

        assert options.driving.route is driving_route
        assert options.transit.route is transit_route
        assert controller.options is options
        assert controller.mode == RouteKind.DRIVING
        assert controller.renderer.active.route is driving_route
        assert surface.bounds[-1] == driving_route.path

    @pytest.mark.asyncio
    async def test_one_failure(
        self,
        controller: NavigationController,
        driving: MagicMock,
        transit_route: Route,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """Ошибка одного провайдера не мешает другому."""
        driving.fetch_route.side_effect = ProviderUnavailable(provider="kakao", status_code=502)

        options = await controller.find_routes(seoul_city_hall, hospital_location)

        assert options.driving.ok is False
        assert isinstance(options.driving.error, ProviderUnavailable)
        assert options.transit.route is transit_route
        # Выбранный режим без маршрута: на карте ничего нет
        assert controller.renderer.active is None

    @pytest.mark.asyncio
    async def test_invalid_coordinate(
        self, controller: NavigationController, driving: MagicMock, hospital_location: Coordinate
    ) -> None:
        class Broken:
            lat = 100.0
            lng = 0.0

        with pytest.raises(InvalidCoordinate):
            await controller.find_routes(Broken(), hospital_location)

        driving.fetch_route.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_options_discarded(
        self,
        controller: NavigationController,
        driving: MagicMock,
        driving_route: Route,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """Ответ на старый запрос не заменяет ответ на новый."""
        release = asyncio.Event()
        stale_route = MagicMock(spec=Route)
        moved = Coordinate(37.5660, 126.9800)

        async def fetch_route(origin: Coordinate, destination: Coordinate) -> Route:
            if origin == seoul_city_hall:
                await release.wait()
                return stale_route
            return driving_route

        driving.fetch_route.side_effect = fetch_route

        first = asyncio.create_task(controller.find_routes(seoul_city_hall, hospital_location))
        await asyncio.sleep(0)
        latest = await controller.find_routes(moved, hospital_location)
        release.set()
        stale = await first

        assert stale.sequence < latest.sequence
        assert controller.options is latest
        assert controller.renderer.active.route is driving_route


class TestSelectMode:
    """Тесты переключения режима."""

    @pytest.mark.asyncio
    async def test_without_options(self, controller: NavigationController) -> None:
        assert await controller.select_mode(RouteKind.TRANSIT) is None
        assert controller.mode == RouteKind.TRANSIT

    @pytest.mark.asyncio
    async def test_switch_to_transit(
        self,
        controller: NavigationController,
        surface: RecordingSurface,
        driving_route: Route,
        transit_route: Route,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """Видим только маршрут выбранного режима."""
        await controller.find_routes(seoul_city_hall, hospital_location)
        driving_handle = controller.renderer.active

        result = await controller.select_mode(RouteKind.TRANSIT)

        assert result.route is transit_route
        assert driving_handle.disposed is True
        transit_handle = controller.renderer.active
        assert transit_handle.route is transit_route
        assert surface.visible_overlays == transit_handle.overlay_ids

        result = await controller.select_mode(RouteKind.DRIVING)
        assert result.route is driving_route
        assert transit_handle.disposed is True

    @pytest.mark.asyncio
    async def test_switch_to_failed_mode(
        self,
        controller: NavigationController,
        transit: MagicMock,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        transit.fetch_route.side_effect = RouteNotFound(provider="google")
        await controller.find_routes(seoul_city_hall, hospital_location)

        result = await controller.select_mode(RouteKind.TRANSIT)

        assert result.ok is False
        assert controller.renderer.active is None


class TestTracking:
    """Живая навигация через контроллер."""

    @pytest.mark.asyncio
    async def test_start_requires_route(self, controller: NavigationController) -> None:
        with pytest.raises(RuntimeError):
            await controller.start_tracking()

    @pytest.mark.asyncio
    async def test_start_and_update(
        self,
        controller: NavigationController,
        location_provider: FakeLocationProvider,
        driving_route: Route,
        updates: list[NavigationUpdate],
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """Обновление трекера попадает в варианты маршрута и колбэк."""
        await controller.find_routes(seoul_city_hall, hospital_location)
        await controller.select_mode(RouteKind.TRANSIT)

        await controller.start_tracking()
        assert controller.is_tracking is True
        assert controller.mode == RouteKind.DRIVING

        await location_provider.emit(37.5660, 126.9800)

        update, = updates
        assert update.origin == Coordinate(37.5660, 126.9800)
        assert controller.options.driving.route is driving_route
        assert controller.options.sequence == update.sequence

    @pytest.mark.asyncio
    async def test_transit_view_while_tracking(
        self,
        controller: NavigationController,
        location_provider: FakeLocationProvider,
        driving_route: Route,
        transit_route: Route,
        updates: list[NavigationUpdate],
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """В режиме транспорта обновление не перерисовывает карту автомобильным маршрутом."""
        await controller.find_routes(seoul_city_hall, hospital_location)
        await controller.start_tracking()
        await controller.select_mode(RouteKind.TRANSIT)
        transit_handle = controller.renderer.active

        await location_provider.emit(37.5660, 126.9800)

        assert len(updates) == 1
        assert controller.renderer.active is transit_handle
        assert controller.renderer.active.route.kind == controller.mode == RouteKind.TRANSIT
        assert controller.options.driving.route is driving_route

        await controller.select_mode(RouteKind.DRIVING)
        assert transit_handle.disposed is True
        assert controller.renderer.active.route is driving_route

    @pytest.mark.asyncio
    async def test_stop_tracking(
        self,
        controller: NavigationController,
        location_provider: FakeLocationProvider,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        await controller.find_routes(seoul_city_hall, hospital_location)
        await controller.start_tracking()

        await controller.stop_tracking()

        assert controller.tracker.state == TrackingState.IDLE
        assert location_provider.active is False


class TestRefreshAndCenter:
    """Кнопки обновления и центрирования."""

    @pytest.mark.asyncio
    async def test_refresh_without_route(self, controller: NavigationController) -> None:
        assert await controller.refresh() is None

    @pytest.mark.asyncio
    async def test_refresh_requeries(
        self,
        controller: NavigationController,
        driving: MagicMock,
        transit: MagicMock,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """Без отслеживания обновление повторяет оба запроса."""
        await controller.find_routes(seoul_city_hall, hospital_location)

        result = await controller.refresh()

        assert result.ok is True
        assert driving.fetch_route.await_count == 2
        assert transit.fetch_route.await_count == 2

    @pytest.mark.asyncio
    async def test_refresh_while_tracking(
        self,
        controller: NavigationController,
        driving: MagicMock,
        transit: MagicMock,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """Во время навигации пересчитывается только автомобильный маршрут."""
        await controller.find_routes(seoul_city_hall, hospital_location)
        await controller.start_tracking()

        result = await controller.refresh()

        assert result.ok is True
        assert driving.fetch_route.await_count == 2
        assert transit.fetch_route.await_count == 1

    @pytest.mark.asyncio
    async def test_center(
        self,
        controller: NavigationController,
        surface: RecordingSurface,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        controller.center()
        assert surface.bounds == []

        await controller.find_routes(seoul_city_hall, hospital_location)
        controller.center()

        assert surface.bounds[-1] == [seoul_city_hall, hospital_location]


class TestClose:
    """Тесты для close."""

    @pytest.mark.asyncio
    async def test_close(
        self,
        controller: NavigationController,
        location_provider: FakeLocationProvider,
        surface: RecordingSurface,
        driving: MagicMock,
        transit: MagicMock,
        seoul_city_hall: Coordinate,
        hospital_location: Coordinate,
    ) -> None:
        """close останавливает навигацию, очищает карту и закрывает сервисы."""
        location_provider.current = PositionFix(coordinate=seoul_city_hall)
        await controller.locate()
        await controller.find_routes(seoul_city_hall, hospital_location)
        await controller.start_tracking()

        await controller.close()

        assert controller.is_tracking is False
        assert surface.polylines == {}
        assert surface.markers == {}
        driving.close.assert_awaited_once()
        transit.close.assert_awaited_once()
