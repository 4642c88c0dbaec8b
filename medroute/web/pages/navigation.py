# medroute/web/pages/navigation.py
"""
Страница навигации до выбранного медучреждения.
"""

from __future__ import annotations

from typing import Optional

from nicegui import ui

from medroute.common.constants import RouteKind, TypeMsg
from medroute.common.errors import (
    CredentialMissing,
    InvalidCoordinate,
    LocationError,
    LocationPermissionDenied,
    LocationTimeout,
    MedRouteError,
    ProviderUnavailable,
)
from medroute.common.localization import get_text
from medroute.common.logger import log_error, log_info
from medroute.core.geo.models import Coordinate
from medroute.core.navigation.controller import NavigationController
from medroute.core.routing.models import NavigationUpdate, Route, RouteResult
from medroute.web.location import BrowserLocationProvider
from medroute.web.map_surface import KakaoMapSurface


def error_text_key(error: BaseException) -> str:
    """Ключ локализации для сообщения об ошибке."""
    if isinstance(error, LocationPermissionDenied):
        return "ERROR_LOCATION_PERMISSION"
    if isinstance(error, LocationTimeout):
        return "ERROR_LOCATION_TIMEOUT"
    if isinstance(error, LocationError):
        return "ERROR_LOCATION_UNAVAILABLE"
    if isinstance(error, CredentialMissing):
        return "ERROR_CREDENTIAL_MISSING"
    if isinstance(error, ProviderUnavailable):
        return "ERROR_PROVIDER_UNAVAILABLE"
    return "ERROR_ROUTE_UNAVAILABLE"


def route_summary_lines(route: Route, lang: str) -> list[str]:
    """Строки карточки маршрута: подпись, расстояние и время, детали транспорта."""
    lines = [
        route.summary_label,
        get_text("ROUTE_SUMMARY", lang, distance=f"{route.distance_km:.1f}", duration=route.duration_min),
    ]
    if route.kind == RouteKind.TRANSIT:
        lines.append(get_text("TRANSFER_COUNT", lang, count=route.transfer_count))
        if route.walking_minutes:
            lines.append(get_text("WALKING_MINUTES", lang, minutes=route.walking_minutes))
    if route.is_estimated:
        lines.append(get_text("ROUTE_ESTIMATED_NOTE", lang))
    return lines


class NavigationPage:
    """Карта с маршрутом до медучреждения, переключателем режима и живой навигацией."""

    def __init__(self, destination: Coordinate, facility_name: str = "", lang: str | None = None) -> None:
        if lang is None:
            from medroute.config import settings
            lang = settings.domain.DEFAULT_LANGUAGE

        self.destination = destination
        self.facility_name = facility_name
        self.lang = lang
        self.surface: Optional[KakaoMapSurface] = None
        self.controller: Optional[NavigationController] = None
        self.summary_column: Optional[ui.column] = None
        self.tracking_button: Optional[ui.button] = None

    def _t(self, key: str, **kwargs) -> str:
        return get_text(key, self.lang, **kwargs)

    async def mount(self) -> None:
        with ui.column().classes("w-full h-screen p-0 relative"):
            self.surface = KakaoMapSurface(center=self.destination, lang=self.lang)
            self.surface.render()

            with ui.card().classes("absolute top-4 left-4 right-4 p-3 z-10"):
                ui.label(self.facility_name or self._t("NAVIGATION_TITLE")).classes("text-lg font-bold")
                with ui.tabs(on_change=self._on_tab_change) as tabs:
                    ui.tab(RouteKind.DRIVING.value, label=self._t("TAB_DRIVING"))
                    ui.tab(RouteKind.TRANSIT.value, label=self._t("TAB_TRANSIT"))
                tabs.set_value(RouteKind.DRIVING.value)
                self.summary_column = ui.column().classes("gap-0")

            with ui.row().classes("absolute bottom-4 left-4 right-4 z-10 justify-center"):
                ui.button(self._t("BUTTON_REFRESH_ROUTE"), icon="refresh", on_click=self._on_refresh)
                ui.button(self._t("BUTTON_CENTER"), icon="my_location", on_click=self._on_center)
                self.tracking_button = ui.button(self._t("BUTTON_STOP_TRACKING"), on_click=self._on_toggle_tracking)

        self.controller = NavigationController(
            surface=self.surface,
            location_provider=BrowserLocationProvider(),
            on_update=self._on_update,
            on_error=self._on_error,
            lang=self.lang,
        )
        ui.context.client.on_disconnect(self.shutdown)
        self.controller.renderer.mark_destination(self.destination, self.facility_name)

        await ui.context.client.connected()
        await self._start()

    async def _start(self) -> None:
        try:
            origin = await self.controller.locate()
        except LocationError as e:
            await log_info(f"Навигация без местоположения: {e}", type_msg=TypeMsg.WARNING)
            ui.notify(self._t(error_text_key(e)), type="warning")
            self._set_tracking_button(False)
            return

        options = await self.controller.find_routes(origin, self.destination)
        self._show_result(options.get(self.controller.mode))
        await self.controller.start_tracking()
        self._set_tracking_button(True)

    # =========================================================================
    # ОБРАБОТЧИКИ UI
    # =========================================================================

    async def _on_tab_change(self, e) -> None:
        if self.controller is None:
            return
        result = await self.controller.select_mode(RouteKind(e.value))
        if result is not None:
            self._show_result(result)

    async def _on_refresh(self) -> None:
        result = await self.controller.refresh()
        if result is not None:
            self._show_result(result)

    def _on_center(self) -> None:
        self.controller.center()

    async def _on_toggle_tracking(self) -> None:
        if self.controller.is_tracking:
            await self.controller.stop_tracking()
            self._set_tracking_button(False)
            return
        try:
            await self.controller.start_tracking()
        except RuntimeError:
            await self._start()
            return
        self._set_tracking_button(True)

    async def _on_update(self, update: NavigationUpdate) -> None:
        if self.controller.mode == RouteKind.DRIVING:
            self._show_result(RouteResult.success(update.route))

    async def _on_error(self, error: MedRouteError) -> None:
        ui.notify(self._t(error_text_key(error)), type="warning")
        if not self.controller.is_tracking:
            self._set_tracking_button(False)

    def _set_tracking_button(self, tracking: bool) -> None:
        if self.tracking_button is not None:
            self.tracking_button.text = self._t("BUTTON_STOP_TRACKING" if tracking else "BUTTON_START_TRACKING")

    def _show_result(self, result: RouteResult) -> None:
        if self.summary_column is None:
            return
        self.summary_column.clear()
        with self.summary_column:
            if result.route is None:
                ui.label(self._t(error_text_key(result.error))).classes("text-red-500")
                return
            for line in route_summary_lines(result.route, self.lang):
                ui.label(line)

    async def shutdown(self) -> None:
        if self.controller is not None:
            await self.controller.close()


def parse_destination(lat: str, lng: str) -> Optional[Coordinate]:
    """Координаты медучреждения из параметров страницы или None."""
    try:
        return Coordinate(float(lat), float(lng))
    except (TypeError, ValueError, InvalidCoordinate):
        return None


async def report_invalid_destination(lat: str, lng: str, lang: str) -> None:
    await log_error(f"Некорректные координаты медучреждения: lat={lat!r}, lng={lng!r}")
    with ui.column().classes("w-full h-full items-center justify-center"):
        ui.icon("local_hospital", size="4rem", color="gray-400")
        ui.label(get_text("ERROR_INVALID_DESTINATION", lang)).classes("text-xl text-gray-500")
