# medroute/web/pages/facilities.py
"""
Список медучреждений рядом с пользователем.

Каждая карточка ведёт на страницу навигации /navigation.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

from nicegui import ui

from medroute.common.constants import TypeMsg
from medroute.common.errors import LocationError, RouteUnavailable
from medroute.common.localization import get_text
from medroute.common.logger import log_info
from medroute.core.geo.models import Coordinate
from medroute.core.places.models import Facility
from medroute.core.places.service import FacilitySearchService
from medroute.core.tracking.location import LocationProvider
from medroute.web.location import BrowserLocationProvider
from medroute.web.pages.navigation import error_text_key


def navigation_link(facility: Facility, lang: str) -> str:
    """Ссылка на страницу навигации до медучреждения."""
    query = urlencode({
        "lat": facility.location.lat,
        "lng": facility.location.lng,
        "name": facility.name,
        "lang": lang,
    })
    return f"/navigation?{query}"


def radius_label(radius_m: int, lang: str) -> str:
    """Подпись радиуса в километрах: 1000 -> "1", 1500 -> "1.5"."""
    km = radius_m / 1000
    radius = f"{km:.0f}" if radius_m % 1000 == 0 else f"{km:.1f}"
    return get_text("RADIUS_OPTION", lang, radius=radius)


def facility_lines(facility: Facility, lang: str) -> list[str]:
    """Строки карточки: адрес и расстояние."""
    lines = []
    if facility.address:
        lines.append(facility.address)
    if facility.distance_km is not None:
        lines.append(get_text("FACILITY_DISTANCE", lang, distance=f"{facility.distance_km:.1f}"))
    return lines


class FacilitiesPage:
    """Поиск больниц вокруг пользователя с выбором радиуса."""

    def __init__(
        self,
        lang: str | None = None,
        service: FacilitySearchService | None = None,
        location_provider: LocationProvider | None = None,
        default_radius: int | None = None,
    ) -> None:
        if lang is None or default_radius is None:
            from medroute.config import settings
            lang = lang or settings.domain.DEFAULT_LANGUAGE
            default_radius = default_radius or settings.facilities.FACILITY_DEFAULT_RADIUS

        self.lang = lang
        self.service = service or FacilitySearchService()
        self.location_provider = location_provider
        self.radius = default_radius
        self.origin: Optional[Coordinate] = None
        self.facilities: list[Facility] = []
        self.results_column: Optional[ui.column] = None

    def _t(self, key: str, **kwargs) -> str:
        return get_text(key, self.lang, **kwargs)

    async def mount(self) -> None:
        if self.location_provider is None:
            self.location_provider = BrowserLocationProvider()

        with ui.column().classes("w-full max-w-xl mx-auto p-4 gap-3"):
            ui.label(self._t("FACILITIES_TITLE")).classes("text-xl font-bold")
            ui.select(
                {radius: radius_label(radius, self.lang) for radius in self.service.radius_options},
                value=self.radius,
                on_change=self._on_radius_change,
            ).classes("w-40")
            self.results_column = ui.column().classes("w-full gap-2")

        ui.context.client.on_disconnect(self.shutdown)
        await ui.context.client.connected()
        await self.search()

    async def _on_radius_change(self, event) -> None:
        self.radius = int(event.value)
        await self.search()

    async def search(self) -> list[Facility]:
        """Определяет местоположение (один раз) и ищет учреждения в текущем радиусе."""
        try:
            if self.origin is None:
                fix = await self.location_provider.get_current_position()
                self.origin = fix.coordinate
            self.facilities = await self.service.search_nearby(self.origin, self.radius)
        except (LocationError, RouteUnavailable) as e:
            await log_info(f"Поиск медучреждений не удался: {e}", type_msg=TypeMsg.WARNING)
            ui.notify(self._t(error_text_key(e)), type="warning")
            self.facilities = []

        self._show_facilities()
        return self.facilities

    def _show_facilities(self) -> None:
        if self.results_column is None:
            return
        self.results_column.clear()
        with self.results_column:
            if not self.facilities:
                ui.label(self._t("FACILITIES_EMPTY")).classes("text-gray-500")
                return
            for facility in self.facilities:
                with ui.card().classes("w-full p-3"):
                    ui.label(facility.name).classes("text-lg font-bold")
                    for line in facility_lines(facility, self.lang):
                        ui.label(line).classes("text-sm text-gray-600")
                    with ui.row().classes("gap-2"):
                        ui.link(self._t("BUTTON_DIRECTIONS"), navigation_link(facility, self.lang))
                        if facility.dial_number:
                            ui.link(self._t("BUTTON_CALL"), f"tel:{facility.dial_number}")

    async def shutdown(self) -> None:
        await self.service.close()
