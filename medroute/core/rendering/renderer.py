# medroute/core/rendering/renderer.py
"""
Отрисовка маршрута на поверхности карты.

Единственный писатель в поверхность: все объекты маршрута создаются,
показываются и удаляются только здесь.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import Sequence

from medroute.common.constants import StopRole
from medroute.common.localization import get_text
from medroute.common.logger import log_debug
from medroute.core.geo.models import Coordinate
from medroute.core.rendering.surface import MapSurface, MarkerSpec, PolylineSpec, PopupSpec
from medroute.core.routing.models import Route, TransitLeg, TransitStop
from medroute.core.routing.styles import Z_MARKER


_handle_ids = count(1)


@dataclass
class DrawHandle:
    """Набор объектов карты одного нарисованного маршрута."""
    route: Route
    polyline_ids: list[str] = field(default_factory=list)
    marker_ids: list[str] = field(default_factory=list)
    popup_ids: list[str] = field(default_factory=list)
    visible: bool = True
    disposed: bool = False
    id: int = field(default_factory=lambda: next(_handle_ids))

    @property
    def overlay_ids(self) -> list[str]:
        """Линии и маркеры в порядке отрисовки."""
        return [*self.polyline_ids, *self.marker_ids]


class RouteRenderer:
    """
    Рисует маршрут слоями: транспорт, затем пешие участки,
    затем маркеры остановок. Одновременно видим не более одного маршрута.
    """

    def __init__(self, surface: MapSurface, lang: str | None = None) -> None:
        if lang is None:
            from medroute.config import settings
            lang = settings.domain.DEFAULT_LANGUAGE

        self._surface = surface
        self._lang = lang
        self._active: DrawHandle | None = None
        self._position_marker_id: str | None = None
        self._destination_marker_id: str | None = None

    @property
    def active(self) -> DrawHandle | None:
        return self._active

    async def draw(self, route: Route) -> DrawHandle:
        """
        Рисует маршрут, предварительно удалив предыдущий.

        Все изменения поверхности выполняются до первого await.
        """
        if self._active is not None:
            self.dispose(self._active)

        handle = DrawHandle(route=route)

        try:
            # sorted() устойчива: внутри слоя сохраняется порядок следования
            for segment in sorted(route.segments, key=lambda s: s.z_order):
                handle.polyline_ids.append(self._surface.add_polyline(PolylineSpec(
                    points=segment.points,
                    color=segment.style.color,
                    width=segment.style.width,
                    dash=segment.style.dash,
                    z_index=segment.z_order,
                )))

            for leg, stop, is_departure in route.stops:
                self._add_stop_marker(handle, leg, stop, StopRole.DEPARTURE if is_departure else StopRole.ARRIVAL)
        except Exception:
            # Частично нарисованный маршрут не должен остаться на карте
            self.dispose(handle)
            raise

        self._active = handle

        await log_debug(
            f"Маршрут {route.kind.value} нарисован: линий {len(handle.polyline_ids)}, "
            f"маркеров {len(handle.marker_ids)}",
            extra={"handle_id": handle.id},
        )
        return handle

    def _add_stop_marker(self, handle: DrawHandle, leg: TransitLeg, stop: TransitStop, role: StopRole) -> None:
        popup_id = self._surface.add_popup(self._popup_spec(leg, stop, role))
        handle.popup_ids.append(popup_id)

        marker_ref: dict[str, str] = {}

        def on_click() -> None:
            self._open_exclusive(handle, popup_id, marker_ref["id"])

        marker_id = self._surface.add_marker(
            MarkerSpec(position=stop.location, title=stop.name, role=role, z_index=Z_MARKER),
            on_click=on_click,
        )
        marker_ref["id"] = marker_id
        handle.marker_ids.append(marker_id)

    def _popup_spec(self, leg: TransitLeg, stop: TransitStop, role: StopRole) -> PopupSpec:
        departure = role == StopRole.DEPARTURE
        time_key = "STOP_DEPARTURE_TIME" if departure else "STOP_ARRIVAL_TIME"
        return PopupSpec(
            stop_name=stop.name,
            role=role,
            vehicle_kind=leg.vehicle_kind,
            line_name=leg.line_name or leg.line_short_name,
            line_color=leg.line_color,
            role_label=get_text("STOP_DEPARTURE" if departure else "STOP_ARRIVAL", self._lang),
            time_text=get_text(time_key, self._lang, time=stop.time_text) if stop.time_text else "",
            stop_count=leg.stop_count,
            hint=get_text("STOP_BOARD_HINT" if departure else "STOP_ALIGHT_HINT", self._lang),
        )

    def _open_exclusive(self, handle: DrawHandle, popup_id: str, anchor_id: str) -> None:
        """Открывает окно маркера и закрывает все остальные окна рендерера."""
        if handle.disposed:
            return
        for other in handle.popup_ids:
            if other != popup_id:
                self._surface.close_popup(other)
        self._surface.open_popup(popup_id, anchor_id)

    def show(self, handle: DrawHandle) -> None:
        """Показывает маршрут; другой видимый маршрут скрывается."""
        if handle.disposed:
            return
        if self._active is not None and self._active is not handle:
            self.hide(self._active)
        for overlay_id in handle.overlay_ids:
            self._surface.set_visible(overlay_id, True)
        handle.visible = True
        self._active = handle

    def hide(self, handle: DrawHandle) -> None:
        """Скрывает маршрут, не удаляя его."""
        if handle.disposed:
            return
        for popup_id in handle.popup_ids:
            self._surface.close_popup(popup_id)
        for overlay_id in handle.overlay_ids:
            self._surface.set_visible(overlay_id, False)
        handle.visible = False

    def dispose(self, handle: DrawHandle) -> None:
        """Удаляет объекты маршрута с карты. Повторный вызов ничего не делает."""
        if handle.disposed:
            return
        for popup_id in handle.popup_ids:
            self._surface.close_popup(popup_id)
            self._surface.remove(popup_id)
        for overlay_id in handle.overlay_ids:
            self._surface.remove(overlay_id)
        handle.disposed = True
        handle.visible = False
        if self._active is handle:
            self._active = None

    def clear(self) -> None:
        """Удаляет текущий маршрут, маркер положения и маркер медучреждения."""
        if self._active is not None:
            self.dispose(self._active)
        for marker_id in (self._position_marker_id, self._destination_marker_id):
            if marker_id is not None:
                self._surface.remove(marker_id)
        self._position_marker_id = None
        self._destination_marker_id = None

    def fit_view(self, points: Sequence[Coordinate]) -> None:
        """Масштабирует карту под точки; пустой список игнорируется."""
        if points:
            self._surface.fit_bounds(list(points))

    def mark_position(self, position: Coordinate) -> None:
        """Ставит или перемещает маркер текущего положения."""
        if self._position_marker_id is None:
            self._position_marker_id = self._surface.add_marker(
                MarkerSpec(position=position, title=get_text("MY_LOCATION", self._lang), z_index=Z_MARKER + 1)
            )
        else:
            self._surface.move_marker(self._position_marker_id, position)

    def mark_destination(self, position: Coordinate, title: str = "") -> None:
        """Ставит или перемещает маркер медучреждения."""
        if self._destination_marker_id is None:
            self._destination_marker_id = self._surface.add_marker(
                MarkerSpec(position=position, title=title, z_index=Z_MARKER)
            )
        else:
            self._surface.move_marker(self._destination_marker_id, position)
