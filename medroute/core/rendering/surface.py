# medroute/core/rendering/surface.py
"""
Контракт поверхности карты.

Методы синхронные: отрисовка маршрута выполняется целиком между
двумя await и не может перемежаться с другой отрисовкой.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from medroute.common.constants import DashStyle, StopRole, VehicleKind
from medroute.core.geo.models import Coordinate


@dataclass(frozen=True)
class PolylineSpec:
    """Линия маршрута."""
    points: tuple[Coordinate, ...]
    color: str
    width: int
    dash: DashStyle
    z_index: int
    opacity: float = 0.8


@dataclass(frozen=True)
class MarkerSpec:
    """Маркер остановки или текущего положения (role=None)."""
    position: Coordinate
    title: str = ""
    role: Optional[StopRole] = None
    z_index: int = 3


@dataclass(frozen=True)
class PopupSpec:
    """Данные всплывающего окна остановки; оформление решает поверхность."""
    stop_name: str
    role: StopRole
    vehicle_kind: VehicleKind
    line_name: str
    line_color: str
    role_label: str = ""
    time_text: str = ""
    stop_count: int = 0
    hint: str = ""


class MapSurface(Protocol):
    """Поверхность карты, на которую рисует RouteRenderer."""

    def add_polyline(self, spec: PolylineSpec) -> str:
        """Добавляет видимую линию, возвращает её id."""
        ...

    def add_marker(self, spec: MarkerSpec, on_click: Callable[[], None] | None = None) -> str:
        """Добавляет видимый маркер; on_click вызывается при клике."""
        ...

    def move_marker(self, marker_id: str, position: Coordinate) -> None:
        ...

    def add_popup(self, spec: PopupSpec) -> str:
        """Создаёт закрытое всплывающее окно."""
        ...

    def open_popup(self, popup_id: str, anchor_id: str) -> None:
        ...

    def close_popup(self, popup_id: str) -> None:
        ...

    def set_visible(self, overlay_id: str, visible: bool) -> None:
        ...

    def remove(self, overlay_id: str) -> None:
        """Удаляет объект с карты. Повторное удаление ничего не делает."""
        ...

    def fit_bounds(self, points: Sequence[Coordinate]) -> None:
        ...
