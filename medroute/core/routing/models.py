# medroute/core/routing/models.py
"""
Модели маршрутов.

Все значения неизменяемы: новый маршрут заменяет старый целиком.
"""

from __future__ import annotations

from dataclasses import dataclass

from medroute.common.constants import DashStyle, RouteKind, TravelMode, VehicleKind
from medroute.common.errors import RouteUnavailable
from medroute.core.geo.models import Coordinate


@dataclass(frozen=True)
class PathStyle:
    """Стиль линии на карте."""
    color: str
    width: int
    dash: DashStyle = DashStyle.SOLID


@dataclass(frozen=True)
class PathSegment:
    """Непрерывный участок маршрута с одним режимом и стилем."""
    mode: TravelMode
    points: tuple[Coordinate, ...]
    style: PathStyle
    z_order: int
    # Прямая линия вместо реальной геометрии
    approximate: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))
        if len(self.points) < 2:
            raise ValueError("Сегмент маршрута должен содержать минимум 2 точки")


@dataclass(frozen=True)
class TransitStop:
    """Остановка посадки или высадки."""
    name: str
    location: Coordinate | None = None
    time_text: str = ""


@dataclass(frozen=True)
class TransitLeg:
    """Одна поездка на одной линии транспорта."""
    vehicle_kind: VehicleKind
    line_name: str
    line_short_name: str
    line_color: str
    departure_stop: TransitStop
    arrival_stop: TransitStop
    stop_count: int = 0
    headsign: str = ""

    @property
    def display_name(self) -> str:
        """Короткое имя линии, если есть, иначе полное."""
        return self.line_short_name or self.line_name


@dataclass(frozen=True)
class Route:
    """
    Нормализованный маршрут одного провайдера.

    Для неоценочных маршрутов transfer_count == max(0, len(legs) - 1).
    Оценочный маршрут (is_estimated) не содержит legs, а число пересадок
    берётся из эвристики.
    """
    kind: RouteKind
    distance_km: float
    duration_min: int
    segments: tuple[PathSegment, ...]
    legs: tuple[TransitLeg, ...] = ()
    transfer_count: int = 0
    walking_minutes: int = 0
    summary_label: str = ""
    is_estimated: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", tuple(self.segments))
        object.__setattr__(self, "legs", tuple(self.legs))
        if self.distance_km < 0 or self.duration_min < 0:
            raise ValueError("Расстояние и время маршрута не могут быть отрицательными")
        if not self.is_estimated and self.transfer_count != max(0, len(self.legs) - 1):
            raise ValueError("Число пересадок не соответствует числу поездок")

    @property
    def path(self) -> list[Coordinate]:
        """Все точки маршрута в порядке следования сегментов."""
        return [point for segment in self.segments for point in segment.points]

    @property
    def stops(self) -> list[tuple[TransitLeg, TransitStop, bool]]:
        """Остановки с координатами: (поездка, остановка, это посадка)."""
        result = []
        for leg in self.legs:
            if leg.departure_stop.location is not None:
                result.append((leg, leg.departure_stop, True))
            if leg.arrival_stop.location is not None:
                result.append((leg, leg.arrival_stop, False))
        return result


# =============================================================================
# РЕЗУЛЬТАТЫ ДЛЯ UI
# =============================================================================

@dataclass(frozen=True)
class RouteResult:
    """Итог запроса маршрута: маршрут или ошибка, без исключений."""
    route: Route | None = None
    error: RouteUnavailable | None = None

    @property
    def ok(self) -> bool:
        return self.route is not None

    @classmethod
    def success(cls, route: Route) -> "RouteResult":
        return cls(route=route)

    @classmethod
    def failure(cls, error: RouteUnavailable) -> "RouteResult":
        return cls(error=error)


@dataclass(frozen=True)
class RouteOptions:
    """Варианты маршрута до медучреждения."""
    driving: RouteResult
    transit: RouteResult
    sequence: int = 0

    def get(self, kind: RouteKind) -> RouteResult:
        return self.driving if kind == RouteKind.DRIVING else self.transit


@dataclass(frozen=True)
class NavigationUpdate:
    """Состояние навигации после пересчёта маршрута."""
    origin: Coordinate
    destination: Coordinate
    route: Route
    sequence: int = 0
