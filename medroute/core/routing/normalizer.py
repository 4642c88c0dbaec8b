# medroute/core/routing/normalizer.py
"""
Нормализация ответов провайдеров в единую модель Route.

Функции чистые: сетевые запросы (дорисовка пеших участков) выполняет
TransitRouteService и передаёт результат сюда готовыми точками.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

from medroute.common.constants import RouteKind, TravelMode, VehicleKind
from medroute.common.errors import DecodeError, InvalidCoordinate, RouteNotFound
from medroute.common.localization import get_text
from medroute.core.geo import polyline
from medroute.core.geo.distance import path_length_km
from medroute.core.geo.models import Coordinate
from medroute.core.routing import styles
from medroute.core.routing.models import PathSegment, Route, TransitLeg, TransitStop
from medroute.core.routing.schemas import (
    ComputeRoutesResponse,
    KakaoDirectionsResponse,
    Location,
    RouteLeg,
    RouteStep,
    TransitDetails,
    TransitStopSchema,
)


def round_half_up(value: float) -> int:
    """Округление 0.5 вверх (встроенный round() округляет к чётному)."""
    return int(math.floor(value + 0.5))


def vehicle_label(kind: VehicleKind, lang: str) -> str:
    """Локализованное название вида транспорта."""
    return get_text(f"VEHICLE_{kind.value}", lang)


# =============================================================================
# АВТОМОБИЛЬНЫЙ МАРШРУТ (KAKAO)
# =============================================================================

def normalize_driving(response: KakaoDirectionsResponse, lang: str) -> Route:
    """
    Собирает автомобильный маршрут из ответа Kakao Mobility.

    Raises:
        RouteNotFound: нет маршрутов, result_code != 0, нет секций
            или меньше двух вершин
        InvalidCoordinate: вершина вне допустимого диапазона
    """
    if not response.routes:
        raise RouteNotFound("Провайдер не вернул маршрутов", provider="kakao")

    route = response.routes[0]
    if route.result_code != 0:
        raise RouteNotFound(
            f"Маршрут не найден: [{route.result_code}] {route.result_msg}",
            provider="kakao",
        )
    if not route.sections:
        raise RouteNotFound("Маршрут без секций", provider="kakao")

    points: list[Coordinate] = []
    distance_m = 0.0
    duration_s = 0.0
    for section in route.sections:
        distance_m += section.distance
        duration_s += section.duration
        for road in section.roads:
            vertexes = road.vertexes
            for i in range(0, len(vertexes) - 1, 2):
                points.append(Coordinate(lat=vertexes[i + 1], lng=vertexes[i]))

    if len(points) < 2:
        raise RouteNotFound("Маршрут содержит меньше двух точек", provider="kakao")

    roads = route.sections[0].roads
    road_name = roads[0].name if roads else ""

    return Route(
        kind=RouteKind.DRIVING,
        distance_km=distance_m / 1000,
        duration_min=math.ceil(duration_s / 60),
        segments=(
            PathSegment(
                mode=TravelMode.DRIVING,
                points=tuple(points),
                style=styles.DRIVING_STYLE,
                z_order=styles.Z_VEHICLE,
            ),
        ),
        summary_label=road_name or get_text("ROUTE_DEFAULT_LABEL", lang),
    )


# =============================================================================
# МАРШРУТ НА ОБЩЕСТВЕННОМ ТРАНСПОРТЕ (GOOGLE)
# =============================================================================

def first_leg(response: ComputeRoutesResponse) -> RouteLeg:
    """
    Возвращает routes[0].legs[0].

    Raises:
        RouteNotFound: нет маршрутов или участков
    """
    if not response.routes:
        raise RouteNotFound("Провайдер не вернул маршрутов", provider="google")
    route = response.routes[0]
    if not route.legs:
        raise RouteNotFound("Маршрут без участков", provider="google")
    return route.legs[0]


def location_to_coordinate(location: Location | None) -> Coordinate | None:
    """latLng провайдера -> Coordinate; отсутствующая или битая точка -> None."""
    if location is None or location.lat_lng is None:
        return None
    try:
        return Coordinate(lat=location.lat_lng.latitude, lng=location.lat_lng.longitude)
    except InvalidCoordinate:
        return None


def step_endpoints(step: RouteStep) -> tuple[Coordinate, Coordinate] | None:
    """Начало и конец шага, если оба известны."""
    start = location_to_coordinate(step.start_location)
    end = location_to_coordinate(step.end_location)
    if start is None or end is None:
        return None
    return start, end


def step_path(step: RouteStep) -> list[Coordinate]:
    """Декодированная геометрия шага; битая или отсутствующая -> []."""
    if step.polyline is None or not step.polyline.encoded_polyline:
        return []
    try:
        return polyline.decode(step.polyline.encoded_polyline)
    except DecodeError:
        return []


def needs_walking_path(step: RouteStep, min_points: int) -> bool:
    """Пеший шаг с недостаточно подробной геометрией."""
    return step.is_walking and len(step_path(step)) < min_points


def _stop(schema: TransitStopSchema | None, time_text: str) -> TransitStop:
    if schema is None:
        return TransitStop(name="", location=None, time_text=time_text)
    return TransitStop(
        name=schema.name,
        location=location_to_coordinate(schema.location),
        time_text=time_text,
    )


def build_transit_leg(details: TransitDetails) -> TransitLeg:
    """Поездка на одной линии из transitDetails шага."""
    line = details.transit_line
    stops = details.stop_details
    localized = details.localized_values

    departure_time = ""
    arrival_time = ""
    if localized is not None:
        if localized.departure_time and localized.departure_time.time:
            departure_time = localized.departure_time.time.text
        if localized.arrival_time and localized.arrival_time.time:
            arrival_time = localized.arrival_time.time.text

    return TransitLeg(
        vehicle_kind=VehicleKind.parse(line.vehicle.type if line and line.vehicle else None),
        line_name=line.name if line else "",
        line_short_name=line.name_short if line else "",
        line_color=styles.normalize_color(line.color if line else None),
        departure_stop=_stop(stops.departure_stop if stops else None, departure_time),
        arrival_stop=_stop(stops.arrival_stop if stops else None, arrival_time),
        stop_count=details.stop_count,
        headsign=details.headsign,
    )


def _step_segment(step: RouteStep, points: list[Coordinate]) -> PathSegment | None:
    """Сегмент для шага или None, если геометрии нет совсем."""
    if step.is_walking:
        mode = TravelMode.WALKING
        style = styles.WALKING_STYLE
        z_order = styles.Z_WALKING
    elif step.transit_details is not None:
        mode = TravelMode.TRANSIT
        line = step.transit_details.transit_line
        style = styles.transit_style(line.color if line else None)
        z_order = styles.Z_VEHICLE
    else:
        mode = TravelMode.TRANSIT
        style = styles.OTHER_VEHICLE_STYLE
        z_order = styles.Z_VEHICLE

    if len(points) >= 2:
        return PathSegment(mode=mode, points=tuple(points), style=style, z_order=z_order)

    endpoints = step_endpoints(step)
    if endpoints is None:
        return None

    # Прямая между началом и концом шага
    return PathSegment(
        mode=mode,
        points=endpoints,
        style=styles.APPROXIMATE_STYLE,
        z_order=z_order,
        approximate=True,
    )


def _walking_seconds(step: RouteStep, points: Sequence[Coordinate], speed_mps: float) -> float:
    """Длительность пешего шага: от провайдера, иначе расстояние / скорость."""
    if step.duration_seconds is not None:
        return step.duration_seconds
    if step.distance_meters is not None:
        distance_m = step.distance_meters
    else:
        distance_m = path_length_km(points) * 1000
    return distance_m / speed_mps


def normalize_transit(
    response: ComputeRoutesResponse,
    lang: str,
    *,
    walking_paths: Mapping[int, Sequence[Coordinate]] | None = None,
    pedestrian_speed_mps: float = 1.2,
    min_walking_points: int = 3,
) -> Route:
    """
    Собирает маршрут на транспорте из ответа Google Routes.

    Args:
        response: Ответ computeRoutes
        lang: Язык подписи
        walking_paths: Дорисованная геометрия пеших шагов по индексу шага
        pedestrian_speed_mps: Скорость пешехода для шагов без длительности
        min_walking_points: Минимум точек в пешем шаге без дорисовки

    Raises:
        RouteNotFound: нет маршрутов, участков или ни одного сегмента
    """
    leg = first_leg(response)
    walking_paths = walking_paths or {}

    segments: list[PathSegment] = []
    legs: list[TransitLeg] = []
    walking_total = 0
    has_walking = False

    for index, step in enumerate(leg.steps):
        points = step_path(step)
        if step.is_walking:
            repaired = walking_paths.get(index)
            if repaired is not None and len(repaired) >= 2:
                points = list(repaired)
            elif len(points) < min_walking_points and step_endpoints(step) is not None:
                # Дорисовка не удалась: прямая линия между концами шага
                points = []

        segment = _step_segment(step, points)

        # Поездки и пешее время учитываются и для шагов без геометрии
        if step.transit_details is not None:
            legs.append(build_transit_leg(step.transit_details))

        if step.is_walking:
            has_walking = True
            seconds = _walking_seconds(step, segment.points if segment else points, pedestrian_speed_mps)
            walking_total += round_half_up(seconds / 60)

        if segment is not None:
            segments.append(segment)

    if not segments:
        raise RouteNotFound("Маршрут не содержит геометрии", provider="google")

    if has_walking and walking_total == 0:
        walking_total = 1

    if leg.distance_meters is not None:
        distance_km = leg.distance_meters / 1000
    else:
        distance_km = sum(path_length_km(s.points) for s in segments)

    if leg.duration is not None:
        duration_min = math.ceil(leg.duration / 60)
    else:
        duration_min = math.ceil(sum(s.duration_seconds or 0 for s in leg.steps) / 60)

    return Route(
        kind=RouteKind.TRANSIT,
        distance_km=distance_km,
        duration_min=duration_min,
        segments=tuple(segments),
        legs=tuple(legs),
        transfer_count=max(0, len(legs) - 1),
        walking_minutes=walking_total,
        summary_label=transit_summary(legs, lang),
    )


def transit_summary(legs: Sequence[TransitLeg], lang: str) -> str:
    """Подпись вида "지하철 2호선 → 버스 143"."""
    if not legs:
        return get_text("TRANSIT_DEFAULT_LABEL", lang)
    parts = [f"{vehicle_label(leg.vehicle_kind, lang)} {leg.display_name}".strip() for leg in legs]
    return " → ".join(parts)
