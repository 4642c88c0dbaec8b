# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from itertools import count
from pathlib import Path
from typing import Any, Callable, Optional, Sequence
from unittest.mock import MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("KAKAO_REST_API_KEY", "test_kakao_key")
os.environ.setdefault("KAKAO_JS_API_KEY", "test_kakao_js_key")
os.environ.setdefault("GOOGLE_ROUTES_API_KEY", "test_google_key")

from medroute.common.errors import LocationError
from medroute.core.geo import polyline
from medroute.core.geo.models import Coordinate
from medroute.core.rendering.surface import MarkerSpec, PolylineSpec, PopupSpec
from medroute.core.tracking.location import ErrorCallback, FixCallback, LocationSubscription, PositionFix


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture(scope="session")
def lang_dict_path(project_root: Path) -> Path:
    """Путь к файлу локализации."""
    return project_root / "config" / "lang_dict.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "medroute_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "WEB_HOST": "127.0.0.1",
        "WEB_PORT": 9090,
        "LOG_LEVEL": "INFO",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "KAKAO_REST_API_KEY": "",
        "GOOGLE_ROUTES_API_KEY": "",
        "HTTP_TIMEOUT": 5.0,
        "DEFAULT_LANGUAGE": "en",
        "SUPPORTED_LANGUAGES": ["ko", "en"],
        "ESTIMATE_MINUTES_PER_KM": 3.0,
        "PROBE_RADIUS_M": 500,
        "RECOMPUTE_MIN_INTERVAL_SEC": 2.0,
        "FACILITY_RADIUS_OPTIONS": [500, 1000],
        "FACILITY_RESULT_LIMIT": 5,
    }


@pytest.fixture
def mock_lang_dict() -> dict[str, dict[str, str]]:
    """Мок словаря локализации."""
    return {
        "ROUTE_DEFAULT_LABEL": {"ko": "경로", "en": "Route"},
        "WALKING_MINUTES": {"ko": "도보 {minutes}분", "en": "Walk {minutes} min"},
        "ONLY_KO": {"ko": "한국어"},
        "BROKEN": "not a dict",
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Временный файл конфигурации."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(mock_config), encoding="utf-8")
    return path


@pytest.fixture
def temp_lang_dict_file(tmp_path: Path, mock_lang_dict: dict[str, dict[str, str]]) -> Path:
    """Временный файл локализации."""
    path = tmp_path / "lang_dict.json"
    path.write_text(json.dumps(mock_lang_dict, ensure_ascii=False), encoding="utf-8")
    return path


# =============================================================================
# ФИКСТУРЫ КООРДИНАТ
# =============================================================================

@pytest.fixture
def seoul_city_hall() -> Coordinate:
    """Сеульская мэрия."""
    return Coordinate(lat=37.5665, lng=126.9780)


@pytest.fixture
def hospital_location() -> Coordinate:
    """Медучреждение примерно в 1 км к востоку."""
    return Coordinate(lat=37.5651, lng=126.9895)


# =============================================================================
# ОТВЕТЫ ПРОВАЙДЕРОВ
# =============================================================================

def make_response(payload: Any, status_code: int = 200) -> MagicMock:
    """Мок httpx.Response с JSON телом."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


@pytest.fixture
def kakao_directions_payload() -> dict[str, Any]:
    """Успешный ответ Kakao Mobility /v1/directions."""
    return {
        "trans_id": "test",
        "routes": [{
            "result_code": 0,
            "result_msg": "길찾기 성공",
            "sections": [{
                "distance": 1530,
                "duration": 421,
                "roads": [
                    {"name": "세종대로", "distance": 800, "duration": 200,
                     "vertexes": [126.9780, 37.5665, 126.9790, 37.5660, 126.9820, 37.5658]},
                    {"name": "을지로", "distance": 730, "duration": 221,
                     "vertexes": [126.9850, 37.5655, 126.9895, 37.5651]},
                ],
            }],
        }],
    }


@pytest.fixture
def walking_polyline() -> str:
    """Подробная пешая геометрия (4 точки)."""
    return polyline.encode([
        Coordinate(37.5665, 126.9780),
        Coordinate(37.5668, 126.9785),
        Coordinate(37.5670, 126.9790),
        Coordinate(37.5672, 126.9795),
    ])


@pytest.fixture
def google_transit_payload(walking_polyline: str) -> dict[str, Any]:
    """Ответ computeRoutes: пешком, метро, автобус, короткий пеший участок."""
    subway_line = polyline.encode([
        Coordinate(37.5672, 126.9795), Coordinate(37.5660, 126.9830), Coordinate(37.5655, 126.9860),
    ])
    bus_line = polyline.encode([Coordinate(37.5655, 126.9860), Coordinate(37.5652, 126.9885)])
    sparse_walk = polyline.encode([Coordinate(37.5652, 126.9885), Coordinate(37.5651, 126.9895)])
    return {
        "routes": [{
            "distanceMeters": 2100,
            "duration": "1250s",
            "legs": [{
                "distanceMeters": 2100,
                "duration": "1250s",
                "steps": [
                    {
                        "travelMode": "WALK",
                        "polyline": {"encodedPolyline": walking_polyline},
                        "startLocation": {"latLng": {"latitude": 37.5665, "longitude": 126.9780}},
                        "endLocation": {"latLng": {"latitude": 37.5672, "longitude": 126.9795}},
                        "distanceMeters": 160,
                        "staticDuration": "150s",
                    },
                    {
                        "travelMode": "TRANSIT",
                        "polyline": {"encodedPolyline": subway_line},
                        "startLocation": {"latLng": {"latitude": 37.5672, "longitude": 126.9795}},
                        "endLocation": {"latLng": {"latitude": 37.5655, "longitude": 126.9860}},
                        "distanceMeters": 1200,
                        "staticDuration": "420s",
                        "transitDetails": {
                            "stopDetails": {
                                "departureStop": {
                                    "name": "시청역",
                                    "location": {"latLng": {"latitude": 37.5672, "longitude": 126.9795}},
                                },
                                "arrivalStop": {
                                    "name": "을지로입구역",
                                    "location": {"latLng": {"latitude": 37.5655, "longitude": 126.9860}},
                                },
                            },
                            "localizedValues": {
                                "departureTime": {"time": {"text": "오후 3:10"}},
                                "arrivalTime": {"time": {"text": "오후 3:17"}},
                            },
                            "headsign": "잠실",
                            "transitLine": {
                                "name": "수도권 2호선",
                                "nameShort": "2호선",
                                "color": "#00a84d",
                                "vehicle": {"type": "SUBWAY"},
                            },
                            "stopCount": 2,
                        },
                    },
                    {
                        "travelMode": "TRANSIT",
                        "polyline": {"encodedPolyline": bus_line},
                        "startLocation": {"latLng": {"latitude": 37.5655, "longitude": 126.9860}},
                        "endLocation": {"latLng": {"latitude": 37.5652, "longitude": 126.9885}},
                        "distanceMeters": 600,
                        "staticDuration": "300s",
                        "transitDetails": {
                            "stopDetails": {
                                "departureStop": {
                                    "name": "을지로입구",
                                    "location": {"latLng": {"latitude": 37.5655, "longitude": 126.9860}},
                                },
                                "arrivalStop": {"name": "을지로2가"},
                            },
                            "transitLine": {
                                "name": "143",
                                "color": "not-a-color",
                                "vehicle": {"type": "BUS"},
                            },
                            "stopCount": 1,
                        },
                    },
                    {
                        "travelMode": "WALK",
                        "polyline": {"encodedPolyline": sparse_walk},
                        "startLocation": {"latLng": {"latitude": 37.5652, "longitude": 126.9885}},
                        "endLocation": {"latLng": {"latitude": 37.5651, "longitude": 126.9895}},
                        "distanceMeters": 90,
                    },
                ],
            }],
        }],
    }


@pytest.fixture
def osrm_payload() -> dict[str, Any]:
    """Ответ OSRM /route/v1/foot."""
    return {
        "code": "Ok",
        "routes": [{
            "geometry": polyline.encode([
                Coordinate(37.5652, 126.9885),
                Coordinate(37.5653, 126.9889),
                Coordinate(37.5652, 126.9892),
                Coordinate(37.5651, 126.9895),
            ]),
            "distance": 95.0,
            "duration": 80.0,
        }],
    }


@pytest.fixture
def kakao_local_payload() -> dict[str, Any]:
    """Ответ Kakao Local search/keyword.json."""
    return {
        "meta": {"total_count": 3, "pageable_count": 3, "is_end": True},
        "documents": [
            {
                "id": "2",
                "place_name": "서울대학교병원",
                "x": "126.9997",
                "y": "37.5796",
                "road_address_name": "서울 종로구 대학로 101",
                "address_name": "서울 종로구 연건동 28",
                "phone": "1588-5700",
                "category_name": "의료,건강 > 병원 > 종합병원",
                "distance": "2600",
            },
            {
                "id": "1",
                "place_name": "중앙의원",
                "x": "126.9800",
                "y": "37.5670",
                "address_name": "서울 중구 태평로1가",
                "phone": "",
                "distance": "190",
            },
            {
                "id": "3",
                "place_name": "좌표없는병원",
                "x": "",
                "y": "",
            },
        ],
    }


# =============================================================================
# ТЕСТОВЫЕ ДВОЙНИКИ
# =============================================================================

class RecordingSurface:
    """Поверхность карты, записывающая все операции."""

    def __init__(self) -> None:
        self._ids = count(1)
        self.polylines: dict[str, PolylineSpec] = {}
        self.markers: dict[str, MarkerSpec] = {}
        self.popups: dict[str, PopupSpec] = {}
        self.click_handlers: dict[str, Callable[[], None]] = {}
        self.visible: dict[str, bool] = {}
        self.open_popups: set[str] = set()
        self.removed: list[str] = []
        self.bounds: list[list[Coordinate]] = []
        self.calls: list[tuple[str, str]] = []

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def add_polyline(self, spec: PolylineSpec) -> str:
        overlay_id = self._new_id("line")
        self.polylines[overlay_id] = spec
        self.visible[overlay_id] = True
        self.calls.append(("add_polyline", overlay_id))
        return overlay_id

    def add_marker(self, spec: MarkerSpec, on_click: Optional[Callable[[], None]] = None) -> str:
        overlay_id = self._new_id("marker")
        self.markers[overlay_id] = spec
        self.visible[overlay_id] = True
        if on_click is not None:
            self.click_handlers[overlay_id] = on_click
        self.calls.append(("add_marker", overlay_id))
        return overlay_id

    def move_marker(self, marker_id: str, position: Coordinate) -> None:
        self.markers[marker_id] = MarkerSpec(
            position=position,
            title=self.markers[marker_id].title,
            role=self.markers[marker_id].role,
            z_index=self.markers[marker_id].z_index,
        )
        self.calls.append(("move_marker", marker_id))

    def add_popup(self, spec: PopupSpec) -> str:
        popup_id = self._new_id("popup")
        self.popups[popup_id] = spec
        self.calls.append(("add_popup", popup_id))
        return popup_id

    def open_popup(self, popup_id: str, anchor_id: str) -> None:
        self.open_popups.add(popup_id)

    def close_popup(self, popup_id: str) -> None:
        self.open_popups.discard(popup_id)

    def set_visible(self, overlay_id: str, visible: bool) -> None:
        self.visible[overlay_id] = visible

    def remove(self, overlay_id: str) -> None:
        self.removed.append(overlay_id)
        self.polylines.pop(overlay_id, None)
        self.markers.pop(overlay_id, None)
        self.popups.pop(overlay_id, None)
        self.visible.pop(overlay_id, None)
        self.click_handlers.pop(overlay_id, None)
        self.open_popups.discard(overlay_id)

    def fit_bounds(self, points: Sequence[Coordinate]) -> None:
        self.bounds.append(list(points))

    def click(self, marker_id: str) -> None:
        self.click_handlers[marker_id]()

    @property
    def visible_overlays(self) -> list[str]:
        return [overlay_id for overlay_id, shown in self.visible.items() if shown]


class FakeLocationProvider:
    """Источник геолокации, управляемый из теста."""

    def __init__(self, current: Optional[PositionFix] = None) -> None:
        self.current = current
        self.on_fix: Optional[FixCallback] = None
        self.on_error: Optional[ErrorCallback] = None
        self.subscriptions: list[LocationSubscription] = []
        self.cancelled = 0

    async def get_current_position(self) -> PositionFix:
        if self.current is None:
            raise LocationError.from_code(2)
        return self.current

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> LocationSubscription:
        self.on_fix = on_fix
        self.on_error = on_error

        def release() -> None:
            self.cancelled += 1

        subscription = LocationSubscription(on_cancel=release)
        self.subscriptions.append(subscription)
        return subscription

    @property
    def active(self) -> bool:
        return bool(self.subscriptions) and self.subscriptions[-1].active

    async def emit(self, lat: float, lng: float) -> None:
        """Доставляет обновление, только пока подписка активна."""
        if self.active and self.on_fix is not None:
            await self.on_fix(PositionFix(coordinate=Coordinate(lat, lng)))

    async def fail(self, code: int) -> None:
        if self.active and self.on_error is not None:
            await self.on_error(LocationError.from_code(code))


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def location_provider() -> FakeLocationProvider:
    return FakeLocationProvider()
