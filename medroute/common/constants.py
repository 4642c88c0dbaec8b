# medroute/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class RouteKind(str, Enum):
    """Тип маршрута."""
    DRIVING = "driving"
    TRANSIT = "transit"


class TravelMode(str, Enum):
    """Режим передвижения на сегменте маршрута."""
    DRIVING = "driving"
    TRANSIT = "transit"
    WALKING = "walking"


class VehicleKind(str, Enum):
    """Вид общественного транспорта."""
    BUS = "BUS"
    SUBWAY = "SUBWAY"
    TRAIN = "TRAIN"
    LIGHT_RAIL = "LIGHT_RAIL"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "VehicleKind":
        """Преобразует тип транспорта провайдера в перечисление."""
        if not value:
            return cls.UNKNOWN
        normalized = value.strip().upper()
        # Google отдаёт несколько разновидностей автобусов и поездов
        aliases = {
            "INTERCITY_BUS": cls.BUS,
            "TROLLEYBUS": cls.BUS,
            "SHARE_TAXI": cls.BUS,
            "METRO_RAIL": cls.SUBWAY,
            "HEAVY_RAIL": cls.TRAIN,
            "COMMUTER_TRAIN": cls.TRAIN,
            "HIGH_SPEED_TRAIN": cls.TRAIN,
            "LONG_DISTANCE_TRAIN": cls.TRAIN,
            "RAIL": cls.TRAIN,
            "TRAM": cls.LIGHT_RAIL,
            "MONORAIL": cls.LIGHT_RAIL,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


class DashStyle(str, Enum):
    """Стиль линии на карте (значения совпадают со strokeStyle Kakao Maps)."""
    SOLID = "solid"
    SHORT_DOT = "shortdot"
    DASH = "dash"


class StopRole(str, Enum):
    """Роль остановки в поездке."""
    DEPARTURE = "departure"
    ARRIVAL = "arrival"


class TrackingState(str, Enum):
    """Состояния трекера."""
    IDLE = "idle"
    TRACKING = "tracking"


class LocationErrorCode(int, Enum):
    """Коды ошибок геолокации (совпадают с GeolocationPositionError)."""
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3
