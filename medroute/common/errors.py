# medroute/common/errors.py
"""
Иерархия исключений движка маршрутов и навигации.
"""

from __future__ import annotations

from medroute.common.constants import LocationErrorCode


class MedRouteError(Exception):
    """Базовое исключение проекта."""
    pass


class InvalidCoordinate(MedRouteError, ValueError):
    """Координата вне допустимого диапазона. Никогда не уходит в сеть."""

    def __init__(self, lat: object, lng: object) -> None:
        super().__init__(f"Недопустимая координата: lat={lat!r}, lng={lng!r}")
        self.lat = lat
        self.lng = lng


class DecodeError(MedRouteError, ValueError):
    """Повреждённая строка polyline."""
    pass


# =============================================================================
# ОШИБКИ МАРШРУТИЗАЦИИ
# =============================================================================

class RouteUnavailable(MedRouteError):
    """Маршрут получить не удалось."""

    def __init__(self, message: str = "Маршрут недоступен", *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class CredentialMissing(RouteUnavailable):
    """API ключ провайдера не настроен."""
    pass


class ProviderUnavailable(RouteUnavailable):
    """Сетевая ошибка, ответ не 2xx или некорректное тело ответа."""

    def __init__(
        self,
        message: str = "Провайдер недоступен",
        *,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.status_code = status_code


class RouteNotFound(RouteUnavailable):
    """Корректный ответ провайдера без маршрута."""
    pass


# =============================================================================
# ОШИБКИ ГЕОЛОКАЦИИ
# =============================================================================

class LocationError(MedRouteError):
    """Ошибка источника геолокации."""

    code: LocationErrorCode = LocationErrorCode.POSITION_UNAVAILABLE
    # Терминальная ошибка завершает сессию отслеживания
    terminal: bool = False

    @classmethod
    def from_code(cls, code: int, message: str = "") -> "LocationError":
        """Создаёт исключение нужного типа по коду GeolocationPositionError."""
        mapping: dict[int, type[LocationError]] = {
            LocationErrorCode.PERMISSION_DENIED: LocationPermissionDenied,
            LocationErrorCode.POSITION_UNAVAILABLE: LocationUnavailable,
            LocationErrorCode.TIMEOUT: LocationTimeout,
        }
        error_cls = mapping.get(code, LocationUnavailable)
        return error_cls(message or error_cls.__doc__ or "")


class LocationPermissionDenied(LocationError):
    """Пользователь запретил доступ к геолокации."""
    code = LocationErrorCode.PERMISSION_DENIED
    terminal = True


class LocationUnavailable(LocationError):
    """Местоположение временно недоступно."""
    code = LocationErrorCode.POSITION_UNAVAILABLE


class LocationTimeout(LocationError):
    """Истекло время ожидания местоположения."""
    code = LocationErrorCode.TIMEOUT
