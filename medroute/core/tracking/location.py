# medroute/core/tracking/location.py
"""
Контракт источника геолокации.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol

from medroute.common.errors import LocationError
from medroute.core.geo.models import Coordinate


@dataclass(frozen=True)
class PositionFix:
    """Одно измерение положения."""
    coordinate: Coordinate
    accuracy_m: Optional[float] = None
    timestamp_ms: Optional[float] = None


@dataclass(frozen=True)
class WatchOptions:
    """Параметры наблюдения (как у navigator.geolocation.watchPosition)."""
    enable_high_accuracy: bool = True
    maximum_age_ms: int = 5000
    timeout_ms: int = 10000

    @classmethod
    def from_settings(cls) -> "WatchOptions":
        from medroute.config import settings
        return cls(
            enable_high_accuracy=settings.tracking.ENABLE_HIGH_ACCURACY,
            maximum_age_ms=settings.tracking.MAXIMUM_AGE_MS,
            timeout_ms=settings.tracking.LOCATION_TIMEOUT_MS,
        )


FixCallback = Callable[[PositionFix], Awaitable[None]]
ErrorCallback = Callable[[LocationError], Awaitable[None]]


class LocationSubscription:
    """
    Отменяемая подписка на обновления положения.
    cancel() идемпотентна: освобождение выполняется ровно один раз.
    """

    def __init__(self, on_cancel: Callable[[], None] | None = None) -> None:
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel()


class LocationProvider(Protocol):
    """Источник геолокации устройства."""

    async def get_current_position(self) -> PositionFix:
        """
        Raises:
            LocationError: отказ в доступе, недоступность или таймаут
        """
        ...

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> LocationSubscription:
        """Начинает наблюдение; вызовы прекращаются после cancel()."""
        ...
