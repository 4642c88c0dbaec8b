# medroute/web/location.py
"""
Геолокация браузера (navigator.geolocation) через NiceGUI.

Обновления watchPosition приходят в Python событиями emitEvent.
"""

from __future__ import annotations

import json
import uuid
from itertools import count
from typing import Any, Optional

from nicegui import ui

from medroute.common.constants import LocationErrorCode, TypeMsg
from medroute.common.errors import InvalidCoordinate, LocationError, LocationTimeout, LocationUnavailable
from medroute.common.logger import log_info, log_warning
from medroute.core.geo.models import Coordinate
from medroute.core.tracking.location import (
    ErrorCallback,
    FixCallback,
    LocationSubscription,
    PositionFix,
    WatchOptions,
)


def parse_position(payload: Any) -> PositionFix:
    """
    Преобразует {lat, lng, accuracy, timestamp} из браузера в PositionFix.

    Raises:
        LocationUnavailable: в ответе нет корректных координат
    """
    if not isinstance(payload, dict):
        raise LocationUnavailable("Браузер не вернул координаты")
    try:
        coordinate = Coordinate.from_mapping(payload)
    except InvalidCoordinate as e:
        raise LocationUnavailable(str(e)) from e
    return PositionFix(
        coordinate=coordinate,
        accuracy_m=payload.get("accuracy"),
        timestamp_ms=payload.get("timestamp"),
    )


def parse_error(payload: Any) -> LocationError:
    """Преобразует {code, message} из браузера в исключение геолокации."""
    if not isinstance(payload, dict):
        return LocationUnavailable()
    try:
        code = int(payload.get("code", LocationErrorCode.POSITION_UNAVAILABLE))
    except (TypeError, ValueError):
        code = LocationErrorCode.POSITION_UNAVAILABLE
    return LocationError.from_code(code, str(payload.get("message") or ""))


class BrowserLocationProvider:
    """
    Источник геолокации на стороне браузера, реализующий LocationProvider.

    Создаётся внутри страницы NiceGUI, так как подписывается
    на события клиента.
    """

    def __init__(self, options: WatchOptions | None = None, request_timeout: float = 15.0) -> None:
        self.provider_id = f"geo_{uuid.uuid4().hex}"
        self._options = options or WatchOptions.from_settings()
        self._request_timeout = request_timeout
        self._watch_ids = count(1)
        self._watches: dict[int, tuple[FixCallback, ErrorCallback]] = {}

        ui.on(self.fix_event, self._handle_fix_event)
        ui.on(self.error_event, self._handle_error_event)

    @property
    def fix_event(self) -> str:
        return f"position_{self.provider_id}"

    @property
    def error_event(self) -> str:
        return f"position_error_{self.provider_id}"

    def _options_js(self) -> str:
        return json.dumps({
            "enableHighAccuracy": self._options.enable_high_accuracy,
            "maximumAge": self._options.maximum_age_ms,
            "timeout": self._options.timeout_ms,
        })

    async def get_current_position(self) -> PositionFix:
        """
        Одно измерение положения.

        Raises:
            LocationError: отказ в доступе, недоступность или таймаут
        """
        js = f"""
        return new Promise((resolve) => {{
            if (!navigator.geolocation) {{
                resolve({{ ok: false, code: 2, message: "Geolocation is not supported" }});
                return;
            }}
            navigator.geolocation.getCurrentPosition(
                (position) => {{
                    resolve({{
                        ok: true,
                        lat: position.coords.latitude,
                        lng: position.coords.longitude,
                        accuracy: position.coords.accuracy,
                        timestamp: position.timestamp
                    }});
                }},
                (error) => {{
                    resolve({{ ok: false, code: error.code, message: error.message }});
                }},
                {self._options_js()}
            );
        }});
        """
        try:
            result = await ui.run_javascript(js, timeout=self._request_timeout)
        except TimeoutError as e:
            await log_warning("Таймаут ожидания геолокации браузера")
            raise LocationTimeout("Истекло время ожидания местоположения") from e

        if isinstance(result, dict) and not result.get("ok", True):
            raise parse_error(result)
        return parse_position(result)

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> LocationSubscription:
        """Запускает watchPosition; обновления идут в on_fix и on_error до cancel()."""
        watch_id = next(self._watch_ids)
        self._watches[watch_id] = (on_fix, on_error)

        key = f"{self.provider_id}_{watch_id}"
        ui.run_javascript(f"""
        if (navigator.geolocation) {{
            window.watch_{key} = navigator.geolocation.watchPosition(
                (position) => emitEvent({json.dumps(self.fix_event)}, {{
                    watch_id: {watch_id},
                    lat: position.coords.latitude,
                    lng: position.coords.longitude,
                    accuracy: position.coords.accuracy,
                    timestamp: position.timestamp
                }}),
                (error) => emitEvent({json.dumps(self.error_event)}, {{
                    watch_id: {watch_id},
                    code: error.code,
                    message: error.message
                }}),
                {self._options_js()}
            );
        }} else {{
            emitEvent({json.dumps(self.error_event)}, {{ watch_id: {watch_id}, code: 2, message: "Geolocation is not supported" }});
        }}
        """)

        def release() -> None:
            self._watches.pop(watch_id, None)
            ui.run_javascript(f"""
            if (window.watch_{key} !== undefined) {{
                navigator.geolocation.clearWatch(window.watch_{key});
                delete window.watch_{key};
            }}
            """)

        return LocationSubscription(on_cancel=release)

    # =========================================================================
    # СОБЫТИЯ
    # =========================================================================

    def _callbacks(self, payload: Any) -> Optional[tuple[FixCallback, ErrorCallback]]:
        if not isinstance(payload, dict):
            return None
        return self._watches.get(payload.get("watch_id"))

    async def _handle_fix_event(self, e: Any) -> None:
        callbacks = self._callbacks(e.args)
        if callbacks is None:
            return
        on_fix, on_error = callbacks
        try:
            fix = parse_position(e.args)
        except LocationUnavailable as error:
            await on_error(error)
            return
        await on_fix(fix)

    async def _handle_error_event(self, e: Any) -> None:
        callbacks = self._callbacks(e.args)
        if callbacks is None:
            return
        error = parse_error(e.args)
        await log_info(
            f"Ошибка геолокации браузера: код {error.code.value}",
            type_msg=TypeMsg.DEBUG,
        )
        await callbacks[1](error)
