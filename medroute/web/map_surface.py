# medroute/web/map_surface.py
"""
Поверхность карты Kakao Maps в браузере через NiceGUI.

Каждая операция отправляется в браузер как фрагмент JS без ожидания
ответа; объекты карты хранятся в window.overlays_{map_id} по id.
Клики по маркерам возвращаются в Python через emitEvent.
"""

from __future__ import annotations

import html
import json
import uuid
from itertools import count
from typing import Any, Callable, Optional, Sequence

from nicegui import ui

from medroute.common.constants import StopRole, VehicleKind
from medroute.common.localization import get_text
from medroute.core.geo.models import Coordinate
from medroute.core.rendering.surface import MarkerSpec, PolylineSpec, PopupSpec


VEHICLE_ICONS = {
    VehicleKind.SUBWAY: "🚇",
    VehicleKind.BUS: "🚌",
    VehicleKind.TRAIN: "🚂",
}
DEFAULT_VEHICLE_ICON = "🚊"

ROLE_COLORS = {
    StopRole.DEPARTURE: "#4CAF50",
    StopRole.ARRIVAL: "#f44336",
}
ROLE_BACKGROUNDS = {
    StopRole.DEPARTURE: "#e8f5e8",
    StopRole.ARRIVAL: "#ffebee",
}


def _js_latlng(point: Coordinate) -> str:
    return f"new kakao.maps.LatLng({point.lat}, {point.lng})"


def render_popup_html(spec: PopupSpec, lang: str = "ko") -> str:
    """HTML всплывающего окна остановки."""
    color = ROLE_COLORS[spec.role]
    lines = [
        '<div style="padding: 12px; min-width: 220px; font-size: 13px;">',
        '<div style="font-weight: bold; margin-bottom: 8px; color: #333;">'
        f'{VEHICLE_ICONS.get(spec.vehicle_kind, DEFAULT_VEHICLE_ICON)} '
        f'<span style="margin-left: 6px; color: {html.escape(spec.line_color)};">{html.escape(spec.line_name)}</span>'
        '</div>',
        f'<div style="margin-bottom: 6px; padding: 4px 8px; background-color: {ROLE_BACKGROUNDS[spec.role]}; '
        f'border-radius: 4px;"><strong>{html.escape(spec.role_label)}:</strong> {html.escape(spec.stop_name)}</div>',
    ]
    if spec.time_text:
        lines.append(f'<div style="color: #666; margin-bottom: 4px;">{html.escape(spec.time_text)}</div>')
    if spec.stop_count:
        lines.append(
            f'<div style="color: #666; font-size: 12px;">{html.escape(get_text("STOP_COUNT", lang, count=spec.stop_count))}</div>'
        )
    if spec.hint:
        lines.append(f'<div style="color: {color}; font-size: 12px; margin-top: 4px;">{html.escape(spec.hint)}</div>')
    lines.append("</div>")
    return "".join(lines)


def _marker_image_js(role: Optional[StopRole]) -> str:
    """Круглая иконка посадки или высадки; для маркера положения стандартная."""
    if role is None:
        return "null"
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="28" height="28" viewBox="0 0 28 28">'
        f'<circle cx="14" cy="14" r="12" fill="{ROLE_COLORS[role]}" stroke="white" stroke-width="3"/>'
        "</svg>"
    )
    return (
        "new kakao.maps.MarkerImage("
        f"'data:image/svg+xml;charset=utf-8,' + encodeURIComponent({json.dumps(svg)}), "
        "new kakao.maps.Size(28, 28), { offset: new kakao.maps.Point(14, 14) })"
    )


class KakaoMapSurface:
    """
    Карта Kakao Maps, реализующая MapSurface.

    Создаётся внутри страницы NiceGUI: render() добавляет контейнер
    и подписывается на клики маркеров.
    """

    def __init__(
        self,
        center: Coordinate,
        level: int = 4,
        js_api_key: str | None = None,
        lang: str | None = None,
    ) -> None:
        if js_api_key is None or lang is None:
            from medroute.config import settings
            js_api_key = settings.providers.KAKAO_JS_API_KEY if js_api_key is None else js_api_key
            lang = lang or settings.domain.DEFAULT_LANGUAGE

        self.map_id = f"map_{uuid.uuid4().hex}"
        self.center = center
        self.level = level
        self._js_api_key = js_api_key
        self._lang = lang
        self._ids = count(1)
        self._click_handlers: dict[str, Callable[[], None]] = {}
        self.map_element: Optional[ui.element] = None

    @property
    def click_event(self) -> str:
        return f"marker_click_{self.map_id}"

    def render(self) -> None:
        """Рендерит контейнер карты и инициализирует JS."""
        if not self._js_api_key:
            with ui.column().classes("w-full h-full items-center justify-center bg-gray-200"):
                ui.icon("map", size="4rem", color="gray-400")
                ui.label(get_text("ERROR_MAP_KEY_MISSING", self._lang)).classes("text-gray-500")
            return

        self.map_element = ui.element("div").props(f'id="{self.map_id}"').classes("w-full h-full")
        ui.on(self.click_event, self._handle_click_event)
        self._init_map_js()

    def _init_map_js(self) -> None:
        js_code = f"""
            window.map_{self.map_id} = null;
            window.overlays_{self.map_id} = {{}};
            window.onMapReady_{self.map_id} = [];

            window.whenMapReady_{self.map_id} = (callback) => {{
                if (window.map_{self.map_id}) {{
                    callback(window.map_{self.map_id});
                }} else {{
                    window.onMapReady_{self.map_id}.push(callback);
                }}
            }};

            const initMap_{self.map_id} = () => {{
                kakao.maps.load(() => {{
                    const container = document.getElementById("{self.map_id}");
                    if (!container) {{
                        console.error("Map element not found: {self.map_id}");
                        return;
                    }}
                    window.map_{self.map_id} = new kakao.maps.Map(container, {{
                        center: {_js_latlng(self.center)},
                        level: {self.level}
                    }});
                    window.onMapReady_{self.map_id}.forEach(cb => cb(window.map_{self.map_id}));
                    window.onMapReady_{self.map_id} = [];
                }});
            }};

            if (window.kakao && window.kakao.maps) {{
                initMap_{self.map_id}();
            }} else {{
                const script = document.createElement("script");
                script.src = "https://dapi.kakao.com/v2/maps/sdk.js?appkey={self._js_api_key}&autoload=false";
                script.onload = initMap_{self.map_id};
                document.head.append(script);
            }}
        """
        ui.run_javascript(js_code)

    def _run(self, body: str) -> None:
        """Выполняет фрагмент JS, когда карта готова; переменная map доступна внутри."""
        ui.run_javascript(f"""
        if (window.whenMapReady_{self.map_id}) {{
            window.whenMapReady_{self.map_id}(map => {{
                const overlays = window.overlays_{self.map_id};
                {body}
            }});
        }}
        """)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._ids)}"

    # =========================================================================
    # MapSurface
    # =========================================================================

    def add_polyline(self, spec: PolylineSpec) -> str:
        overlay_id = self._next_id("line")
        path = ", ".join(_js_latlng(p) for p in spec.points)
        self._run(f"""
                overlays[{json.dumps(overlay_id)}] = new kakao.maps.Polyline({{
                    map: map,
                    path: [{path}],
                    strokeWeight: {spec.width},
                    strokeColor: {json.dumps(spec.color)},
                    strokeOpacity: {spec.opacity},
                    strokeStyle: {json.dumps(spec.dash.value)},
                    zIndex: {spec.z_index}
                }});
        """)
        return overlay_id

    def add_marker(self, spec: MarkerSpec, on_click: Callable[[], None] | None = None) -> str:
        overlay_id = self._next_id("marker")
        click_js = ""
        if on_click is not None:
            self._click_handlers[overlay_id] = on_click
            click_js = (
                f"kakao.maps.event.addListener(overlays[{json.dumps(overlay_id)}], 'click', "
                f"() => emitEvent({json.dumps(self.click_event)}, {{ id: {json.dumps(overlay_id)} }}));"
            )
        image_js = _marker_image_js(spec.role)
        self._run(f"""
                const options = {{
                    map: map,
                    position: {_js_latlng(spec.position)},
                    title: {json.dumps(spec.title)},
                    zIndex: {spec.z_index}
                }};
                const image = {image_js};
                if (image) {{ options.image = image; }}
                overlays[{json.dumps(overlay_id)}] = new kakao.maps.Marker(options);
                {click_js}
        """)
        return overlay_id

    def move_marker(self, marker_id: str, position: Coordinate) -> None:
        self._run(f"""
                const marker = overlays[{json.dumps(marker_id)}];
                if (marker) {{ marker.setPosition({_js_latlng(position)}); }}
        """)

    def add_popup(self, spec: PopupSpec) -> str:
        overlay_id = self._next_id("popup")
        content = render_popup_html(spec, self._lang)
        self._run(f"""
                overlays[{json.dumps(overlay_id)}] = new kakao.maps.InfoWindow({{
                    content: {json.dumps(content)},
                    removable: true
                }});
        """)
        return overlay_id

    def open_popup(self, popup_id: str, anchor_id: str) -> None:
        self._run(f"""
                const popup = overlays[{json.dumps(popup_id)}];
                const anchor = overlays[{json.dumps(anchor_id)}];
                if (popup && anchor) {{ popup.open(map, anchor); }}
        """)

    def close_popup(self, popup_id: str) -> None:
        self._run(f"""
                const popup = overlays[{json.dumps(popup_id)}];
                if (popup) {{ popup.close(); }}
        """)

    def set_visible(self, overlay_id: str, visible: bool) -> None:
        self._run(f"""
                const overlay = overlays[{json.dumps(overlay_id)}];
                if (overlay && overlay.setMap) {{ overlay.setMap({'map' if visible else 'null'}); }}
        """)

    def remove(self, overlay_id: str) -> None:
        self._click_handlers.pop(overlay_id, None)
        self._run(f"""
                const overlay = overlays[{json.dumps(overlay_id)}];
                if (overlay) {{
                    if (overlay.close) {{ overlay.close(); }}
                    if (overlay.setMap) {{ overlay.setMap(null); }}
                    delete overlays[{json.dumps(overlay_id)}];
                }}
        """)

    def fit_bounds(self, points: Sequence[Coordinate]) -> None:
        if not points:
            return
        extend = "\n".join(f"bounds.extend({_js_latlng(p)});" for p in points)
        self._run(f"""
                const bounds = new kakao.maps.LatLngBounds();
                {extend}
                map.setBounds(bounds);
        """)

    # =========================================================================
    # СОБЫТИЯ
    # =========================================================================

    def _handle_click_event(self, e: Any) -> None:
        args = getattr(e, "args", None)
        overlay_id = args.get("id") if isinstance(args, dict) else None
        handler = self._click_handlers.get(overlay_id)
        if handler is not None:
            handler()
