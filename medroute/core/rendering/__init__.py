# medroute/core/rendering/__init__.py
"""
Отрисовка маршрутов на карте.
"""

from medroute.core.rendering.renderer import DrawHandle, RouteRenderer
from medroute.core.rendering.surface import MapSurface, MarkerSpec, PolylineSpec, PopupSpec

__all__ = ["DrawHandle", "RouteRenderer", "MapSurface", "MarkerSpec", "PolylineSpec", "PopupSpec"]
