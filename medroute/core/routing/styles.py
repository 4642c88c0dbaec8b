# medroute/core/routing/styles.py
"""
Палитра линий маршрута и порядок отрисовки слоёв.
"""

from __future__ import annotations

import re

from medroute.common.constants import DashStyle
from medroute.core.routing.models import PathStyle


# Порядок слоёв: транспорт под пешими участками, маркеры поверх всего
Z_VEHICLE = 1
Z_WALKING = 2
Z_MARKER = 3

DEFAULT_TRANSIT_COLOR = "#4CAF50"

DRIVING_STYLE = PathStyle(color="#007bff", width=6, dash=DashStyle.SOLID)
WALKING_STYLE = PathStyle(color="#757575", width=3, dash=DashStyle.SHORT_DOT)
APPROXIMATE_STYLE = PathStyle(color="#9E9E9E", width=3, dash=DashStyle.DASH)
OTHER_VEHICLE_STYLE = PathStyle(color="#00C851", width=4, dash=DashStyle.SOLID)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def normalize_color(color: str | None, default: str = DEFAULT_TRANSIT_COLOR) -> str:
    """Приводит цвет линии к виду #RRGGBB; мусор заменяется на default."""
    if not color:
        return default
    match = _HEX_COLOR.match(color.strip())
    if not match:
        return default
    return f"#{match.group(1)}"


def transit_style(line_color: str | None) -> PathStyle:
    """Стиль участка на транспорте: цвет линии, сплошная, ширина 5."""
    return PathStyle(color=normalize_color(line_color), width=5, dash=DashStyle.SOLID)
