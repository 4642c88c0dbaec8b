# medroute/core/routing/__init__.py
"""
Маршруты: модели, нормализация ответов провайдеров, сервисы.
"""

from medroute.core.routing.driving import DrivingRouteService
from medroute.core.routing.models import (
    NavigationUpdate,
    PathSegment,
    PathStyle,
    Route,
    RouteOptions,
    RouteResult,
    TransitLeg,
    TransitStop,
)
from medroute.core.routing.pedestrian import PedestrianRouteClient
from medroute.core.routing.transit import TransitRouteService

__all__ = [
    "DrivingRouteService",
    "TransitRouteService",
    "PedestrianRouteClient",
    "NavigationUpdate",
    "PathSegment",
    "PathStyle",
    "Route",
    "RouteOptions",
    "RouteResult",
    "TransitLeg",
    "TransitStop",
]
