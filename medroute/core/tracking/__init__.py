# medroute/core/tracking/__init__.py
"""
Живое отслеживание положения пользователя.
"""

from medroute.core.tracking.location import LocationProvider, LocationSubscription, PositionFix, WatchOptions
from medroute.core.tracking.tracker import LiveTracker, TrackingSession

__all__ = [
    "LiveTracker",
    "TrackingSession",
    "LocationProvider",
    "LocationSubscription",
    "PositionFix",
    "WatchOptions",
]
