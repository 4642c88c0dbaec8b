# medroute/core/places/__init__.py
"""
Поиск медучреждений через Kakao Local.
"""

from medroute.core.places.client import KakaoLocalClient
from medroute.core.places.models import Facility
from medroute.core.places.service import FacilitySearchService, normalize_facilities

__all__ = ["KakaoLocalClient", "Facility", "FacilitySearchService", "normalize_facilities"]
