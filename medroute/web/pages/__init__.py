# medroute/web/pages/__init__.py
"""
Страницы веб-интерфейса.
"""

from medroute.web.pages.facilities import FacilitiesPage
from medroute.web.pages.navigation import NavigationPage

__all__ = ["FacilitiesPage", "NavigationPage"]
