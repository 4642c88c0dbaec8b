# medroute/__init__.py
"""
medroute: получение маршрутов до медучреждений и живая навигация.
"""

__version__ = "0.1.0"
