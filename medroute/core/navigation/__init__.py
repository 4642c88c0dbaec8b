# medroute/core/navigation/__init__.py
"""
Навигация: нумерация запросов маршрута и контроллер экрана.

Контроллер импортируется по полному пути
(medroute.core.navigation.controller), так как зависит от трекера.
"""

from medroute.core.navigation.sequencer import RequestSequencer

__all__ = ["RequestSequencer"]
