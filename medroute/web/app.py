# medroute/web/app.py
"""
Веб-приложение NiceGUI.

/ : список медучреждений рядом с пользователем
/navigation?lat=..&lng=..&name=.. : навигация до выбранного учреждения
"""

from __future__ import annotations

import os

# Локальные данные NiceGUI храним вне корня проекта
os.environ.setdefault("NICEGUI_STORAGE_PATH", "/tmp/medroute_nicegui")

from nicegui import app, ui

from medroute.common.constants import TypeMsg
from medroute.common.logger import log_info, setup_logging
from medroute.config import settings
from medroute.web.pages.facilities import FacilitiesPage
from medroute.web.pages.navigation import NavigationPage, parse_destination, report_invalid_destination


def create_app() -> None:

    @ui.page("/")
    async def facilities(lang: str = "") -> None:
        lang = lang if lang in settings.domain.SUPPORTED_LANGUAGES else settings.domain.DEFAULT_LANGUAGE
        page = FacilitiesPage(lang=lang)
        await page.mount()

    @ui.page("/navigation")
    async def navigation(lat: str = "", lng: str = "", name: str = "", lang: str = "") -> None:
        lang = lang if lang in settings.domain.SUPPORTED_LANGUAGES else settings.domain.DEFAULT_LANGUAGE
        destination = parse_destination(lat, lng)
        if destination is None:
            await report_invalid_destination(lat, lng, lang)
            return
        page = NavigationPage(destination, facility_name=name, lang=lang)
        await page.mount()

    @app.on_startup
    async def startup() -> None:
        await log_info(f"{settings.system.PROJECT_NAME} {settings.system.VERSION} запущен", type_msg=TypeMsg.INFO)


def run_web(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """Запускает веб-сервер NiceGUI."""
    setup_logging()
    create_app()
    ui.run(
        host=host or settings.system.WEB_HOST,
        port=port or settings.system.WEB_PORT,
        reload=reload,
        title=settings.system.PROJECT_NAME,
    )


if __name__ in {"__main__", "__mp_main__"}:
    run_web()
