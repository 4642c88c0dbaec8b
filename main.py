#!/usr/bin/env python3
# main.py
"""
Точка входа medroute.
Запускает веб-интерфейс навигации или проверяет конфигурацию.
"""

from __future__ import annotations

import asyncio
import sys

from medroute.common.constants import TypeMsg
from medroute.common.localization import validate_lang_dict
from medroute.common.logger import log_error, log_info, setup_logging
from medroute.config import settings


VALID_MODES = ("web", "check")


async def check_configuration() -> bool:
    """
    Проверяет ключи провайдеров и словарь локализации.

    Returns:
        True если конфигурация пригодна для запуска
    """
    ok = True

    missing = [
        name for name, value in (
            ("KAKAO_REST_API_KEY", settings.providers.KAKAO_REST_API_KEY),
            ("KAKAO_JS_API_KEY", settings.providers.KAKAO_JS_API_KEY),
            ("GOOGLE_ROUTES_API_KEY", settings.providers.GOOGLE_ROUTES_API_KEY),
        )
        if not value
    ]
    if missing:
        # Без Google оценка маршрута на транспорте всё ещё работает
        await log_info(f"Не настроены ключи: {', '.join(missing)}", type_msg=TypeMsg.WARNING)
        if "KAKAO_REST_API_KEY" in missing or "KAKAO_JS_API_KEY" in missing:
            ok = False

    lang_errors = validate_lang_dict()
    for error in lang_errors:
        await log_error(f"Локализация: {error}")
    if lang_errors:
        ok = False

    if settings.facilities.FACILITY_DEFAULT_RADIUS not in settings.facilities.FACILITY_RADIUS_OPTIONS:
        await log_error(
            f"FACILITY_DEFAULT_RADIUS={settings.facilities.FACILITY_DEFAULT_RADIUS} "
            f"нет в FACILITY_RADIUS_OPTIONS"
        )
        ok = False

    await log_info(
        "✅ Конфигурация в порядке" if ok else "❌ Конфигурация содержит ошибки",
        type_msg=TypeMsg.INFO if ok else TypeMsg.ERROR,
    )
    return ok


def print_usage() -> None:
    print("""
medroute — навигация до медучреждения

Использование:
    python main.py [режим]

Режимы:
    web      — веб-интерфейс навигации (по умолчанию)
    check    — проверка ключей и локализации

Страницы:
    http://localhost:8080/            — больницы рядом
    http://localhost:8080/navigation?lat=37.5796&lng=126.9997&name=서울대학교병원
    """)


def main(mode: str = "web") -> None:
    if mode == "check":
        setup_logging()
        ok = asyncio.run(check_configuration())
        sys.exit(0 if ok else 1)

    # NiceGUI управляет циклом событий сам
    from medroute.web.app import run_web
    run_web(reload=False)


if __name__ == "__main__":
    mode = "web"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in VALID_MODES:
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        main(mode)
    except KeyboardInterrupt:
        pass
