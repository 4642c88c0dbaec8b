# medroute/core/places/client.py
"""
Клиент Kakao Local API: поиск мест по ключевому слову и категории.
"""

from __future__ import annotations

from typing import Any

import httpx

from medroute.common.errors import CredentialMissing
from medroute.common.http import parse_schema, request_json
from medroute.common.logger import log_debug, log_error
from medroute.core.geo.models import Coordinate
from medroute.core.places.models import KakaoLocalResponse


# Ограничения Kakao Local
MAX_RADIUS_M = 20000
MAX_PAGE_SIZE = 15


class KakaoLocalClient:
    """Поиск мест вокруг точки, сортировка по расстоянию."""

    PROVIDER = "kakao_local"
    KEYWORD_PATH = "/v2/local/search/keyword.json"
    CATEGORY_PATH = "/v2/local/search/category.json"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            api_key: REST ключ Kakao (берётся из конфига если None)
            base_url: Базовый адрес Kakao Local
            timeout: Таймаут HTTP запроса в секундах
        """
        if api_key is None:
            from medroute.config import settings
            api_key = settings.providers.KAKAO_REST_API_KEY
            base_url = base_url or settings.providers.KAKAO_LOCAL_BASE_URL
            timeout = timeout if timeout is not None else settings.providers.HTTP_TIMEOUT

        self._api_key = api_key
        self._base_url = (base_url or "https://dapi.kakao.com").rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout if timeout is not None else 10.0)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def search_keyword(
        self,
        query: str,
        center: Coordinate,
        radius_m: int,
        size: int = MAX_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """
        Поиск по ключевому слову вокруг точки.

        Returns:
            Сырые документы Kakao (place_name, x, y, ...)
        """
        params = {"query": query}
        return await self._search(self.KEYWORD_PATH, params, center, radius_m, size)

    async def search_category(
        self,
        category_group_code: str,
        center: Coordinate,
        radius_m: int,
        size: int = MAX_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """
        Поиск по коду категории (SW8: станции метро, HP8: больницы).
        """
        params = {"category_group_code": category_group_code}
        return await self._search(self.CATEGORY_PATH, params, center, radius_m, size)

    async def _search(
        self,
        path: str,
        params: dict[str, Any],
        center: Coordinate,
        radius_m: int,
        size: int,
    ) -> list[dict[str, Any]]:
        if not self._api_key:
            await log_error("Kakao REST API key не настроен")
            raise CredentialMissing("Kakao REST API key не настроен", provider=self.PROVIDER)

        query = {
            **params,
            "x": str(center.lng),
            "y": str(center.lat),
            "radius": max(0, min(int(radius_m), MAX_RADIUS_M)),
            "size": max(1, min(int(size), MAX_PAGE_SIZE)),
            "sort": "distance",
        }
        data = await request_json(
            self._client,
            "GET",
            f"{self._base_url}{path}",
            provider=self.PROVIDER,
            params=query,
            headers={"Authorization": f"KakaoAK {self._api_key}"},
        )
        response = await parse_schema(KakaoLocalResponse, data, provider=self.PROVIDER)

        await log_debug(
            f"Kakao Local {path}: найдено {len(response.documents)}",
            extra={"params": params, "radius": query["radius"]},
        )
        return response.documents
