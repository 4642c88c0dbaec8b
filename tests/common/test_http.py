# tests/common/test_http.py
"""
Тесты разбора HTTP ответов провайдеров.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from conftest import make_response
from medroute.common.errors import ProviderUnavailable
from medroute.common.http import parse_schema, request_json
from medroute.core.routing.schemas import KakaoDirectionsResponse


@pytest.fixture
def client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


class TestRequestJson:
    """Тесты для request_json."""

    @pytest.mark.asyncio
    async def test_get_success(self, client: httpx.AsyncClient) -> None:
        """GET возвращает JSON тело."""
        with patch.object(client, "get", new_callable=AsyncMock, return_value=make_response({"ok": 1})) as get:
            data = await request_json(client, "GET", "https://example.test", provider="test", params={"a": 1})

        assert data == {"ok": 1}
        get.assert_awaited_once_with("https://example.test", params={"a": 1})

    @pytest.mark.asyncio
    async def test_post_uses_post(self, client: httpx.AsyncClient) -> None:
        with patch.object(client, "post", new_callable=AsyncMock, return_value=make_response([])) as post:
            await request_json(client, "post", "https://example.test", provider="test", json={})

        post.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_network_error(self, client: httpx.AsyncClient) -> None:
        """Сетевая ошибка httpx превращается в ProviderUnavailable."""
        with patch.object(client, "get", new_callable=AsyncMock, side_effect=httpx.ConnectTimeout("timeout")):
            with pytest.raises(ProviderUnavailable) as exc_info:
                await request_json(client, "GET", "https://example.test", provider="kakao")

        assert exc_info.value.provider == "kakao"
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_2xx(self, client: httpx.AsyncClient) -> None:
        """Ответ не 2xx сохраняет код статуса."""
        with patch.object(client, "get", new_callable=AsyncMock, return_value=make_response({}, status_code=503)):
            with pytest.raises(ProviderUnavailable) as exc_info:
                await request_json(client, "GET", "https://example.test", provider="kakao")

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_invalid_json(self, client: httpx.AsyncClient) -> None:
        response = MagicMock()
        response.status_code = 200
        response.json.side_effect = ValueError("not json")

        with patch.object(client, "get", new_callable=AsyncMock, return_value=response):
            with pytest.raises(ProviderUnavailable):
                await request_json(client, "GET", "https://example.test", provider="kakao")


class TestParseSchema:
    """Тесты для parse_schema."""

    @pytest.mark.asyncio
    async def test_valid(self) -> None:
        result = await parse_schema(KakaoDirectionsResponse, {"routes": []}, provider="kakao")
        assert result.routes == []

    @pytest.mark.asyncio
    async def test_invalid(self) -> None:
        """Несоответствие схеме превращается в ProviderUnavailable."""
        with pytest.raises(ProviderUnavailable):
            await parse_schema(KakaoDirectionsResponse, {"routes": "broken"}, provider="kakao")
