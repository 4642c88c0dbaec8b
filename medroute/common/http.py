# medroute/common/http.py
"""
Общий разбор HTTP ответов внешних провайдеров.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from medroute.common.errors import ProviderUnavailable
from medroute.common.logger import log_error


SchemaT = TypeVar("SchemaT", bound=BaseModel)


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider: str,
    **kwargs: Any,
) -> Any:
    """
    Выполняет запрос и возвращает тело ответа как JSON.

    Raises:
        ProviderUnavailable: сетевая ошибка/таймаут, ответ не 2xx
            или тело не JSON
    """
    try:
        send = client.post if method.upper() == "POST" else client.get
        response = await send(url, **kwargs)
    except httpx.HTTPError as e:
        await log_error(
            f"Ошибка запроса к провайдеру {provider}: {e!r}",
            extra={"provider": provider, "url": url},
        )
        raise ProviderUnavailable(f"Сетевая ошибка: {e}", provider=provider) from e

    if not 200 <= response.status_code < 300:
        await log_error(
            f"Провайдер {provider} ответил HTTP {response.status_code}",
            extra={"provider": provider, "url": url, "status_code": response.status_code},
        )
        raise ProviderUnavailable(
            f"HTTP {response.status_code}",
            provider=provider,
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as e:
        await log_error(f"Провайдер {provider} вернул не JSON: {e}", extra={"provider": provider})
        raise ProviderUnavailable("Некорректное тело ответа", provider=provider) from e


async def parse_schema(schema: type[SchemaT], data: Any, *, provider: str) -> SchemaT:
    """
    Валидирует тело ответа схемой.

    Raises:
        ProviderUnavailable: тело не соответствует схеме
    """
    try:
        return schema.model_validate(data)
    except ValueError as e:
        await log_error(
            f"Ответ провайдера {provider} не соответствует схеме {schema.__name__}: {e}",
            extra={"provider": provider},
        )
        raise ProviderUnavailable("Некорректное тело ответа", provider=provider) from e
