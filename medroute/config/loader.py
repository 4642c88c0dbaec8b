# medroute/config/loader.py
"""
Загрузчик конфигурации проекта.
Конфигурация читается из config/config.json.
API ключи провайдеров переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "medroute"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    WEB_HOST: str = "0.0.0.0"
    WEB_PORT: int = 8080


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class ProviderSettings(BaseModel):
    """Настройки внешних провайдеров маршрутов и мест."""
    KAKAO_REST_API_KEY: str = ""
    KAKAO_JS_API_KEY: str = ""
    GOOGLE_ROUTES_API_KEY: str = ""
    KAKAO_NAVI_BASE_URL: str = "https://apis-navi.kakaomobility.com"
    KAKAO_LOCAL_BASE_URL: str = "https://dapi.kakao.com"
    GOOGLE_ROUTES_URL: str = "https://routes.googleapis.com/directions/v2:computeRoutes"
    OSRM_BASE_URL: str = "https://router.project-osrm.org"
    HTTP_TIMEOUT: float = 10.0

    @field_validator("KAKAO_REST_API_KEY", "KAKAO_JS_API_KEY", "GOOGLE_ROUTES_API_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None, info) -> str:
        """Получает ключ из переменных окружения, если не задан."""
        if not v:
            return os.getenv(info.field_name, "")
        return v


class DomainSettings(BaseModel):
    """Настройки локализации."""
    DEFAULT_LANGUAGE: str = "ko"
    SUPPORTED_LANGUAGES: list[str] = Field(default_factory=lambda: ["ko", "en", "ru"])
    UNITS: str = "METRIC"


class TransitSettings(BaseModel):
    """Настройки маршрутов общественного транспорта и эвристической оценки."""
    PEDESTRIAN_SPEED_MPS: float = 1.2
    MIN_WALKING_POINTS: int = 3
    ESTIMATE_MINUTES_PER_KM: float = 2.5
    ESTIMATE_WALKING_MINUTES_PER_KM: float = 0.3
    ESTIMATE_TRANSFER_THRESHOLD_KM: float = 3.0
    PROBE_RADIUS_M: int = 1000
    PROBE_BUS_STOP_KEYWORD: str = "버스정류장"
    ALLOWED_TRANSIT_MODES: list[str] = Field(
        default_factory=lambda: ["BUS", "SUBWAY", "TRAIN", "LIGHT_RAIL"]
    )
    ROUTING_PREFERENCE: str = "LESS_WALKING"


class TrackingSettings(BaseModel):
    """Настройки отслеживания местоположения."""
    ENABLE_HIGH_ACCURACY: bool = True
    MAXIMUM_AGE_MS: int = 5000
    LOCATION_TIMEOUT_MS: int = 10000
    # 0 = пересчёт на каждое обновление позиции
    RECOMPUTE_MIN_INTERVAL_SEC: float = 0.0


class FacilitySettings(BaseModel):
    """Настройки поиска медучреждений."""
    FACILITY_KEYWORD: str = "병원"
    FACILITY_RADIUS_OPTIONS: list[int] = Field(default_factory=lambda: [1000, 2000, 5000, 10000])
    FACILITY_DEFAULT_RADIUS: int = 1000
    FACILITY_RESULT_LIMIT: int = 10


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    domain: DomainSettings = Field(default_factory=DomainSettings)
    transit: TransitSettings = Field(default_factory=TransitSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    facilities: FacilitySettings = Field(default_factory=FacilitySettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Ключи провайдеров переопределяются из переменных окружения.
        """
        config_data = load_config_json()
        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """Раскладывает плоский словарь config.json по секциям."""
        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "medroute"),
                VERSION=data.get("VERSION", "0.1.0"),
                DEBUG=data.get("DEBUG", True),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
                WEB_HOST=data.get("WEB_HOST", "0.0.0.0"),
                WEB_PORT=int(os.getenv("WEB_PORT", data.get("WEB_PORT", 8080))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            providers=ProviderSettings(
                KAKAO_REST_API_KEY=os.getenv("KAKAO_REST_API_KEY", data.get("KAKAO_REST_API_KEY", "")),
                KAKAO_JS_API_KEY=os.getenv("KAKAO_JS_API_KEY", data.get("KAKAO_JS_API_KEY", "")),
                GOOGLE_ROUTES_API_KEY=os.getenv("GOOGLE_ROUTES_API_KEY", data.get("GOOGLE_ROUTES_API_KEY", "")),
                KAKAO_NAVI_BASE_URL=data.get("KAKAO_NAVI_BASE_URL", "https://apis-navi.kakaomobility.com"),
                KAKAO_LOCAL_BASE_URL=data.get("KAKAO_LOCAL_BASE_URL", "https://dapi.kakao.com"),
                GOOGLE_ROUTES_URL=data.get(
                    "GOOGLE_ROUTES_URL", "https://routes.googleapis.com/directions/v2:computeRoutes"
                ),
                OSRM_BASE_URL=data.get("OSRM_BASE_URL", "https://router.project-osrm.org"),
                HTTP_TIMEOUT=data.get("HTTP_TIMEOUT", 10.0),
            ),
            domain=DomainSettings(
                DEFAULT_LANGUAGE=data.get("DEFAULT_LANGUAGE", "ko"),
                SUPPORTED_LANGUAGES=data.get("SUPPORTED_LANGUAGES", ["ko", "en", "ru"]),
                UNITS=data.get("UNITS", "METRIC"),
            ),
            transit=TransitSettings(
                PEDESTRIAN_SPEED_MPS=data.get("PEDESTRIAN_SPEED_MPS", 1.2),
                MIN_WALKING_POINTS=data.get("MIN_WALKING_POINTS", 3),
                ESTIMATE_MINUTES_PER_KM=data.get("ESTIMATE_MINUTES_PER_KM", 2.5),
                ESTIMATE_WALKING_MINUTES_PER_KM=data.get("ESTIMATE_WALKING_MINUTES_PER_KM", 0.3),
                ESTIMATE_TRANSFER_THRESHOLD_KM=data.get("ESTIMATE_TRANSFER_THRESHOLD_KM", 3.0),
                PROBE_RADIUS_M=data.get("PROBE_RADIUS_M", 1000),
                PROBE_BUS_STOP_KEYWORD=data.get("PROBE_BUS_STOP_KEYWORD", "버스정류장"),
                ALLOWED_TRANSIT_MODES=data.get(
                    "ALLOWED_TRANSIT_MODES", ["BUS", "SUBWAY", "TRAIN", "LIGHT_RAIL"]
                ),
                ROUTING_PREFERENCE=data.get("ROUTING_PREFERENCE", "LESS_WALKING"),
            ),
            tracking=TrackingSettings(
                ENABLE_HIGH_ACCURACY=data.get("ENABLE_HIGH_ACCURACY", True),
                MAXIMUM_AGE_MS=data.get("MAXIMUM_AGE_MS", 5000),
                LOCATION_TIMEOUT_MS=data.get("LOCATION_TIMEOUT_MS", 10000),
                RECOMPUTE_MIN_INTERVAL_SEC=data.get("RECOMPUTE_MIN_INTERVAL_SEC", 0.0),
            ),
            facilities=FacilitySettings(
                FACILITY_KEYWORD=data.get("FACILITY_KEYWORD", "병원"),
                FACILITY_RADIUS_OPTIONS=data.get("FACILITY_RADIUS_OPTIONS", [1000, 2000, 5000, 10000]),
                FACILITY_DEFAULT_RADIUS=data.get("FACILITY_DEFAULT_RADIUS", 1000),
                FACILITY_RESULT_LIMIT=data.get("FACILITY_RESULT_LIMIT", 10),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
