# src/config/loader.py
"""
Настройки сервиса.

Базовые значения лежат в config/config.json, секреты (API_TOKEN, DB_PASSWORD,
NOMINATIM_USER_AGENT) и адреса инфраструктуры приходят из окружения или .env.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ПУТИ
# =============================================================================

def get_project_root() -> Path:
    """Корень репозитория (уровнем выше src/)."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """config/config.json в корне репозитория."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Сырой словарь config.json (вместе с ключами _comment_*)."""
    path = get_config_path()
    if not path.exists():
        raise FileNotFoundError(f"Нет файла конфигурации: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


# =============================================================================
# СЕКЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Имя, версия и окружение."""
    PROJECT_NAME: str = "location_tracker"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Настройки развертывания HTTP-сервиса."""
    HOST: str = "0.0.0.0"
    PORT: int = 8080


class LoggingSettings(BaseModel):
    """Секция logging: уровень, формат, файлы."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class AuthSettings(BaseModel):
    """Настройки авторизации API (Bearer токен)."""
    API_TOKEN: str = ""

    @field_validator("API_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Пустой токен в конфиге берётся из API_TOKEN."""
        if not v:
            return os.getenv("API_TOKEN", "")
        return v


class NominatimSettings(BaseModel):
    """
    Настройки обратного геокодирования через Nominatim.

    Пустой NOMINATIM_USER_AGENT отключает обогащение адресами целиком.
    """
    NOMINATIM_USER_AGENT: str = ""
    NOMINATIM_EMAIL: str | None = None
    NOMINATIM_BASE_URL: str | None = None
    NOMINATIM_LANGUAGE: str = "ja"
    NOMINATIM_MAX_RETRIES: int = Field(default=3, ge=0)
    NOMINATIM_INITIAL_DELAY_MS: int = Field(default=1000, ge=0)
    NOMINATIM_TIMEOUT: float = Field(default=10.0, gt=0)

    @field_validator("NOMINATIM_EMAIL", "NOMINATIM_BASE_URL", mode="before")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        """Пустые строки из окружения трактуем как отсутствие значения."""
        return v or None

    @property
    def enabled(self) -> bool:
        """Включено ли обогащение адресами."""
        return bool(self.NOMINATIM_USER_AGENT.strip())


class DatabaseSettings(BaseModel):
    """PostgreSQL: адрес, пул, повторы подключения."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "location_tracker"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 60
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Пустой пароль в конфиге берётся из DB_PASSWORD."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """DSN для asyncpg.create_pool."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


# =============================================================================
# НАСТРОЙКИ ЦЕЛИКОМ
# =============================================================================

class Settings(BaseSettings):
    """Все секции настроек сервиса."""
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    nominatim: NominatimSettings = Field(default_factory=NominatimSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """Settings из config.json; переменные окружения имеют приоритет."""
        data = {k: v for k, v in load_config_json().items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "location_tracker"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                HOST=os.getenv("HOST", data.get("HOST", "0.0.0.0")),
                PORT=int(os.getenv("PORT", data.get("PORT", 8080))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            auth=AuthSettings(
                API_TOKEN=os.getenv("API_TOKEN", data.get("API_TOKEN", "")),
            ),
            nominatim=NominatimSettings(
                NOMINATIM_USER_AGENT=os.getenv(
                    "NOMINATIM_USER_AGENT", data.get("NOMINATIM_USER_AGENT", "")
                ),
                NOMINATIM_EMAIL=os.getenv("NOMINATIM_EMAIL", data.get("NOMINATIM_EMAIL")),
                NOMINATIM_BASE_URL=os.getenv("NOMINATIM_BASE_URL", data.get("NOMINATIM_BASE_URL")),
                NOMINATIM_LANGUAGE=os.getenv("NOMINATIM_LANGUAGE", data.get("NOMINATIM_LANGUAGE", "ja")),
                NOMINATIM_MAX_RETRIES=int(
                    os.getenv("NOMINATIM_MAX_RETRIES", data.get("NOMINATIM_MAX_RETRIES", 3))
                ),
                NOMINATIM_INITIAL_DELAY_MS=int(
                    os.getenv("NOMINATIM_INITIAL_DELAY_MS", data.get("NOMINATIM_INITIAL_DELAY_MS", 1000))
                ),
                NOMINATIM_TIMEOUT=float(
                    os.getenv("NOMINATIM_TIMEOUT", data.get("NOMINATIM_TIMEOUT", 10.0))
                ),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "location_tracker")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 60),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """Настройки процесса (читаются один раз, .env подхватывается при наличии)."""
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
