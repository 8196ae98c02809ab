# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("API_TOKEN", "test_api_token")
os.environ.setdefault("DB_PASSWORD", "test_password")


TEST_API_TOKEN = os.environ["API_TOKEN"]


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Заголовок авторизации с тестовым токеном."""
    return {"Authorization": f"Bearer {TEST_API_TOKEN}"}


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_conn() -> AsyncMock:
    """Мок соединения asyncpg."""
    conn = AsyncMock()
    conn.executemany = AsyncMock(return_value=None)
    conn.execute = AsyncMock(return_value="SELECT 1")
    return conn


@pytest.fixture
def mock_db(mock_conn: AsyncMock) -> MagicMock:
    """Мок менеджера базы данных."""
    db = MagicMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    db.transaction.return_value.__aenter__.return_value = mock_conn
    db.transaction.return_value.__aexit__.return_value = None
    return db


@pytest.fixture
def mock_sleep() -> AsyncMock:
    """Подмена asyncio.sleep: фиксирует задержки без реального ожидания."""
    return AsyncMock(return_value=None)


class RecordingTransport:
    """
    Фабрика httpx.MockTransport с очередью заготовленных ответов.

    Элемент очереди: httpx.Response или исключение, которое будет выброшено.
    Все запросы сохраняются в requests.
    """

    def __init__(self, responses: list[httpx.Response | Exception]) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Неожиданный запрос: {request.url}")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def recording_transport() -> Callable[[list[httpx.Response | Exception]], RecordingTransport]:
    """Создаёт RecordingTransport с заданными ответами."""
    return RecordingTransport


def _nominatim_body(
    display_name: str = "東京都千代田区丸の内一丁目",
    **address: str,
) -> dict[str, Any]:
    """Тело успешного ответа Nominatim /reverse."""
    return {
        "place_id": 1234,
        "lat": "35.681",
        "lon": "139.767",
        "display_name": display_name,
        "address": {"city": "千代田区", "country": "日本", **address},
    }


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

def _make_feature(
    lat: float = 35.6812,
    lon: float = 139.7671,
    *,
    timestamp: str = "2026-02-01T10:00:00.000Z",
    motion: list[str] | None = None,
    **properties: Any,
) -> dict[str, Any]:
    """Точка Overland (GeoJSON Feature)."""
    props: dict[str, Any] = {"timestamp": timestamp, **properties}
    if motion is not None:
        props["motion"] = motion
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": props,
    }


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Пакет Overland: две точки стоянки рядом и одна в движении."""
    return {
        "locations": [
            _make_feature(35.6812, 139.7671, motion=["stationary"], device_id="iphone"),
            _make_feature(35.68129, 139.7671, motion=["stationary"], device_id="iphone"),
            _make_feature(35.6900, 139.7000, motion=["driving"], device_id="iphone"),
        ],
        "current": None,
    }


@pytest.fixture
def nominatim_body() -> Callable[..., dict[str, Any]]:
    """Фабрика тела ответа Nominatim."""
    return _nominatim_body


@pytest.fixture
def make_feature() -> Callable[..., dict[str, Any]]:
    """Фабрика точки Overland."""
    return _make_feature
