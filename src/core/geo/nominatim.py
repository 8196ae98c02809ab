# src/core/geo/nominatim.py
"""
Клиент обратного геокодирования OpenStreetMap Nominatim.

Координаты -> адрес (display_name) и метка POI.
Повторяет запросы при 429, 5xx и сетевых ошибках с экспоненциальной задержкой.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

from src.common.logger import log_error, log_info, log_warning
from src.common.constants import TypeMsg


DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org"
DEFAULT_LANGUAGE = "ja"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY_MS = 1000

# Порядок важен: берётся первое непустое поле
POI_FIELDS = ("amenity", "shop", "tourism", "building")

RETRY_AFTER_SECONDS = re.compile(r"\s*(\d+)")

SleepFunc = Callable[[float], Awaitable[None]]


# =============================================================================
# МОДЕЛИ
# =============================================================================

@dataclass(frozen=True)
class NominatimConfig:
    """
    Параметры доступа к Nominatim.

    Nominatim отклоняет анонимных клиентов, поэтому user_agent обязателен.
    """
    user_agent: str
    email: Optional[str] = None
    base_url: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.user_agent or not self.user_agent.strip():
            raise ValueError("Nominatim user_agent must be a non-empty string")


@dataclass(frozen=True)
class ReverseGeocodeOptions:
    """Параметры повторов."""
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS


@dataclass(frozen=True)
class GeocodeResult:
    """Результат обратного геокодирования."""
    address: str
    poi: Optional[str] = None


# =============================================================================
# ОШИБКИ
# =============================================================================

class GeocodingError(Exception):
    """Базовая ошибка геокодирования."""
    retryable: bool = False


class RateLimitedError(GeocodingError):
    """HTTP 429: превышен лимит запросов."""
    retryable = True

    def __init__(self, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limited (Retry-After: {retry_after})")


class ServerError(GeocodingError):
    """HTTP 5xx."""
    retryable = True

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"server error {status_code}")


class ClientError(GeocodingError):
    """HTTP 4xx (кроме 429): повтор бессмыслен."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"client error {status_code}")


class TransportError(GeocodingError):
    """Сетевая ошибка, таймаут или нечитаемый ответ."""
    retryable = True


class NoDataError(GeocodingError):
    """Ответ 2xx без display_name."""


class GeocodingRetriesExhausted(GeocodingError):
    """Все попытки исчерпаны."""

    def __init__(self, attempts: int, last_error: GeocodingError | None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"failed after {attempts} attempts: {last_error}")


# =============================================================================
# РАЗБОР ОТВЕТА
# =============================================================================

def extract_poi(address: dict[str, Any] | None) -> Optional[str]:
    """
    Извлекает метку POI из блока address.

    Приоритет: amenity -> shop -> tourism -> building.
    """
    if not address:
        return None
    for field in POI_FIELDS:
        value = address.get(field)
        if isinstance(value, str) and value:
            return value
    return None


def parse_retry_after(value: str | None) -> float | None:
    """
    Retry-After в секундах: берётся ведущее целое число ("1.5" -> 1).

    None, если заголовок отсутствует или не начинается с цифры (HTTP-date, "-1").
    """
    if value is None:
        return None
    match = RETRY_AFTER_SECONDS.match(value)
    if match is None:
        return None
    return float(int(match.group(1)))


def parse_reverse_response(data: Any) -> GeocodeResult:
    """
    Превращает JSON ответа /reverse в GeocodeResult.

    Raises:
        NoDataError: в ответе нет непустого display_name
    """
    if not isinstance(data, dict):
        raise NoDataError("unexpected response body")

    display_name = data.get("display_name")
    if not isinstance(display_name, str) or not display_name:
        raise NoDataError(data.get("error") or "no display_name in response")

    address = data.get("address")
    return GeocodeResult(
        address=display_name,
        poi=extract_poi(address if isinstance(address, dict) else None),
    )


# =============================================================================
# КЛИЕНТ
# =============================================================================

class NominatimClient:
    """
    HTTP-клиент Nominatim /reverse.

    Запросы строго последовательные: попытки одного вызова идут одна за
    другой, задержки выполняются через await sleep().
    """

    def __init__(
        self,
        config: NominatimConfig,
        options: ReverseGeocodeOptions | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """
        Args:
            config: Параметры доступа
            options: Параметры повторов
            transport: Транспорт httpx (подменяется в тестах)
            sleep: Функция ожидания в секундах (подменяется в тестах)
        """
        self._config = config
        self._options = options or ReverseGeocodeOptions()
        self._sleep = sleep

        headers = {"User-Agent": config.user_agent}
        if config.email:
            headers["From"] = config.email

        self._client = httpx.AsyncClient(
            base_url=config.base_url or DEFAULT_BASE_URL,
            headers=headers,
            timeout=config.timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def __aenter__(self) -> "NominatimClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def total_attempts(self) -> int:
        """Максимальное число запросов на одну точку."""
        return self._options.max_retries + 1

    def backoff_ms(self, attempt: int) -> int:
        """Экспоненциальная задержка перед повтором после попытки attempt (с нуля)."""
        return self._options.initial_delay_ms * 2 ** attempt

    def _retry_delay_ms(self, error: GeocodingError, attempt: int) -> float:
        if isinstance(error, RateLimitedError) and error.retry_after is not None:
            return error.retry_after * 1000
        return self.backoff_ms(attempt)

    async def _fetch_once(self, lat: float, lon: float) -> GeocodeResult:
        """Одна попытка запроса. Исход классифицируется исключением GeocodingError."""
        try:
            response = await self._client.get(
                "/reverse",
                params={
                    "format": "json",
                    "lat": str(lat),
                    "lon": str(lon),
                    "addressdetails": "1",
                    "accept-language": self._config.language,
                },
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError(parse_retry_after(response.headers.get("Retry-After")))
        if response.status_code >= 500:
            raise ServerError(response.status_code)
        if not response.is_success:
            raise ClientError(response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"malformed response: {e}") from e

        return parse_reverse_response(data)

    async def reverse(self, lat: float, lon: float) -> GeocodeResult:
        """
        Обратное геокодирование с повторами.

        Args:
            lat: Широта
            lon: Долгота

        Returns:
            Адрес и POI

        Raises:
            ClientError: 4xx (кроме 429)
            NoDataError: ответ без адреса
            GeocodingRetriesExhausted: все max_retries + 1 попыток неудачны
        """
        last_error: GeocodingError | None = None

        for attempt in range(self.total_attempts):
            try:
                return await self._fetch_once(lat, lon)
            except GeocodingError as e:
                if not e.retryable:
                    raise
                last_error = e
                delay_ms = self._retry_delay_ms(e, attempt)
                await log_warning(
                    f"Nominatim: {e}, повтор через {delay_ms:.0f} мс "
                    f"(попытка {attempt + 1}/{self.total_attempts})"
                )
                await self._sleep(delay_ms / 1000)

        raise GeocodingRetriesExhausted(self.total_attempts, last_error)

    async def reverse_geocode(self, lat: float, lon: float) -> Optional[GeocodeResult]:
        """
        Обратное геокодирование без исключений.

        Returns:
            Адрес и POI или None, если адрес получить не удалось
        """
        try:
            return await self.reverse(lat, lon)
        except NoDataError as e:
            await log_info(
                f"Nominatim не вернул адрес для ({lat}, {lon}): {e}",
                type_msg=TypeMsg.WARNING,
            )
        except ClientError as e:
            await log_error(f"Nominatim API error: {e.status_code} для ({lat}, {lon})")
        except GeocodingRetriesExhausted as e:
            await log_error(f"Nominatim API недоступен для ({lat}, {lon}): {e}")
        return None


async def reverse_geocode(
    lat: float,
    lon: float,
    config: NominatimConfig,
    options: ReverseGeocodeOptions | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc = asyncio.sleep,
) -> Optional[GeocodeResult]:
    """Разовый вызов: открывает клиент, геокодирует одну точку и закрывает клиент."""
    async with NominatimClient(config, options, transport=transport, sleep=sleep) as client:
        return await client.reverse_geocode(lat, lon)
