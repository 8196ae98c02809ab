# src/services/locations/dependencies.py
"""
Зависимости FastAPI: сборка сервиса и проверка Bearer токена.
"""

from __future__ import annotations

import hmac

from fastapi import Header

from src.common.constants import ApiErrorCode
from src.config import settings
from src.config.loader import NominatimSettings
from src.core.geo.enrichment import LocationEnricher
from src.core.geo.nominatim import NominatimConfig, ReverseGeocodeOptions
from src.infra.database import DatabaseManager
from src.services.locations.errors import ApiError
from src.services.locations.repository import LocationRepository
from src.services.locations.service import LocationService


def build_nominatim_config(cfg: NominatimSettings) -> NominatimConfig | None:
    """NominatimConfig из настроек; None, если user agent не задан (обогащение выключено)."""
    if not cfg.enabled:
        return None
    return NominatimConfig(
        user_agent=cfg.NOMINATIM_USER_AGENT,
        email=cfg.NOMINATIM_EMAIL,
        base_url=cfg.NOMINATIM_BASE_URL,
        language=cfg.NOMINATIM_LANGUAGE,
        timeout=cfg.NOMINATIM_TIMEOUT,
    )


def build_reverse_geocode_options(cfg: NominatimSettings) -> ReverseGeocodeOptions:
    return ReverseGeocodeOptions(
        max_retries=cfg.NOMINATIM_MAX_RETRIES,
        initial_delay_ms=cfg.NOMINATIM_INITIAL_DELAY_MS,
    )


def get_database() -> DatabaseManager:
    return DatabaseManager()


def get_location_repository() -> LocationRepository:
    return LocationRepository(get_database())


def get_location_enricher() -> LocationEnricher:
    return LocationEnricher(
        build_nominatim_config(settings.nominatim),
        build_reverse_geocode_options(settings.nominatim),
    )


def get_location_service() -> LocationService:
    return LocationService(get_location_repository(), get_location_enricher())


def check_bearer_token(authorization: str | None, expected_token: str) -> ApiErrorCode | None:
    """
    Проверяет заголовок Authorization: Bearer <token>.

    Returns:
        Код ошибки или None, если токен верный
    """
    if not authorization:
        return ApiErrorCode.MISSING_AUTHORIZATION_HEADER

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return ApiErrorCode.INVALID_AUTHORIZATION_FORMAT

    # Ненастроенный API_TOKEN не пропускает никого
    if not expected_token or not hmac.compare_digest(
        parts[1].encode("utf-8"), expected_token.encode("utf-8")
    ):
        return ApiErrorCode.INVALID_TOKEN

    return None


async def verify_bearer_token(authorization: str | None = Header(default=None)) -> None:
    """Зависимость для /api/*: 401 при неверном токене."""
    error = check_bearer_token(authorization, settings.auth.API_TOKEN)
    if error is not None:
        raise ApiError(401, error)
