# src/services/locations/app.py
"""
FastAPI приложение Location Ingest.

Endpoints:
- POST /api/locations - принять пакет Overland
- GET /api/locations - выдать точки (geojson | json | jsonl)
- GET /health - проверка здоровья
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.common.logger import log_info, log_warning, setup_logging
from src.config import settings
from src.infra.database import close_db, get_db, init_db
from src.services.locations.errors import ApiError, api_error_handler
from src.services.locations.routes import router
from src.shared.models.common import HealthStatus


SERVICE_NAME = "location_ingest"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    setup_logging()
    await log_info(f"Starting {SERVICE_NAME} ({settings.system.ENVIRONMENT})...")

    if not settings.auth.API_TOKEN:
        await log_warning("API_TOKEN не задан: все запросы к /api/* будут отклонены")
    if not settings.nominatim.enabled:
        await log_warning("NOMINATIM_USER_AGENT не задан: обогащение адресами отключено")

    await init_db()

    yield

    await log_info(f"Shutting down {SERVICE_NAME}...")
    await close_db()


app = FastAPI(
    title="Location Ingest",
    description="Приём и выдача геолокации Overland с обогащением адресами.",
    version=settings.system.VERSION,
    lifespan=lifespan,
)

app.add_exception_handler(ApiError, api_error_handler)
app.include_router(router)


@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса."""
    db = get_db()
    db_ok = db.is_connected and await db.health_check()
    return HealthStatus(
        service=SERVICE_NAME,
        status="healthy" if db_ok else "degraded",
        version=settings.system.VERSION,
        dependencies={"postgres": "healthy" if db_ok else "unhealthy"},
    )
