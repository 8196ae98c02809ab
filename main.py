#!/usr/bin/env python3
# main.py
"""
Точка входа Location Ingest.

Запуск:
    python main.py

Хост и порт берутся из config/config.json (HOST, PORT) или переменных окружения.
"""

from __future__ import annotations

import uvicorn

from src.config import settings


def main() -> None:
    """Запустить HTTP-сервис приёма геолокации."""
    uvicorn.run(
        "src.services.locations.app:app",
        host=settings.deployment.HOST,
        port=settings.deployment.PORT,
        reload=settings.system.DEBUG,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
