# src/shared/models/common.py
"""
Общие модели ответов API.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError


class ErrorDetail(BaseModel):
    """Описание одной ошибки валидации."""
    path: str
    message: str


class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""
    result: Literal["error"] = "error"
    error: str
    details: list[ErrorDetail] | None = None


class OkResponse(BaseModel):
    """Ответ об успешном приёме."""
    result: Literal["ok"] = "ok"


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""
    service: str
    status: str = "healthy"  # healthy, degraded, unhealthy
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)


def validation_details(exc: ValidationError) -> list[ErrorDetail]:
    """Переводит ошибки pydantic в список {path, message}."""
    details = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        details.append(ErrorDetail(path=path, message=error.get("msg", "")))
    return details


def error_body(error: str, details: list[ErrorDetail] | None = None) -> dict[str, Any]:
    """Тело JSON-ответа с ошибкой (details опускается, если пусто)."""
    return ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
