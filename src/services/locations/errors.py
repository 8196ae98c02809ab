# src/services/locations/errors.py
"""
Ошибки HTTP-слоя с телом {"result": "error", "error": ..., "details": ...}.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from src.common.constants import ApiErrorCode
from src.shared.models.common import ErrorDetail, error_body


class ApiError(Exception):
    """Ошибка, которую обработчик превращает в JSON-ответ."""

    def __init__(
        self,
        status_code: int,
        error: ApiErrorCode,
        details: list[ErrorDetail] | None = None,
    ) -> None:
        self.status_code = status_code
        self.error = error
        self.details = details
        super().__init__(error.value)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Exception handler FastAPI для ApiError."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error.value, exc.details),
    )
