# src/services/locations/routes.py
"""
Маршруты /api/locations.

Тело и query разбираются вручную, чтобы ошибки имели формат
{"result": "error", "error": <код>, "details": [...]}.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.common.constants import ApiErrorCode, OutputFormat
from src.common.logger import log_error
from src.services.locations.dependencies import get_location_service, verify_bearer_token
from src.services.locations.errors import ApiError
from src.services.locations.service import LocationService, to_feature_collection, to_jsonl
from src.shared.models.common import OkResponse, validation_details
from src.shared.models.location_dto import GetLocationsQuery, OverlandPayload

router = APIRouter(
    prefix="/api",
    tags=["locations"],
    dependencies=[Depends(verify_bearer_token)],
)


@router.post("/locations", response_model=OkResponse)
async def post_locations(
    request: Request,
    service: LocationService = Depends(get_location_service),
):
    """Приём пакета Overland."""
    try:
        body = await request.json()
    except ValueError:
        raise ApiError(400, ApiErrorCode.INVALID_JSON)

    try:
        payload = OverlandPayload.model_validate(body)
    except ValidationError as e:
        raise ApiError(400, ApiErrorCode.VALIDATION_FAILED, validation_details(e))

    try:
        await service.ingest(payload)
    except Exception as e:
        await log_error(f"DB insert error: {e}", exc_info=True)
        raise ApiError(500, ApiErrorCode.DATABASE_ERROR)

    return OkResponse()


@router.get("/locations")
async def get_locations(
    request: Request,
    service: LocationService = Depends(get_location_service),
) -> Response:
    """Выдача точек: geojson (по умолчанию), json или jsonl."""
    try:
        query = GetLocationsQuery.model_validate(dict(request.query_params))
    except ValidationError as e:
        raise ApiError(400, ApiErrorCode.INVALID_QUERY_PARAMS, validation_details(e))

    try:
        rows = await service.get_locations(query.to_params())
    except Exception as e:
        await log_error(f"DB query error: {e}", exc_info=True)
        raise ApiError(500, ApiErrorCode.DATABASE_ERROR)

    match query.format:
        case OutputFormat.JSONL:
            return Response(content=to_jsonl(rows), media_type="application/x-ndjson")
        case OutputFormat.JSON:
            return JSONResponse(content=[row.model_dump() for row in rows])
        case _:
            return JSONResponse(content=to_feature_collection(rows))
