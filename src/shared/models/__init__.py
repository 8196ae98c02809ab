# src/shared/models/__init__.py
"""
DTO и Pydantic-модели API.
"""

from src.shared.models.common import (
    ErrorDetail,
    ErrorResponse,
    HealthStatus,
    OkResponse,
)
from src.shared.models.location_dto import (
    BoundingBox,
    GetLocationsQuery,
    LocationFeature,
    LocationInsert,
    LocationQueryParams,
    LocationRow,
    OverlandPayload,
)

__all__ = [
    # Common
    "ErrorDetail",
    "ErrorResponse",
    "HealthStatus",
    "OkResponse",
    # Locations
    "BoundingBox",
    "GetLocationsQuery",
    "LocationFeature",
    "LocationInsert",
    "LocationQueryParams",
    "LocationRow",
    "OverlandPayload",
]
