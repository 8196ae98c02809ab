# src/shared/models/location_dto.py
"""
DTO приёма и выдачи геолокации.

Входящий формат: пакет Overland из GeoJSON Feature с геометрией Point.
"""

from __future__ import annotations

import re
from datetime import datetime, time, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.common.constants import DEFAULT_DEVICE_ID, DEFAULT_LOCATIONS_LIMIT, OutputFormat


# =============================================================================
# ВХОДЯЩИЙ ПАКЕТ OVERLAND
# =============================================================================

def parse_iso_datetime(value: str) -> datetime:
    """Парсит ISO 8601; наивное время считается UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class PointGeometry(BaseModel):
    """Геометрия точки. Порядок координат GeoJSON: [lon, lat]."""
    type: Literal["Point"]
    coordinates: tuple[float, float]


class FeatureProperties(BaseModel):
    """Свойства точки. Неизвестные поля клиента сохраняются как есть."""
    model_config = ConfigDict(extra="allow")

    timestamp: str
    device_id: Optional[str] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None
    horizontal_accuracy: Optional[float] = None
    vertical_accuracy: Optional[float] = None
    speed_accuracy: Optional[float] = None
    course: Optional[float] = None
    battery_level: Optional[float] = None
    battery_state: Optional[str] = None
    motion: Optional[list[str]] = None
    wifi: Optional[str] = None
    unique_id: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        """Проверяет, что timestamp является датой-временем ISO 8601."""
        try:
            parse_iso_datetime(v)
        except ValueError as e:
            raise ValueError("timestamp must be an ISO 8601 date-time") from e
        return v


class LocationFeature(BaseModel):
    """Одна точка геолокации (GeoJSON Feature)."""
    type: Literal["Feature"]
    geometry: PointGeometry
    properties: FeatureProperties

    @property
    def longitude(self) -> float:
        return self.geometry.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.geometry.coordinates[1]

    @property
    def recorded_at(self) -> datetime:
        return parse_iso_datetime(self.properties.timestamp)

    @property
    def motion(self) -> tuple[str, ...]:
        return tuple(self.properties.motion or ())


class OverlandPayload(BaseModel):
    """Тело POST /api/locations."""
    locations: list[LocationFeature]
    current: Any = None
    trip: Any = None


# =============================================================================
# ПАРАМЕТРЫ ВЫБОРКИ
# =============================================================================

BBOX_PATTERN = r"^-?\d+\.?\d*,-?\d+\.?\d*,-?\d+\.?\d*,-?\d+\.?\d*$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class BoundingBox(BaseModel):
    """Прямоугольник выборки: юго-западный и северо-восточный углы."""
    sw_lon: float
    sw_lat: float
    ne_lon: float
    ne_lat: float


def parse_bbox(bbox: str) -> BoundingBox:
    """Разбирает строку "sw_lon,sw_lat,ne_lon,ne_lat"."""
    if not re.match(BBOX_PATTERN, bbox):
        raise ValueError(f"Invalid bbox: {bbox}")
    sw_lon, sw_lat, ne_lon, ne_lat = (float(part) for part in bbox.split(","))
    return BoundingBox(sw_lon=sw_lon, sw_lat=sw_lat, ne_lon=ne_lon, ne_lat=ne_lat)


class GetLocationsQuery(BaseModel):
    """Query-параметры GET /api/locations."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    from_: Optional[datetime] = Field(default=None, alias="from")
    to: Optional[datetime] = None
    bbox: Optional[str] = Field(default=None, pattern=BBOX_PATTERN)
    limit: Optional[int] = Field(default=None, ge=1)
    format: OutputFormat = OutputFormat.GEOJSON
    device_id: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        """Отсекает несуществующие даты вида 2026-02-30."""
        if v is not None:
            datetime.strptime(v, "%Y-%m-%d")
        return v

    @field_validator("from_", "to")
    @classmethod
    def validate_bound(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Границы без смещения считаются UTC, как timestamp при приёме."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_params(self) -> "LocationQueryParams":
        """
        Переводит query в параметры репозитория.

        date задаёт сутки UTC и используется только там, где from/to не заданы.
        """
        date_from: Optional[datetime] = None
        date_to: Optional[datetime] = None
        if self.date:
            day = datetime.strptime(self.date, "%Y-%m-%d").date()
            date_from = datetime.combine(day, time.min, tzinfo=timezone.utc)
            date_to = datetime.combine(day, time.max, tzinfo=timezone.utc)

        return LocationQueryParams(
            device_id=self.device_id,
            from_=self.from_ or date_from,
            to=self.to or date_to,
            bbox=parse_bbox(self.bbox) if self.bbox else None,
            limit=self.limit or DEFAULT_LOCATIONS_LIMIT,
        )


# =============================================================================
# ХРАНЕНИЕ
# =============================================================================

class LocationQueryParams(BaseModel):
    """Фильтры выборки точек из БД."""
    model_config = ConfigDict(populate_by_name=True)

    device_id: Optional[str] = None
    from_: Optional[datetime] = Field(default=None, alias="from")
    to: Optional[datetime] = None
    bbox: Optional[BoundingBox] = None
    limit: int = DEFAULT_LOCATIONS_LIMIT


class LocationInsert(BaseModel):
    """Строка для вставки в таблицу locations."""
    device_id: str = DEFAULT_DEVICE_ID
    geojson: str
    lon: float
    lat: float
    altitude: Optional[float] = None
    speed: Optional[float] = None
    accuracy: Optional[float] = None
    battery: Optional[float] = None
    recorded_at: datetime
    address: Optional[str] = None
    poi: Optional[str] = None

    @classmethod
    def from_feature(
        cls,
        feature: LocationFeature,
        address: Optional[str] = None,
        poi: Optional[str] = None,
    ) -> "LocationInsert":
        """Собирает строку из точки Overland и результата обогащения."""
        props = feature.properties
        return cls(
            device_id=props.device_id or DEFAULT_DEVICE_ID,
            geojson=feature.model_dump_json(exclude_none=True),
            lon=feature.longitude,
            lat=feature.latitude,
            altitude=props.altitude,
            speed=props.speed,
            accuracy=props.horizontal_accuracy,
            battery=props.battery_level,
            recorded_at=feature.recorded_at,
            address=address,
            poi=poi,
        )


class LocationRow(BaseModel):
    """Строка выдачи (format=json)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    geojson: str
    address: Optional[str] = None
    poi: Optional[str] = None
