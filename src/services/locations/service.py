# src/services/locations/service.py
"""
Бизнес-логика приёма и выдачи геолокации.
"""

from __future__ import annotations

import json
from typing import Any

from src.common.constants import TypeMsg
from src.common.logger import log_info
from src.core.geo.enrichment import LocationEnricher, LocationRecord
from src.services.locations.repository import LocationRepository
from src.shared.models.location_dto import (
    LocationInsert,
    LocationQueryParams,
    LocationRow,
    OverlandPayload,
)


class LocationService:
    """
    Сервис приёма пакетов Overland.

    Ответственности:
    - Обогащение точек стоянки адресами (best-effort, приём не блокирует)
    - Сохранение пакета в PostgreSQL
    - Выдача точек по фильтрам
    """

    def __init__(self, repository: LocationRepository, enricher: LocationEnricher) -> None:
        self.repository = repository
        self.enricher = enricher

    async def ingest(self, payload: OverlandPayload) -> int:
        """
        Принимает пакет: обогащает адресами и сохраняет.

        Returns:
            Число сохранённых точек
        """
        features = payload.locations
        records = [
            LocationRecord(
                index=index,
                latitude=feature.latitude,
                longitude=feature.longitude,
                motion=feature.motion,
            )
            for index, feature in enumerate(features)
        ]

        enrichments = await self.enricher.enrich(records)

        inserts = [
            LocationInsert.from_feature(
                feature,
                address=result.address if result else None,
                poi=result.poi if result else None,
            )
            for feature, result in zip(features, enrichments)
        ]
        count = await self.repository.insert_locations(inserts)

        enriched = sum(1 for result in enrichments if result is not None)
        await log_info(
            f"Принято точек: {count}, с адресом: {enriched}",
            type_msg=TypeMsg.DEBUG,
        )
        return count

    async def get_locations(self, params: LocationQueryParams) -> list[LocationRow]:
        """Выборка точек по фильтрам."""
        return await self.repository.get_locations(params)


# =============================================================================
# ФОРМАТЫ ВЫДАЧИ
# =============================================================================

def row_to_feature(row: LocationRow) -> dict[str, Any]:
    """GeoJSON Feature из строки БД; адрес и POI добавляются в properties."""
    feature = json.loads(row.geojson)
    properties = feature.setdefault("properties", {})
    if row.address is not None:
        properties["address"] = row.address
    if row.poi is not None:
        properties["poi"] = row.poi
    return feature


def to_feature_collection(rows: list[LocationRow]) -> dict[str, Any]:
    """format=geojson: FeatureCollection."""
    return {
        "type": "FeatureCollection",
        "features": [row_to_feature(row) for row in rows],
    }


def to_jsonl(rows: list[LocationRow]) -> str:
    """format=jsonl: по одному Feature на строку."""
    return "\n".join(json.dumps(row_to_feature(row), ensure_ascii=False) for row in rows)
