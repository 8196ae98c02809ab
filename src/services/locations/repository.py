# src/services/locations/repository.py
"""
Репозиторий точек геолокации (PostgreSQL, таблица locations).
"""

from __future__ import annotations

from typing import Any

from src.infra.database import DatabaseManager
from src.shared.models.location_dto import LocationInsert, LocationQueryParams, LocationRow


class LocationRepository:
    def __init__(self, db: DatabaseManager):
        self.db = db

    async def insert_locations(self, locations: list[LocationInsert]) -> int:
        """Вставляет пакет точек одной транзакцией. Возвращает число вставленных строк."""
        if not locations:
            return 0

        query = """
            INSERT INTO locations (
                device_id, geojson, lon, lat, altitude, speed,
                accuracy, battery, recorded_at, address, poi
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
        """
        rows = [
            (
                loc.device_id,
                loc.geojson,
                loc.lon,
                loc.lat,
                loc.altitude,
                loc.speed,
                loc.accuracy,
                loc.battery,
                loc.recorded_at,
                loc.address,
                loc.poi,
            )
            for loc in locations
        ]
        async with self.db.transaction() as conn:
            await conn.executemany(query, rows)
        return len(locations)

    async def get_locations(self, params: LocationQueryParams) -> list[LocationRow]:
        """Выборка точек по фильтрам, от новых к старым."""
        conditions: list[str] = []
        args: list[Any] = []

        def bind(value: Any) -> str:
            args.append(value)
            return f"${len(args)}"

        if params.device_id:
            conditions.append(f"device_id = {bind(params.device_id)}")
        if params.from_:
            conditions.append(f"recorded_at >= {bind(params.from_)}")
        if params.to:
            conditions.append(f"recorded_at <= {bind(params.to)}")
        if params.bbox:
            bbox = params.bbox
            conditions.append(f"lon >= {bind(bbox.sw_lon)} AND lon <= {bind(bbox.ne_lon)}")
            conditions.append(f"lat >= {bind(bbox.sw_lat)} AND lat <= {bind(bbox.ne_lat)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        query = f"""
            SELECT id, geojson::text AS geojson, address, poi
            FROM locations
            {where}
            ORDER BY recorded_at DESC
            LIMIT {bind(params.limit)}
        """
        records = await self.db.fetch(query, *args)
        return [LocationRow(**dict(record)) for record in records]
