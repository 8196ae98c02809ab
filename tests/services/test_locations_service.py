# tests/services/test_locations_service.py
"""
Unit тесты для LocationService и форматов выдачи.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.geo.nominatim import GeocodeResult
from src.services.locations.service import (
    LocationService,
    row_to_feature,
    to_feature_collection,
    to_jsonl,
)
from src.shared.models.location_dto import LocationQueryParams, LocationRow, OverlandPayload


FEATURE_JSON = json.dumps({
    "type": "Feature",
    "geometry": {"type": "Point", "coordinates": [139.7671, 35.6812]},
    "properties": {"timestamp": "2026-02-01T10:00:00Z"},
})


@pytest.fixture
def repository() -> MagicMock:
    repo = MagicMock()
    repo.insert_locations = AsyncMock(side_effect=lambda rows: len(rows))
    repo.get_locations = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def enricher() -> MagicMock:
    enricher = MagicMock()
    result = GeocodeResult(address="東京駅", poi="station")
    enricher.enrich = AsyncMock(return_value=[result, result, None])
    return enricher


class TestIngest:
    """Тесты для LocationService.ingest."""

    @pytest.mark.asyncio
    async def test_enriches_and_stores(self, repository, enricher, sample_payload):
        service = LocationService(repository, enricher)
        payload = OverlandPayload.model_validate(sample_payload)

        count = await service.ingest(payload)

        assert count == 3
        records = enricher.enrich.await_args.args[0]
        assert [r.index for r in records] == [0, 1, 2]
        assert [r.is_stationary for r in records] == [True, True, False]

        rows = repository.insert_locations.await_args.args[0]
        assert [r.address for r in rows] == ["東京駅", "東京駅", None]
        assert [r.poi for r in rows] == ["station", "station", None]
        assert all(r.device_id == "iphone" for r in rows)

    @pytest.mark.asyncio
    async def test_storage_error_propagates(self, repository, enricher, sample_payload):
        repository.insert_locations.side_effect = RuntimeError("connection lost")
        service = LocationService(repository, enricher)

        with pytest.raises(RuntimeError):
            await service.ingest(OverlandPayload.model_validate(sample_payload))

    @pytest.mark.asyncio
    async def test_get_locations_delegates(self, repository, enricher):
        service = LocationService(repository, enricher)
        params = LocationQueryParams(limit=5)

        await service.get_locations(params)

        repository.get_locations.assert_awaited_once_with(params)


class TestOutputFormats:
    """Тесты форматов выдачи."""

    def test_row_to_feature_merges_address(self):
        feature = row_to_feature(LocationRow(id=1, geojson=FEATURE_JSON, address="東京駅", poi="station"))

        assert feature["properties"]["address"] == "東京駅"
        assert feature["properties"]["poi"] == "station"
        assert feature["properties"]["timestamp"] == "2026-02-01T10:00:00Z"

    def test_row_to_feature_without_address(self):
        feature = row_to_feature(LocationRow(id=1, geojson=FEATURE_JSON))
        assert "address" not in feature["properties"]
        assert "poi" not in feature["properties"]

    def test_feature_collection(self):
        rows = [LocationRow(id=i, geojson=FEATURE_JSON) for i in range(3)]
        collection = to_feature_collection(rows)

        assert collection["type"] == "FeatureCollection"
        assert len(collection["features"]) == 3

    def test_jsonl(self):
        rows = [LocationRow(id=1, geojson=FEATURE_JSON, address="東京駅"), LocationRow(id=2, geojson=FEATURE_JSON)]
        lines = to_jsonl(rows).split("\n")

        assert len(lines) == 2
        assert "東京駅" in lines[0]
        assert json.loads(lines[1])["type"] == "Feature"

    def test_jsonl_empty(self):
        assert to_jsonl([]) == ""
