# src/core/geo/enrichment.py
"""
Обогащение пакета точек адресами.

Точки стоянки группируются по расстоянию, для каждой группы делается
один запрос к Nominatim по координатам представителя, результат
проставляется всем точкам группы.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Sequence

import httpx

from src.common.constants import MotionType, TypeMsg
from src.common.logger import log_error, log_info
from src.core.geo.clustering import (
    DEFAULT_CLUSTER_THRESHOLD_METERS,
    GeoPoint,
    group_points_by_distance,
)
from src.core.geo.nominatim import (
    GeocodeResult,
    NominatimClient,
    NominatimConfig,
    ReverseGeocodeOptions,
    SleepFunc,
)


# Пауза между запросами разных групп (политика Nominatim: не чаще 1 запроса в секунду)
DEFAULT_PACING_DELAY_MS = 1000


@dataclass(frozen=True)
class LocationRecord:
    """Точка входящего пакета в объёме, нужном для обогащения."""
    index: int
    latitude: float
    longitude: float
    motion: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_stationary(self) -> bool:
        return MotionType.STATIONARY.value in self.motion


class LocationEnricher:
    """
    Проход обогащения для одного пакета.

    Без NominatimConfig проход пропускается и все точки остаются без адреса.
    Ошибки геокодирования не выходят за пределы enrich().
    """

    def __init__(
        self,
        config: NominatimConfig | None,
        options: ReverseGeocodeOptions | None = None,
        *,
        threshold_meters: float = DEFAULT_CLUSTER_THRESHOLD_METERS,
        pacing_delay_ms: int = DEFAULT_PACING_DELAY_MS,
        sleep: SleepFunc = asyncio.sleep,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._options = options
        self._threshold_meters = threshold_meters
        self._pacing_delay_ms = pacing_delay_ms
        self._sleep = sleep
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self._config is not None

    @staticmethod
    def select_candidates(records: Sequence[LocationRecord]) -> list[GeoPoint]:
        """Отбирает точки стоянки."""
        return [
            GeoPoint(index=record.index, lat=record.latitude, lon=record.longitude)
            for record in records
            if record.is_stationary
        ]

    async def enrich(self, records: Sequence[LocationRecord]) -> list[Optional[GeocodeResult]]:
        """
        Обогащает пакет адресами.

        Args:
            records: Точки пакета

        Returns:
            Список той же длины, что и records: результат или None для каждой точки
        """
        results: list[Optional[GeocodeResult]] = [None] * len(records)
        if self._config is None or not records:
            return results

        position_by_index = {record.index: pos for pos, record in enumerate(records)}
        clusters = group_points_by_distance(
            self.select_candidates(records),
            self._threshold_meters,
        )
        if not clusters:
            return results

        await log_info(
            f"Обогащение адресами: {len(clusters)} групп из {len(records)} точек",
            type_msg=TypeMsg.DEBUG,
        )

        async with NominatimClient(
            self._config,
            self._options,
            transport=self._transport,
            sleep=self._sleep,
        ) as client:
            for number, cluster in enumerate(clusters):
                if number > 0:
                    await self._sleep(self._pacing_delay_ms / 1000)

                representative = cluster[0]
                try:
                    result = await client.reverse_geocode(representative.lat, representative.lon)
                except Exception as e:
                    await log_error(
                        f"Ошибка обогащения группы ({representative.lat}, {representative.lon}): {e}",
                        exc_info=True,
                    )
                    continue

                if result is None:
                    continue

                for point in cluster:
                    results[position_by_index[point.index]] = result

        return results
