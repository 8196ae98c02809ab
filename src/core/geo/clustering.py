# src/core/geo/clustering.py
"""
Группировка близко расположенных точек.

Используется перед обратным геокодированием: точки одной стоянки
сводятся к одному запросу к внешнему сервису.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


EARTH_RADIUS_METERS = 6371000.0

# Радиус группировки точек стоянки по умолчанию
DEFAULT_CLUSTER_THRESHOLD_METERS = 50.0


@dataclass(frozen=True)
class GeoPoint:
    """Точка пакета: позиция в пакете и координаты в градусах."""
    index: int
    lat: float
    lon: float


Cluster = list[GeoPoint]


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Вычисляет расстояние между двумя точками (в метрах) по формуле Haversine.

    Земля считается сферой радиуса 6 371 000 м; для порогов порядка
    десятков метров погрешность несущественна.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def group_points_by_distance(
    points: Sequence[GeoPoint],
    threshold_meters: float = DEFAULT_CLUSTER_THRESHOLD_METERS,
) -> list[Cluster]:
    """
    Жадно группирует точки за один проход.

    Первая ещё не распределённая точка становится представителем новой
    группы; в группу попадают все оставшиеся точки не дальше
    threshold_meters именно от представителя. Транзитивного замыкания нет:
    две точки одной группы могут быть дальше порога друг от друга.

    Args:
        points: Точки в порядке пакета (index уникален в пакете)
        threshold_meters: Порог расстояния до представителя, метры

    Returns:
        Разбиение входа на непустые группы; первый элемент группы является представителем
    """
    if threshold_meters < 0:
        raise ValueError(f"threshold_meters must be >= 0, got {threshold_meters}")

    clusters: list[Cluster] = []
    assigned: set[int] = set()

    for point in points:
        if point.index in assigned:
            continue

        cluster: Cluster = [point]
        assigned.add(point.index)

        for other in points:
            if other.index in assigned:
                continue
            distance = haversine_distance(point.lat, point.lon, other.lat, other.lon)
            if distance <= threshold_meters:
                cluster.append(other)
                assigned.add(other.index)

        clusters.append(cluster)

    return clusters
