# src/services/locations/__init__.py
"""
Location Ingest: сервис приёма и выдачи геолокации.

Обеспечивает:
- Приём пакетов Overland (POST /api/locations)
- Обогащение точек стоянки адресами через Nominatim
- Сохранение в PostgreSQL
- Выдачу с фильтрами по устройству, времени и bbox (GET /api/locations)
"""
