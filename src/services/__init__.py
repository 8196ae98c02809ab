# src/services/__init__.py
"""
HTTP-сервисы приложения.

Сервисы:
- locations: приём пакетов Overland, обогащение адресами, выдача точек
"""

__all__: list[str] = []
