# src/shared/__init__.py
"""
Общий код сервиса: DTO и Pydantic-модели.
"""

__all__: list[str] = []
