# src/infra/__init__.py
"""
Инфраструктура: пул PostgreSQL и применение схемы.
"""

from src.infra.database import DatabaseManager, close_db, get_db, init_db

__all__ = [
    "DatabaseManager",
    "close_db",
    "get_db",
    "init_db",
]
